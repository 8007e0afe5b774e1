"""Tests for text normalisation fast paths."""

from docdrift.normalizer import TextNormalizer


normalizer = TextNormalizer()


def test_normalize_whitespace_collapses_and_trims():
    assert normalizer.normalize_whitespace("  a \n\t b  ") == "a b"


def test_strip_comments_all_forms():
    source = "<?php\n/** doc */\n$a = 1; // line\n# hash\n/* block */ $b = 2;"
    stripped = normalizer.normalize(source)
    assert "doc" not in stripped
    assert "line" not in stripped
    assert "hash" not in stripped
    assert "block" not in stripped
    assert "$a = 1;" in stripped
    assert "$b = 2;" in stripped


def test_strip_comments_keeps_strings():
    source = "$url = 'http://example.com'; $tag = \"# not a comment\";"
    assert normalizer.strip_comments(source) == source


def test_strip_comments_keeps_attributes():
    source = "#[Route('/x')]\npublic function x() {}"
    assert "#[Route('/x')]" in normalizer.strip_comments(source)


class TestWhitespaceOnly:
    def test_reindent_and_blank_lines(self):
        old = "<?php\nclass A {\n  public function f() { return 1; }\n}\n"
        new = "<?php\n\nclass A\n{\n\n    public function f()\n    {\n        return 1;\n    }\n}\n"
        assert normalizer.is_whitespace_only_change(old, new)

    def test_space_around_operators(self):
        assert normalizer.is_whitespace_only_change("$a=$b+1;", "$a = $b + 1;")

    def test_identifier_separation_matters(self):
        assert not normalizer.is_whitespace_only_change("new \\Foo();", "new\\Foo();")

    def test_whitespace_inside_strings_matters(self):
        assert not normalizer.is_whitespace_only_change("echo 'a b';", "echo 'a  b';")

    def test_added_comment_is_not_whitespace(self):
        assert not normalizer.is_whitespace_only_change("$a = 1;", "$a = 1; // set")


class TestCommentOnly:
    def test_todo_comments(self):
        old = "<?php\nfunction f() {\n    return 1;\n}\n"
        new = "<?php\n// TODO: cache\nfunction f() {\n    // TODO: validate\n    return 1;\n}\n"
        assert normalizer.is_comment_only_change(old, new)

    def test_docblock_edit(self):
        old = "/** Old text. */\nfunction f() {}"
        new = "/**\n * New text.\n * @return void\n */\nfunction f() {}"
        assert normalizer.is_comment_only_change(old, new)

    def test_code_change_is_not_comment_only(self):
        assert not normalizer.is_comment_only_change("return 1; // one", "return 2; // one")


class TestInlineHtml:
    def test_hash_in_css_is_content(self):
        old = "<?php class Foo {} ?>\n<style>p { color: #fff; }</style>\n"
        new = "<?php class Foo {} ?>\n<style>p { color: #000; }</style>\n"
        assert not normalizer.is_comment_only_change(old, new)

    def test_url_in_markup_is_content(self):
        old = '<?php $x = 1; ?>\n<a href=https://old.example.com>link</a>\n'
        new = '<?php $x = 1; ?>\n<a href=https://new.example.com>link</a>\n'
        assert not normalizer.is_comment_only_change(old, new)

    def test_tagless_markup_is_not_php(self):
        assert not normalizer.is_comment_only_change(
            "<a href=https://old.example.com>", "<a href=https://new.example.com>"
        )

    def test_line_comment_ends_at_close_tag(self):
        old = "<?php // note ?> Hello world"
        new = "<?php // note ?> Goodbye world"
        assert not normalizer.is_comment_only_change(old, new)
        assert "Goodbye world" in normalizer.strip_comments(new)

    def test_comment_inside_php_region_still_stripped(self):
        old = "<p>Hi</p>\n<?php echo $name; // who ?>\n<p>Bye</p>"
        new = "<p>Hi</p>\n<?php echo $name; // greeting target ?>\n<p>Bye</p>"
        assert normalizer.is_comment_only_change(old, new)

    def test_html_reflow_is_whitespace_only(self):
        old = "<ul>\n  <li><?= $a ?></li>\n</ul>"
        new = "<ul>\n      <li><?= $a ?></li>\n</ul>\n"
        assert normalizer.is_whitespace_only_change(old, new)

    def test_close_tag_inside_string_stays_php(self):
        source = "<?php $s = '?> // not a comment'; // real\n"
        stripped = normalizer.strip_comments(source)
        assert "'?> // not a comment'" in stripped
        assert "real" not in stripped
