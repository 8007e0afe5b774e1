"""Tests for the tree-sitter PHP structure extractor."""

import pytest

from docdrift.errors import ParseError
from docdrift.models import ClassInfo, StructuralModel, Visibility
from docdrift.parser import StructureExtractor, canonical_type


@pytest.fixture
def extractor() -> StructureExtractor:
    return StructureExtractor()


class TestDialect:
    def test_open_tag_selects_php(self, extractor: StructureExtractor):
        assert extractor.select_dialect("<?php class A {}") == "php"

    def test_bare_snippet_selects_php_only(self, extractor: StructureExtractor):
        assert extractor.select_dialect("class Foo{ public function bar(){} }") == "php_only"

    def test_bare_snippet_parses(self, extractor: StructureExtractor):
        """Snippets without an open tag are still recognised as PHP code."""
        model = extractor.extract("class Foo{ public function bar(){} }")
        assert "Foo" in model.classes
        assert [m.name for m in model.classes["Foo"].methods] == ["bar"]


class TestSampleFile:
    """Extraction of a realistic service file."""

    def test_namespace_and_imports(self, extractor: StructureExtractor, sample_php: str):
        model = extractor.extract(sample_php)
        assert model.namespace == "App\\Services"
        assert "App\\Models\\Invoice" in model.imports
        assert "Illuminate\\Support\\Facades\\Log" in model.imports
        assert "Illuminate\\Support\\Facades\\DB" in model.imports

    def test_class_header(self, extractor: StructureExtractor, sample_php: str):
        cls = extractor.extract(sample_php).classes["InvoiceService"]
        assert isinstance(cls, ClassInfo)
        assert cls.extends == "BaseService"
        assert cls.implements == frozenset({"Billable", "\\Countable"})
        assert cls.is_final is True
        assert cls.is_abstract is False

    def test_methods(self, extractor: StructureExtractor, sample_php: str):
        cls = extractor.extract(sample_php).classes["InvoiceService"]
        names = [m.name for m in cls.methods]
        assert names == ["__construct", "charge", "make", "count", "send"]

        charge = cls.find_method("charge")
        assert charge.visibility is Visibility.PUBLIC
        assert charge.return_type == "bool"
        assert [(p.name, p.type) for p in charge.parameters] == [("amount", "int")]

        make = cls.find_method("make")
        assert make.is_static is True
        assert make.parameters[0].variadic is True

        assert cls.find_method("send").visibility is Visibility.PRIVATE

    def test_properties_include_promoted(self, extractor: StructureExtractor, sample_php: str):
        cls = extractor.extract(sample_php).classes["InvoiceService"]
        props = {p.name: p for p in cls.properties}

        assert props["label"].type == "?string"
        assert props["label"].default == "null"
        assert props["created"].is_static is True
        assert props["created"].visibility is Visibility.PROTECTED
        assert props["invoice"].visibility is Visibility.PRIVATE
        assert props["owner"].visibility is Visibility.PUBLIC

    def test_class_constants(self, extractor: StructureExtractor, sample_php: str):
        cls = extractor.extract(sample_php).classes["InvoiceService"]
        consts = {c.name: c for c in cls.constants}
        assert consts["CURRENCY"].value == "'EUR'"
        assert consts["CURRENCY"].is_public
        assert consts["RETRIES"].visibility is Visibility.PRIVATE

    def test_interface_and_trait(self, extractor: StructureExtractor, sample_php: str):
        model = extractor.extract(sample_php)
        assert [m.name for m in model.interfaces["Billable"].methods] == ["charge"]
        trait = model.traits["Auditable"]
        assert [m.name for m in trait.methods] == ["audit"]
        assert trait.properties[0].visibility is Visibility.PROTECTED

    def test_free_function_and_constant(self, extractor: StructureExtractor, sample_php: str):
        model = extractor.extract(sample_php)
        assert model.function_names() == frozenset({"format_money"})
        fn = model.functions[0]
        assert fn.return_type == "string"
        assert fn.parameters[1].by_ref is True
        assert fn.parameters[1].default == "''"
        assert model.constant_names() == frozenset({"DEFAULT_LOCALE"})


class TestDefaults:
    def test_missing_visibility_is_public(self, extractor: StructureExtractor):
        model = extractor.extract("<?php class A { function run() {} var $x; }")
        cls = model.classes["A"]
        assert cls.methods[0].visibility is Visibility.PUBLIC
        assert cls.properties[0].visibility is Visibility.PUBLIC

    def test_formatting_does_not_change_model(self, extractor: StructureExtractor):
        compact = "<?php class A { public function run(int $a = 1): ?int { return $a; } }"
        spread = """<?php
        class A
        {
            /** Runs. */
            public function run( int   $a   =   1 ) : ?int
            {
                return $a;
            }
        }
        """
        assert extractor.extract(compact) == extractor.extract(spread)

    def test_empty_source_gives_empty_model(self, extractor: StructureExtractor):
        model = extractor.extract("")
        assert model == StructuralModel.empty()
        assert model.is_empty

    def test_duplicate_class_last_wins(self, extractor: StructureExtractor):
        model = extractor.extract("<?php class A { public function one() {} } class A { public function two() {} }")
        assert [m.name for m in model.classes["A"].methods] == ["two"]


class TestErrors:
    def test_syntax_error_raises_with_location(self, extractor: StructureExtractor):
        with pytest.raises(ParseError) as excinfo:
            extractor.extract("<?php\nclass A {\n    public function (\n}\n")
        assert excinfo.value.line is not None
        assert excinfo.value.line >= 2
        assert "line" in str(excinfo.value)

    def test_extract_or_empty_is_total(self, extractor: StructureExtractor):
        model, error = extractor.extract_or_empty("<?php class {{{")
        assert model.is_empty
        assert isinstance(error, ParseError)

    def test_extract_or_empty_success(self, extractor: StructureExtractor):
        model, error = extractor.extract_or_empty("<?php function f() {}")
        assert error is None
        assert model.function_names() == frozenset({"f"})


class TestCanonicalType:
    def test_whitespace_removed(self):
        assert canonical_type("int | string") == "int|string"

    def test_nullable_variants_stay_distinct(self):
        assert canonical_type("?Foo") != canonical_type("Foo|null")

    def test_none(self):
        assert canonical_type(None) is None


def test_incompatible_grammar_raises_parse_error(monkeypatch, extractor: StructureExtractor):
    from types import SimpleNamespace

    from docdrift import parser

    def incompatible():
        raise ValueError("Incompatible Language version 15")

    monkeypatch.setattr(parser, "_LANGUAGES", {})
    monkeypatch.setattr(
        parser.importlib,
        "import_module",
        lambda name: SimpleNamespace(language_php=incompatible, language_php_only=incompatible),
    )
    with pytest.raises(ParseError, match="grammar unavailable"):
        extractor.extract("<?php class Foo {}")
