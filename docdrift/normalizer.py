"""Text-level normalisation for the cheap no-op-change fast paths."""

from __future__ import annotations

import re
from typing import Iterator, Tuple

_OPEN_TAG_RE = re.compile(r"<\?(?:php\b|=)", re.IGNORECASE)
# Inside PHP, string literals are matched first so comment markers inside
# them survive. Line comments end at a newline or at the closing tag.
_PHP_TOKEN_RE = re.compile(
    r"""(?P<string>'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*")"""
    r"""|(?P<comment>/\*.*?\*/|(?://|\#(?!\[))(?:[^\n?]|\?(?!>))*)"""
    r"""|(?P<close>\?>)""",
    re.DOTALL,
)
_WHITESPACE_RE = re.compile(r"\s+")
# A space only separates tokens when both neighbours are identifier characters.
_LOOSE_SPACE_RE = re.compile(r"(?<![\w$\\]) | (?![\w$\\])")


def _compact_code(segment: str) -> str:
    return _LOOSE_SPACE_RE.sub("", _WHITESPACE_RE.sub(" ", segment))


def _starts_in_php(source: str) -> bool:
    # Tagless input is a bare PHP snippet unless it opens with markup.
    if _OPEN_TAG_RE.search(source):
        return False
    return not source.lstrip().startswith("<")


def _tokens(source: str) -> Iterator[Tuple[str, str]]:
    """Split *source* into ``html``, ``code``, ``string`` and ``comment`` runs.

    Open and close tags belong to the ``html`` runs around them, so only
    text between ``<?php``/``<?=`` and ``?>`` is ever read as PHP.
    """
    in_php = _starts_in_php(source)
    pos = 0
    while pos < len(source):
        if not in_php:
            tag = _OPEN_TAG_RE.search(source, pos)
            end = tag.end() if tag else len(source)
            yield "html", source[pos:end]
            pos, in_php = end, tag is not None
            continue

        match = _PHP_TOKEN_RE.search(source, pos)
        if match is None:
            yield "code", source[pos:]
            return
        if match.start() > pos:
            yield "code", source[pos:match.start()]
        if match.lastgroup == "close":
            pos, in_php = match.start(), False
            continue
        yield match.lastgroup, match.group()
        pos = match.end()


class TextNormalizer:
    """Comment stripping and whitespace collapsing, independent of the parser."""

    @staticmethod
    def normalize_whitespace(source: str) -> str:
        return _WHITESPACE_RE.sub(" ", source).strip()

    @staticmethod
    def strip_comments(source: str) -> str:
        """Remove line, block and doc comments inside PHP regions.

        PHP 8 ``#[...]`` attributes are code, and inline HTML is left alone.
        """
        return "".join(" " if kind == "comment" else text for kind, text in _tokens(source))

    def normalize(self, source: str) -> str:
        return self.normalize_whitespace(self.strip_comments(source))

    @staticmethod
    def layout_key(source: str) -> str:
        """Source with layout removed: string literals verbatim, comments and
        inline HTML collapsed, and code whitespace dropped wherever it does
        not separate two identifiers."""
        parts = []
        for kind, text in _tokens(source):
            if kind == "code":
                parts.append(_compact_code(text))
            elif kind == "string":
                parts.append(text)
            else:
                parts.append(_WHITESPACE_RE.sub(" ", text).strip())
        return "\x00".join(part for part in parts if part)

    def is_whitespace_only_change(self, old: str, new: str) -> bool:
        return self.layout_key(old) == self.layout_key(new)

    def is_comment_only_change(self, old: str, new: str) -> bool:
        return self.layout_key(self.strip_comments(old)) == self.layout_key(self.strip_comments(new))
