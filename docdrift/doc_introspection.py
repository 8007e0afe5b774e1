"""Read previously generated Markdown documentation into :class:`DocMetadata`."""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePath
from typing import Dict, List, Optional, Union

from .config import DEFAULT_DOCS_DIR, SOURCE_ROOT
from .models import DocMetadata, DocumentedElement

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^#+\s+(.+)$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"
# Declaration mentions: backticked names always count, bare names only when
# capitalised so prose such as "this class handles" is not picked up.
_DECLARATION_RE = re.compile(
    rf"\b(?P<kind>(?i:class|interface|trait))\s+(?:`(?P<quoted>{_NAME})`|(?P<bare>[A-Z]\w*))"
)
_METHOD_RE = re.compile(rf"\bmethod\s+`(?P<name>{_NAME})(?:\([^)`]*\))?`", re.IGNORECASE)
_CALL_RE = re.compile(rf"`(?:[A-Za-z_][\w\\]*(?:::|->))?(?P<name>{_NAME})\([^)`]*\)`")


def parse_sections(content: str) -> Dict[str, List[str]]:
    """Map each heading to the non-blank lines below it; fenced code is not scanned for headings."""
    sections: Dict[str, List[str]] = {}
    current: Optional[str] = None
    in_fence = False
    for line in content.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            match = _HEADING_RE.match(line)
            if match:
                current = match.group(1).strip()
                sections[current] = []
                continue
        if current is not None and line.strip():
            sections[current].append(line)
    return sections


def extract_documented_elements(content: str) -> List[DocumentedElement]:
    """Declarations the documentation refers to by name, first mention first."""
    found: List[DocumentedElement] = []

    for match in _DECLARATION_RE.finditer(content):
        name = match.group("quoted") or match.group("bare")
        kind = match.group("kind").lower()
        found.append(DocumentedElement(type=kind, name=name))
    for match in _METHOD_RE.finditer(content):
        found.append(DocumentedElement(type="method", name=match.group("name")))
    for match in _CALL_RE.finditer(content):
        found.append(DocumentedElement(type="function", name=match.group("name")))

    unique: List[DocumentedElement] = []
    seen = set()
    for element in found:
        key = (element.type, element.name.lower())
        if key not in seen:
            seen.add(key)
            unique.append(element)
    return unique


class DocumentationIntrospector:
    """Locates and summarises the Markdown page generated for a source file."""

    def __init__(self, docs_dir: Union[str, Path] = DEFAULT_DOCS_DIR, source_root: str = SOURCE_ROOT) -> None:
        self.docs_dir = Path(docs_dir)
        self.source_root = source_root

    def doc_path_for(self, source_path: Union[str, Path]) -> Path:
        """``app/Foo/Bar.php`` -> ``<docs_dir>/Foo/Bar.md``."""
        parts = list(PurePath(source_path).parts)
        if self.source_root in parts:
            parts = parts[parts.index(self.source_root) + 1:]
        elif PurePath(source_path).is_absolute():
            parts = parts[-1:]
        relative = PurePath(*parts).with_suffix(".md")
        return self.docs_dir / relative

    def analyze_source(self, source_path: Union[str, Path]) -> Optional[DocMetadata]:
        return self.analyze(self.doc_path_for(source_path))

    def analyze(self, doc_path: Union[str, Path]) -> Optional[DocMetadata]:
        """Metadata for an existing doc page, or ``None`` if there is none."""
        path = Path(doc_path)
        if not path.is_file():
            return None
        try:
            content = path.read_text(encoding="utf-8")
            mtime = path.stat().st_mtime
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read documentation %s: %s", path, exc)
            return None
        if not content.strip():
            return None

        return DocMetadata(
            path=str(path),
            content=content,
            sections=parse_sections(content),
            documented_elements=tuple(extract_documented_elements(content)),
            last_modified_at=mtime,
        )
