"""Magnitude estimate for changes that leave the public surface intact.

When only non-public members (or bodies) differ, documentation usually stays
valid. A large enough private refactor can still alter observable behaviour,
so this module measures it with two coarse proxies: how many lines moved and
how many significance keywords changed their occurrence count.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

# Control flow, error handling, I/O, persistence and framework idioms.
SIGNIFICANCE_KEYWORDS: Tuple[str, ...] = (
    "if", "else", "elseif", "switch", "case", "foreach", "while", "return",
    "try", "catch", "throw", "finally",
    "echo", "file_get_contents", "file_put_contents", "fopen", "curl_", "http",
    "save", "delete", "update", "insert", "query", "transaction",
    "validate", "payment", "auth", "db::", "cache::", "dispatch",
)

DEFAULT_CHANGE_PERCENTAGE = 20.0
DEFAULT_CHANGED_LINES = 10
DEFAULT_KEYWORD_CHANGES = 3


@dataclass(frozen=True)
class PrivateChangeAssessment:
    is_significant: bool
    change_percentage: float
    changed_lines: int
    keyword_changes: int
    changed_keywords: Tuple[str, ...] = ()


def _code_lines(source: str) -> List[str]:
    return [line.strip() for line in source.splitlines() if line.strip()]


def count_changed_lines(old_lines: Sequence[str], new_lines: Sequence[str]) -> int:
    """Lines touched by the edit; a replaced block counts its longer side."""
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)
    changed = 0
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag != "equal":
            changed += max(i2 - i1, j2 - j1)
    return changed


def unified_diff(old: str, new: str, filename: str = "file") -> str:
    """Unified diff between two versions, for display."""
    diff = difflib.unified_diff(
        old.splitlines(),
        new.splitlines(),
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
        lineterm="",
    )
    return "\n".join(diff)


class PrivateChangeAssessor:
    """Decides whether a non-public change is big enough to matter."""

    def __init__(
        self,
        change_percentage_threshold: float = DEFAULT_CHANGE_PERCENTAGE,
        changed_lines_threshold: int = DEFAULT_CHANGED_LINES,
        keyword_changes_threshold: int = DEFAULT_KEYWORD_CHANGES,
        keywords: Optional[Iterable[str]] = None,
    ) -> None:
        self.change_percentage_threshold = change_percentage_threshold
        self.changed_lines_threshold = changed_lines_threshold
        self.keyword_changes_threshold = keyword_changes_threshold
        self.keywords: Tuple[str, ...] = tuple(keywords) if keywords is not None else SIGNIFICANCE_KEYWORDS
        self._patterns: Dict[str, re.Pattern] = {
            kw: re.compile(r"(?<![a-z0-9_$])" + re.escape(kw.lower()))
            for kw in self.keywords
        }

    def keyword_counts(self, source: str) -> Dict[str, int]:
        lowered = source.lower()
        return {kw: len(pattern.findall(lowered)) for kw, pattern in self._patterns.items()}

    def assess(self, old_source: str, new_source: str) -> PrivateChangeAssessment:
        old_lines, new_lines = _code_lines(old_source), _code_lines(new_source)
        changed_lines = count_changed_lines(old_lines, new_lines)
        baseline = max(len(old_lines), len(new_lines), 1)
        change_percentage = round(changed_lines / baseline * 100, 2)

        old_counts, new_counts = self.keyword_counts(old_source), self.keyword_counts(new_source)
        changed_keywords = tuple(kw for kw in self.keywords if old_counts[kw] != new_counts[kw])

        is_significant = (
            change_percentage > self.change_percentage_threshold
            or changed_lines > self.changed_lines_threshold
            or len(changed_keywords) > self.keyword_changes_threshold
        )
        return PrivateChangeAssessment(
            is_significant=is_significant,
            change_percentage=change_percentage,
            changed_lines=changed_lines,
            keyword_changes=len(changed_keywords),
            changed_keywords=changed_keywords,
        )
