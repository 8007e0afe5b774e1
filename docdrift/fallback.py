"""Regex-count structure detection for sources the parser rejects.

This is deliberately crude and only selected when tree-sitter reports a
syntax error on one of the two versions. It compares how many declarations
of each kind appear textually; a count that moved means structure moved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

STRUCTURE_PATTERNS: Dict[str, re.Pattern] = {
    "classes": re.compile(r"\bclass\s+\w+"),
    "interfaces": re.compile(r"\binterface\s+\w+"),
    "traits": re.compile(r"\btrait\s+\w+"),
    "functions": re.compile(r"\bfunction\s+&?\s*\w+\s*\("),
    "methods": re.compile(r"\b(?:public|private|protected)\s+(?:static\s+)?function\s+\w+"),
    "properties": re.compile(r"\b(?:public|private|protected)\s+(?:static\s+)?(?:\??[\w\\|]+\s+)?\$\w+"),
    "constants": re.compile(r"\bconst\s+\w+\s*="),
}


@dataclass(frozen=True)
class FallbackAnalysis:
    """Per-pattern counts for both versions."""
    old_counts: Dict[str, int] = field(default_factory=dict)
    new_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def changed(self) -> Dict[str, Tuple[int, int]]:
        return {
            name: (self.old_counts.get(name, 0), self.new_counts.get(name, 0))
            for name in STRUCTURE_PATTERNS
            if self.old_counts.get(name, 0) != self.new_counts.get(name, 0)
        }

    @property
    def structural_changes(self) -> bool:
        return bool(self.changed)

    def describe(self) -> List[str]:
        return [f"{name}: {old} -> {new}" for name, (old, new) in self.changed.items()]


class KeywordHeuristicFallback:
    """Counts declaration-looking patterns; never raises."""

    @staticmethod
    def count(source: str) -> Dict[str, int]:
        return {name: len(pattern.findall(source or "")) for name, pattern in STRUCTURE_PATTERNS.items()}

    def analyze(self, old_source: str, new_source: str) -> FallbackAnalysis:
        return FallbackAnalysis(old_counts=self.count(old_source), new_counts=self.count(new_source))
