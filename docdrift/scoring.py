"""Relevance scoring: how much does a change touch existing documentation?"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .differ import DiffReport
from .models import DocMetadata
from .surface import declaration_counts_changed, missing_documented_elements, public_methods_changed

MAX_SCORE = 100

PUBLIC_METHOD_WEIGHT = 40
DOCUMENTED_ELEMENT_WEIGHT = 30
STRUCTURAL_CHURN_WEIGHT = 20
CONTENT_CHANGED_WEIGHT = 10


@dataclass(frozen=True)
class ImpactScorer:
    """Scores a change 0-100 against the documentation that already exists.

    Without documentation the score is always the maximum: there is nothing
    to keep, so everything is relevant.
    """

    def score(
        self,
        diff: DiffReport,
        existing_doc: Optional[DocMetadata],
        content_changed: bool,
    ) -> int:
        if existing_doc is None:
            return MAX_SCORE

        old, new = diff.old, diff.new

        total = 0
        if public_methods_changed(old, new):
            total += PUBLIC_METHOD_WEIGHT
        if missing_documented_elements(existing_doc, new):
            total += DOCUMENTED_ELEMENT_WEIGHT
        if declaration_counts_changed(old, new):
            total += STRUCTURAL_CHURN_WEIGHT
        # Comments and docblocks are not inspected here; any edit may have touched them.
        if content_changed:
            total += CONTENT_CHANGED_WEIGHT
        return min(total, MAX_SCORE)
