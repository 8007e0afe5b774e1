"""The regenerate-or-skip decision cascade.

Rules run in a fixed priority order and the first one that matches decides.
Cheap text checks come first, structural checks later, and anything the
structural rules cannot classify falls through to a conservative
"regenerate" verdict. Parse failures switch to a regex-count heuristic.

    >>> cascade = DecisionCascade()
    >>> cascade.evaluate("", "<?php class Foo {}").reason_code
    <ReasonCode.NEW_FILE: 'new_file'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .differ import DiffReport, StructuralDiffer
from .errors import ParseError
from .fallback import KeywordHeuristicFallback
from .models import DocMetadata, StructuralModel
from .normalizer import TextNormalizer
from .parser import StructureExtractor
from .private_changes import PrivateChangeAssessor
from .scoring import MAX_SCORE, ImpactScorer
from .surface import (
    declaration_counts_changed,
    missing_documented_elements,
    only_non_public_changes,
    public_api_changed,
)

logger = logging.getLogger(__name__)


class ReasonCode(str, Enum):
    IDENTICAL_CONTENT = "identical_content"
    NEW_FILE = "new_file"
    WHITESPACE_ONLY = "whitespace_only"
    COMMENTS_ONLY = "comments_only"
    NO_EXISTING_DOC = "no_existing_doc"
    SIGNIFICANT_PRIVATE_CHANGES = "significant_private_changes"
    MINOR_PRIVATE_CHANGES = "minor_private_changes"
    PUBLIC_API_CHANGES = "public_api_changes"
    DOCUMENTED_PARTS_CHANGED = "documented_parts_changed"
    STRUCTURAL_CHANGES = "structural_changes"
    UNCERTAIN_IMPACT = "uncertain_impact"


class Severity(str, Enum):
    NONE = "none"
    MINIMAL = "minimal"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DecisionResult:
    should_regenerate: bool
    confidence: float
    reason_code: ReasonCode
    reasoning: List[str] = field(default_factory=list)
    severity: Severity = Severity.UNKNOWN
    affected_sections: List[str] = field(default_factory=list)
    relevance_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "should_regenerate": self.should_regenerate,
            "confidence": self.confidence,
            "reason_code": self.reason_code.value,
            "reasoning": list(self.reasoning),
            "severity": self.severity.value,
            "affected_sections": list(self.affected_sections),
            "relevance_score": self.relevance_score,
        }


def _skip(confidence: float, reason: ReasonCode, message: str, severity: Severity, **extra: Any) -> DecisionResult:
    return DecisionResult(False, confidence, reason, [message], severity, **extra)


def _regenerate(confidence: float, reason: ReasonCode, message: str, severity: Severity, **extra: Any) -> DecisionResult:
    return DecisionResult(True, confidence, reason, [message], severity, **extra)


class DecisionCascade:
    """Decides whether documentation for a changed file must be regenerated.

    All collaborators are optional and default to fresh instances, so a bare
    ``DecisionCascade()`` is fully usable. The instance holds no per-call
    state and may be shared between threads.
    """

    def __init__(
        self,
        extractor: Optional[StructureExtractor] = None,
        normalizer: Optional[TextNormalizer] = None,
        differ: Optional[StructuralDiffer] = None,
        scorer: Optional[ImpactScorer] = None,
        assessor: Optional[PrivateChangeAssessor] = None,
        fallback: Optional[KeywordHeuristicFallback] = None,
    ) -> None:
        self.extractor = extractor or StructureExtractor()
        self.normalizer = normalizer or TextNormalizer()
        self.differ = differ or StructuralDiffer()
        self.scorer = scorer or ImpactScorer()
        self.assessor = assessor or PrivateChangeAssessor()
        self.fallback = fallback or KeywordHeuristicFallback()

    def evaluate(
        self,
        old_source: str,
        new_source: str,
        existing_doc: Optional[DocMetadata] = None,
    ) -> DecisionResult:
        old_source = old_source or ""
        new_source = new_source or ""

        result = self._text_rules(old_source, new_source)
        if result is not None:
            logger.debug("Decision %s (text rule)", result.reason_code.value)
            return result

        if existing_doc is None:
            logger.debug("Decision %s (text rule)", ReasonCode.NO_EXISTING_DOC.value)
            return _regenerate(1.0, ReasonCode.NO_EXISTING_DOC,
                               "No existing documentation; it must be generated", Severity.MAJOR,
                               relevance_score=MAX_SCORE)

        try:
            old_model = self.extractor.extract(old_source)
            new_model = self.extractor.extract(new_source)
            result = self._structural_rules(old_source, new_source, old_model, new_model, existing_doc)
        except ParseError as exc:
            logger.debug("Falling back to keyword heuristics: %s", exc)
            return self._fallback_result(old_source, new_source, exc)
        except Exception as exc:  # noqa: BLE001 - every path must yield a verdict
            logger.warning("Structural analysis failed, using keyword heuristics: %s", exc, exc_info=True)
            return self._fallback_result(old_source, new_source, None)

        logger.debug("Decision %s (structural rule)", result.reason_code.value)
        return result

    # ------------------------------------------------------------------
    # Rules 0-2
    # ------------------------------------------------------------------

    def _text_rules(self, old_source: str, new_source: str) -> Optional[DecisionResult]:
        if old_source == new_source:
            return _skip(1.0, ReasonCode.IDENTICAL_CONTENT,
                         "File content is identical", Severity.NONE)

        if not old_source.strip():
            return _regenerate(1.0, ReasonCode.NEW_FILE,
                               "New file needs documentation", Severity.MAJOR,
                               relevance_score=MAX_SCORE)

        if self.normalizer.is_whitespace_only_change(old_source, new_source):
            return _skip(0.95, ReasonCode.WHITESPACE_ONLY,
                         "Only whitespace changed; documentation is still current", Severity.MINIMAL)

        if self.normalizer.is_comment_only_change(old_source, new_source):
            return _skip(0.85, ReasonCode.COMMENTS_ONLY,
                         "Only comments changed; documentation is still current", Severity.MINOR)
        return None

    # ------------------------------------------------------------------
    # Rules 4-8
    # ------------------------------------------------------------------

    def _structural_rules(
        self,
        old_source: str,
        new_source: str,
        old_model: StructuralModel,
        new_model: StructuralModel,
        existing_doc: DocMetadata,
    ) -> DecisionResult:
        diff: DiffReport = self.differ.diff(old_model, new_model)
        score = self.scorer.score(diff, existing_doc, content_changed=old_source != new_source)
        sections = existing_doc.section_titles

        if only_non_public_changes(old_model, new_model):
            assessment = self.assessor.assess(old_source, new_source)
            detail = (
                f"{assessment.changed_lines} changed lines ({assessment.change_percentage:.1f}%), "
                f"{assessment.keyword_changes} significant keywords changed"
            )
            if assessment.is_significant:
                return DecisionResult(
                    True, 0.7, ReasonCode.SIGNIFICANT_PRIVATE_CHANGES,
                    ["Non-public changes are large enough to affect documented behaviour", detail],
                    Severity.MODERATE, list(sections), score,
                )
            return DecisionResult(
                False, 0.8, ReasonCode.MINOR_PRIVATE_CHANGES,
                ["Only non-public code changed; documentation need not be updated", detail],
                Severity.MINOR, [], score,
            )

        if public_api_changed(old_model, new_model):
            return _regenerate(0.95, ReasonCode.PUBLIC_API_CHANGES,
                               "Public API changed; documentation must be updated", Severity.MAJOR,
                               affected_sections=list(sections), relevance_score=score)

        missing = missing_documented_elements(existing_doc, new_model)
        if missing:
            names = ", ".join(f"{el.type} {el.name}" for el in missing)
            return DecisionResult(
                True, 0.9, ReasonCode.DOCUMENTED_PARTS_CHANGED,
                ["Changes affect documented parts of the code", f"No longer found: {names}"],
                Severity.MAJOR, list(sections), score,
            )

        if declaration_counts_changed(old_model, new_model):
            return _regenerate(0.85, ReasonCode.STRUCTURAL_CHANGES,
                               "Classes, functions, interfaces or traits were added or removed",
                               Severity.MAJOR, affected_sections=list(sections), relevance_score=score)

        return _regenerate(0.6, ReasonCode.UNCERTAIN_IMPACT,
                           "Impact of the change is unclear; regenerating to be safe",
                           Severity.UNKNOWN, relevance_score=score)

    # ------------------------------------------------------------------
    # Parse failure
    # ------------------------------------------------------------------

    def _fallback_result(
        self,
        old_source: str,
        new_source: str,
        error: Optional[ParseError],
    ) -> DecisionResult:
        analysis = self.fallback.analyze(old_source, new_source)
        reasoning: List[str] = []
        if error is not None:
            reasoning.append(f"Structural parse failed: {error}")
        else:
            reasoning.append("Structural analysis failed unexpectedly")

        if analysis.structural_changes:
            reasoning.append("Declaration counts changed: " + "; ".join(analysis.describe()))
            return DecisionResult(True, 0.85, ReasonCode.STRUCTURAL_CHANGES, reasoning,
                                  Severity.MAJOR, [], MAX_SCORE)

        reasoning.append("Impact of the change is unclear; regenerating to be safe")
        return DecisionResult(True, 0.6, ReasonCode.UNCERTAIN_IMPACT, reasoning,
                              Severity.UNKNOWN, [], MAX_SCORE)
