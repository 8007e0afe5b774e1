"""docdrift: decide whether generated PHP documentation has gone stale."""

__version__ = "0.3.0"

from .decision import DecisionCascade, DecisionResult, ReasonCode, Severity  # noqa: E402
from .differ import DiffReport, StructuralDiffer  # noqa: E402
from .errors import DocdriftError, GitSourceError, InvalidInputError, ParseError  # noqa: E402
from .models import DocMetadata, DocumentedElement, StructuralModel, Visibility  # noqa: E402
from .parser import StructureExtractor  # noqa: E402

__all__ = [
    "__version__",
    "DecisionCascade",
    "DecisionResult",
    "DiffReport",
    "DocMetadata",
    "DocdriftError",
    "DocumentedElement",
    "GitSourceError",
    "InvalidInputError",
    "ParseError",
    "ReasonCode",
    "Severity",
    "StructuralDiffer",
    "StructuralModel",
    "StructureExtractor",
    "Visibility",
]
