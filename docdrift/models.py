"""Structural model of one source version, plus documentation metadata.

Every type here is an immutable snapshot. A :class:`StructuralModel` is
built fresh by :class:`~docdrift.parser.StructureExtractor` for each parse
and never references the model it will later be diffed against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .errors import InvalidInputError


class Visibility(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    @classmethod
    def from_keyword(cls, keyword: Optional[str]) -> "Visibility":
        """Map a modifier keyword to a visibility; anything unknown is public."""
        if keyword:
            try:
                return cls(keyword.strip().lower())
            except ValueError:
                pass
        return cls.PUBLIC


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    type: Optional[str] = None
    default: Optional[str] = None
    by_ref: bool = False
    variadic: bool = False


@dataclass(frozen=True)
class MethodInfo:
    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_abstract: bool = False
    is_final: bool = False
    parameters: Tuple[ParameterInfo, ...] = ()
    return_type: Optional[str] = None

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


@dataclass(frozen=True)
class FunctionInfo:
    name: str
    parameters: Tuple[ParameterInfo, ...] = ()
    return_type: Optional[str] = None
    by_ref: bool = False


@dataclass(frozen=True)
class PropertyInfo:
    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    type: Optional[str] = None
    default: Optional[str] = None

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


@dataclass(frozen=True)
class ConstantInfo:
    name: str
    visibility: Visibility = Visibility.PUBLIC
    type: Optional[str] = None
    value: Optional[str] = None

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


@dataclass(frozen=True)
class DeclarationInfo:
    """Members shared by classes, interfaces and traits."""
    name: str
    methods: Tuple[MethodInfo, ...] = ()
    properties: Tuple[PropertyInfo, ...] = ()
    constants: Tuple[ConstantInfo, ...] = ()

    def public_methods(self) -> Tuple[MethodInfo, ...]:
        return tuple(m for m in self.methods if m.is_public)

    def public_properties(self) -> Tuple[PropertyInfo, ...]:
        return tuple(p for p in self.properties if p.is_public)

    def find_method(self, name: str) -> Optional[MethodInfo]:
        for method in self.methods:
            if method.name == name:
                return method
        return None


@dataclass(frozen=True)
class ClassInfo(DeclarationInfo):
    extends: Optional[str] = None
    implements: FrozenSet[str] = frozenset()
    is_abstract: bool = False
    is_final: bool = False


@dataclass(frozen=True)
class InterfaceInfo(DeclarationInfo):
    extends: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class TraitInfo(DeclarationInfo):
    pass


@dataclass(frozen=True)
class StructuralModel:
    """Declaration-level snapshot of one version of a source file."""
    namespace: Optional[str] = None
    imports: FrozenSet[str] = frozenset()
    classes: Dict[str, ClassInfo] = field(default_factory=dict)
    interfaces: Dict[str, InterfaceInfo] = field(default_factory=dict)
    traits: Dict[str, TraitInfo] = field(default_factory=dict)
    functions: Tuple[FunctionInfo, ...] = ()
    constants: Tuple[ConstantInfo, ...] = ()

    @classmethod
    def empty(cls) -> "StructuralModel":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (
            self.namespace or self.imports or self.classes or self.interfaces
            or self.traits or self.functions or self.constants
        )

    def declarations(self) -> List[DeclarationInfo]:
        """Classes, interfaces and traits in a stable order."""
        return [*self.classes.values(), *self.interfaces.values(), *self.traits.values()]

    def function_names(self) -> FrozenSet[str]:
        return frozenset(f.name for f in self.functions)

    def constant_names(self) -> FrozenSet[str]:
        return frozenset(c.name for c in self.constants)


# ===================================================================
# Existing documentation
# ===================================================================

@dataclass(frozen=True)
class DocumentedElement:
    type: str
    name: str


@dataclass(frozen=True)
class DocMetadata:
    """What is known about the documentation already generated for a file."""
    path: str
    content: str
    sections: Dict[str, List[str]] = field(default_factory=dict)
    documented_elements: Tuple[DocumentedElement, ...] = ()
    last_modified_at: Optional[float] = None

    @property
    def section_titles(self) -> List[str]:
        return list(self.sections.keys())

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DocMetadata":
        """Build metadata from a loosely-typed mapping, rejecting malformed input."""
        for required in ("path", "content"):
            if required not in payload or payload[required] is None:
                raise InvalidInputError(f"Documentation metadata is missing '{required}'")

        elements = []
        for raw in payload.get("documented_elements") or []:
            if not isinstance(raw, Mapping) or not raw.get("type") or not raw.get("name"):
                raise InvalidInputError(
                    f"Documented element must carry 'type' and 'name', got {raw!r}"
                )
            elements.append(DocumentedElement(type=str(raw["type"]), name=str(raw["name"])))

        sections = payload.get("sections") or {}
        if not isinstance(sections, Mapping):
            raise InvalidInputError("Documentation 'sections' must be a mapping of title to lines")

        return cls(
            path=str(payload["path"]),
            content=str(payload["content"]),
            sections={str(k): [str(line) for line in v] for k, v in sections.items()},
            documented_elements=tuple(elements),
            last_modified_at=payload.get("last_modified_at"),
        )
