"""Queries over the public surface of structural models.

Shared by :class:`~docdrift.scoring.ImpactScorer` and
:class:`~docdrift.decision.DecisionCascade` so both read the same answer to
"did the public API change?".
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Tuple

from .models import (
    ClassInfo,
    DeclarationInfo,
    DocMetadata,
    DocumentedElement,
    InterfaceInfo,
    MethodInfo,
    PropertyInfo,
    StructuralModel,
)

_Key = Tuple[str, str, str]


def _kind(decl: DeclarationInfo) -> str:
    if isinstance(decl, ClassInfo):
        return "class"
    if isinstance(decl, InterfaceInfo):
        return "interface"
    return "trait"


def public_methods(model: StructuralModel) -> Dict[_Key, MethodInfo]:
    """Public methods keyed by (declaration kind, declaration name, method name)."""
    return {
        (_kind(decl), decl.name, method.name): method
        for decl in model.declarations()
        for method in decl.public_methods()
    }


def public_properties(model: StructuralModel) -> Dict[_Key, PropertyInfo]:
    return {
        (_kind(decl), decl.name, prop.name): prop
        for decl in model.declarations()
        for prop in decl.public_properties()
    }


def public_methods_changed(old: StructuralModel, new: StructuralModel) -> bool:
    """A public method was added, removed, or had its signature changed."""
    return public_methods(old) != public_methods(new)


def public_api_changed(old: StructuralModel, new: StructuralModel) -> bool:
    """Public method or property count or signature differs."""
    return public_methods_changed(old, new) or public_properties(old) != public_properties(new)


def _header(decl: DeclarationInfo) -> Tuple[Any, ...]:
    if isinstance(decl, ClassInfo):
        return ("class", decl.extends, decl.implements, decl.is_abstract, decl.is_final)
    if isinstance(decl, InterfaceInfo):
        return ("interface", decl.extends)
    return ("trait",)


def public_surface(model: StructuralModel) -> Dict[str, Any]:
    """Everything a caller of the file can observe, minus imports.

    Two models with equal surfaces differ at most in non-public members
    (or in bodies, which the model does not capture).
    """
    declarations = {
        (_kind(decl), decl.name): (
            _header(decl),
            frozenset(decl.public_methods()),
            frozenset(decl.public_properties()),
            frozenset(c for c in decl.constants if c.is_public),
        )
        for decl in model.declarations()
    }
    return {
        "namespace": model.namespace,
        "declarations": declarations,
        "functions": frozenset(model.functions),
        "constants": frozenset(model.constants),
    }


def only_non_public_changes(old: StructuralModel, new: StructuralModel) -> bool:
    return public_surface(old) == public_surface(new)


def declaration_counts(model: StructuralModel) -> Tuple[int, int, int, int]:
    return (len(model.classes), len(model.functions), len(model.interfaces), len(model.traits))


def declaration_counts_changed(old: StructuralModel, new: StructuralModel) -> bool:
    return declaration_counts(old) != declaration_counts(new)


# ===================================================================
# Documented elements
# ===================================================================

def _lower(names) -> FrozenSet[str]:
    return frozenset(n.lower() for n in names)


def element_exists(element: DocumentedElement, model: StructuralModel) -> bool:
    """Whether a documented element still resolves in *model*.

    Class, function and method names are case-insensitive, as in PHP.
    Unknown element types are assumed to exist.
    """
    name = element.name
    kind = element.type.lower()
    method_names = _lower(m.name for decl in model.declarations() for m in decl.methods)

    if kind == "class":
        return name.lower() in _lower(d.name for d in model.declarations())
    if kind == "interface":
        return name.lower() in _lower(model.interfaces)
    if kind == "trait":
        return name.lower() in _lower(model.traits)
    if kind == "method":
        return name.lower() in method_names
    if kind == "function":
        return name.lower() in _lower(model.function_names()) or name.lower() in method_names
    if kind == "property":
        return any(p.name == name for decl in model.declarations() for p in decl.properties)
    if kind == "constant":
        return name in model.constant_names() or any(
            c.name == name for decl in model.declarations() for c in decl.constants
        )
    return True


def missing_documented_elements(doc: DocMetadata, model: StructuralModel) -> List[DocumentedElement]:
    return [el for el in doc.documented_elements if not element_exists(el, model)]
