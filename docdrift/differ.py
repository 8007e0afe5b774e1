"""Declaration-level diffing of two structural models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, TypeVar

from .models import ClassInfo, DeclarationInfo, InterfaceInfo, StructuralModel

T = TypeVar("T")


@dataclass(frozen=True)
class SetDiff:
    """Added / removed names between two versions."""
    added: FrozenSet[str] = frozenset()
    removed: FrozenSet[str] = frozenset()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    def to_dict(self) -> Dict[str, Any]:
        return {"added": sorted(self.added), "removed": sorted(self.removed)}


@dataclass(frozen=True)
class NamedChanges(SetDiff):
    """Added / removed / modified members, matched by name."""
    modified: FrozenSet[str] = frozenset()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "modified": sorted(self.modified)}


@dataclass(frozen=True)
class ModifierChanges:
    abstract: bool = False
    final: bool = False

    @property
    def has_changes(self) -> bool:
        return self.abstract or self.final


@dataclass(frozen=True)
class MemberDiff:
    """How one class, interface or trait changed between versions."""
    extends_changed: bool = False
    implements_changes: SetDiff = field(default_factory=SetDiff)
    methods_changes: NamedChanges = field(default_factory=NamedChanges)
    properties_changes: NamedChanges = field(default_factory=NamedChanges)
    constants_changes: NamedChanges = field(default_factory=NamedChanges)
    modifiers_changed: ModifierChanges = field(default_factory=ModifierChanges)

    @property
    def has_changes(self) -> bool:
        return (
            self.extends_changed
            or self.implements_changes.has_changes
            or self.methods_changes.has_changes
            or self.properties_changes.has_changes
            or self.constants_changes.has_changes
            or self.modifiers_changed.has_changes
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extends_changed": self.extends_changed,
            "implements_changes": self.implements_changes.to_dict(),
            "methods_changes": self.methods_changes.to_dict(),
            "properties_changes": self.properties_changes.to_dict(),
            "constants_changes": self.constants_changes.to_dict(),
            "modifiers_changed": {
                "abstract": self.modifiers_changed.abstract,
                "final": self.modifiers_changed.final,
            },
        }


@dataclass(frozen=True)
class CategoryDiff:
    """Per-category result; ``modified`` maps a name to its member diff.

    Functions and constants have no nested members, so their ``modified``
    values are ``None``.
    """
    added: FrozenSet[str] = frozenset()
    removed: FrozenSet[str] = frozenset()
    modified: Mapping[str, Optional[MemberDiff]] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": sorted(self.added),
            "removed": sorted(self.removed),
            "modified": {
                name: (diff.to_dict() if diff is not None else None)
                for name, diff in sorted(self.modified.items())
            },
        }


@dataclass(frozen=True)
class DiffReport:
    old: StructuralModel = field(default_factory=StructuralModel, compare=False, repr=False)
    new: StructuralModel = field(default_factory=StructuralModel, compare=False, repr=False)
    namespace_changed: bool = False
    uses: SetDiff = field(default_factory=SetDiff)
    classes: CategoryDiff = field(default_factory=CategoryDiff)
    interfaces: CategoryDiff = field(default_factory=CategoryDiff)
    traits: CategoryDiff = field(default_factory=CategoryDiff)
    functions: CategoryDiff = field(default_factory=CategoryDiff)
    constants: CategoryDiff = field(default_factory=CategoryDiff)

    @property
    def has_changes(self) -> bool:
        return self.namespace_changed or any(
            part.has_changes for part in (
                self.uses, self.classes, self.interfaces, self.traits,
                self.functions, self.constants,
            )
        )

    def change_types(self) -> list:
        flags = [
            ("namespace", self.namespace_changed),
            ("imports", self.uses.has_changes),
            ("classes", self.classes.has_changes),
            ("interfaces", self.interfaces.has_changes),
            ("traits", self.traits.has_changes),
            ("functions", self.functions.has_changes),
            ("constants", self.constants.has_changes),
        ]
        return [name for name, changed in flags if changed]

    def summary(self) -> Dict[str, Any]:
        """Coarse severity of the structural change."""
        types = self.change_types()
        if not types:
            severity = "none"
        elif {"classes", "interfaces", "functions"} & set(types):
            severity = "major"
        elif {"imports", "constants"} & set(types):
            severity = "minor"
        else:
            severity = "minimal"
        return {"total_changes": len(types), "change_types": types, "severity": severity}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_changes": self.has_changes,
            "namespace_changed": self.namespace_changed,
            "uses": self.uses.to_dict(),
            "classes": self.classes.to_dict(),
            "interfaces": self.interfaces.to_dict(),
            "traits": self.traits.to_dict(),
            "functions": self.functions.to_dict(),
            "constants": self.constants.to_dict(),
            "summary": self.summary(),
        }


def _by_name(items: Iterable[T]) -> Dict[str, T]:
    # Later declarations overwrite earlier ones with the same name.
    return {item.name: item for item in items}  # type: ignore[attr-defined]


def _set_diff(old: Iterable[str], new: Iterable[str]) -> SetDiff:
    old_set, new_set = frozenset(old), frozenset(new)
    return SetDiff(added=new_set - old_set, removed=old_set - new_set)


def compare_named(old_items: Sequence[T], new_items: Sequence[T]) -> NamedChanges:
    """Match members by name; a member is modified if any field differs."""
    old_map, new_map = _by_name(old_items), _by_name(new_items)
    common = old_map.keys() & new_map.keys()
    return NamedChanges(
        added=frozenset(new_map.keys() - old_map.keys()),
        removed=frozenset(old_map.keys() - new_map.keys()),
        modified=frozenset(name for name in common if old_map[name] != new_map[name]),
    )


class StructuralDiffer:
    """Compares two :class:`StructuralModel` snapshots."""

    def diff(self, old: StructuralModel, new: StructuralModel) -> DiffReport:
        return DiffReport(
            old=old,
            new=new,
            namespace_changed=old.namespace != new.namespace,
            uses=_set_diff(old.imports, new.imports),
            classes=self._compare_declarations(old.classes, new.classes),
            interfaces=self._compare_declarations(old.interfaces, new.interfaces),
            traits=self._compare_declarations(old.traits, new.traits),
            functions=self._compare_flat(old.functions, new.functions),
            constants=self._compare_flat(old.constants, new.constants),
        )

    def _compare_declarations(
        self,
        old: Mapping[str, DeclarationInfo],
        new: Mapping[str, DeclarationInfo],
    ) -> CategoryDiff:
        modified: Dict[str, Optional[MemberDiff]] = {}
        for name in sorted(old.keys() & new.keys()):
            member_diff = self.compare_declaration(old[name], new[name])
            if member_diff.has_changes:
                modified[name] = member_diff
        return CategoryDiff(
            added=frozenset(new.keys() - old.keys()),
            removed=frozenset(old.keys() - new.keys()),
            modified=modified,
        )

    @staticmethod
    def _compare_flat(old_items: Sequence[Any], new_items: Sequence[Any]) -> CategoryDiff:
        changes = compare_named(old_items, new_items)
        return CategoryDiff(
            added=changes.added,
            removed=changes.removed,
            modified={name: None for name in sorted(changes.modified)},
        )

    @staticmethod
    def compare_declaration(old: DeclarationInfo, new: DeclarationInfo) -> MemberDiff:
        """Structural comparison of one class-like declaration."""
        extends_changed = False
        implements = SetDiff()
        modifiers = ModifierChanges()

        if isinstance(old, ClassInfo) and isinstance(new, ClassInfo):
            extends_changed = old.extends != new.extends
            implements = _set_diff(old.implements, new.implements)
            modifiers = ModifierChanges(
                abstract=old.is_abstract != new.is_abstract,
                final=old.is_final != new.is_final,
            )
        elif isinstance(old, InterfaceInfo) and isinstance(new, InterfaceInfo):
            extends_changed = old.extends != new.extends

        return MemberDiff(
            extends_changed=extends_changed,
            implements_changes=implements,
            methods_changes=compare_named(old.methods, new.methods),
            properties_changes=compare_named(old.properties, new.properties),
            constants_changes=compare_named(old.constants, new.constants),
            modifiers_changed=modifiers,
        )
