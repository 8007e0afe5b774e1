"""PHP structure extraction built on Tree-sitter.

Produces a language-agnostic :class:`~docdrift.models.StructuralModel` from
one version of a PHP source file in a single walk of the concrete syntax
tree:

- namespace and ``use`` imports (plain, aliased and grouped)
- classes / interfaces / traits with their methods, properties, constants
- free functions and top-level constants

Tree-sitter is error tolerant, so a tree is always produced; any ``ERROR``
or ``MISSING`` node turns into a :class:`~docdrift.errors.ParseError`
pointing at the first offending location.
"""

from __future__ import annotations

import importlib
import logging
import re
import threading
from typing import Any, Dict, List, Optional, Tuple

from .errors import ParseError
from .models import (
    ClassInfo,
    ConstantInfo,
    FunctionInfo,
    InterfaceInfo,
    MethodInfo,
    ParameterInfo,
    PropertyInfo,
    StructuralModel,
    TraitInfo,
    Visibility,
)

logger = logging.getLogger(__name__)

# Dialect -> (grammar module, language factory)
_GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "php": ("tree_sitter_php", "language_php"),
    "php_only": ("tree_sitter_php", "language_php_only"),
}

_LANGUAGES: Dict[str, Any] = {}
_LANGUAGES_LOCK = threading.Lock()

# Statements whose children may hold further top-level declarations.
_CONTAINER_STATEMENTS = {
    "compound_statement",
    "if_statement",
    "else_clause",
    "else_if_clause",
    "declare_statement",
}

_WHITESPACE_RE = re.compile(r"\s+")
_OPEN_TAG_RE = re.compile(r"<\?(?:php\b|=)", re.IGNORECASE)


def canonical_type(type_text: Optional[str]) -> Optional[str]:
    """Render a type annotation as a canonical string.

    Whitespace is removed so ``int | string`` and ``int|string`` compare
    equal. Spelling variants such as ``?Foo`` and ``Foo|null`` are kept
    distinct.
    """
    if type_text is None:
        return None
    rendered = _WHITESPACE_RE.sub("", type_text)
    return rendered or None


def _render_value(value_text: Optional[str]) -> Optional[str]:
    if value_text is None:
        return None
    return " ".join(value_text.split())


def _load_language(dialect: str) -> Any:
    with _LANGUAGES_LOCK:
        if dialect in _LANGUAGES:
            return _LANGUAGES[dialect]

        mod_name, factory = _GRAMMAR_MODULES[dialect]
        try:
            from tree_sitter import Language

            mod = importlib.import_module(mod_name)
            language = Language(getattr(mod, factory)())
        except (ImportError, AttributeError, ValueError) as exc:
            logger.warning(
                "Grammar package '%s' could not provide '%s': %s. "
                "Install with: pip install %s",
                mod_name, factory, exc, mod_name.replace("_", "-"),
            )
            raise ParseError(f"PHP grammar unavailable: {exc}") from exc

        _LANGUAGES[dialect] = language
        logger.debug("Loaded tree-sitter grammar for %s", dialect)
        return language


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")


def _first_error(root: Any) -> Optional[Any]:
    """Return the first ERROR / MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


class StructureExtractor:
    """Parses PHP source into a :class:`StructuralModel`.

    Instances hold no per-parse state and can be shared between threads;
    a fresh tree-sitter parser is created for every call.
    """

    def select_dialect(self, source: str) -> str:
        # Files with an open tag may carry inline HTML; bare snippets are pure PHP.
        if source.lstrip().startswith("<?") or _OPEN_TAG_RE.search(source):
            return "php"
        return "php_only"

    def extract(self, source: str) -> StructuralModel:
        """Parse *source*; raise :class:`ParseError` if it is malformed."""
        from tree_sitter import Parser as TSParser

        language = _load_language(self.select_dialect(source))
        tree = TSParser(language).parse(source.encode("utf-8"))
        root = tree.root_node

        if root.has_error:
            bad = _first_error(root)
            if bad is not None:
                line, column = bad.start_point[0] + 1, bad.start_point[1] + 1
                kind = "Missing token" if bad.is_missing else "Syntax error"
            else:
                line, column, kind = None, None, "Syntax error"
            logger.debug("Parse failure at %s:%s", line, column)
            raise ParseError(kind, line=line, column=column)

        builder = _ModelBuilder()
        builder.walk(root)
        return builder.build()

    def extract_or_empty(self, source: str) -> Tuple[StructuralModel, Optional[ParseError]]:
        """Like :meth:`extract` but substitute an empty model on failure."""
        try:
            return self.extract(source), None
        except ParseError as exc:
            return StructuralModel.empty(), exc


class _ModelBuilder:
    """Accumulates declarations during one walk of a syntax tree."""

    def __init__(self) -> None:
        self.namespace: Optional[str] = None
        self.imports: List[str] = []
        self.classes: Dict[str, ClassInfo] = {}
        self.interfaces: Dict[str, InterfaceInfo] = {}
        self.traits: Dict[str, TraitInfo] = {}
        self.functions: List[FunctionInfo] = []
        self.constants: List[ConstantInfo] = []

    def build(self) -> StructuralModel:
        return StructuralModel(
            namespace=self.namespace,
            imports=frozenset(self.imports),
            classes=dict(self.classes),
            interfaces=dict(self.interfaces),
            traits=dict(self.traits),
            functions=tuple(self.functions),
            constants=tuple(self.constants),
        )

    # ------------------------------------------------------------------
    # Top-level walk
    # ------------------------------------------------------------------

    def walk(self, ts_node: Any) -> None:
        for child in ts_node.named_children:
            kind = child.type
            if kind == "namespace_definition":
                name = child.child_by_field_name("name")
                self.namespace = _text(name) if name is not None else None
                body = child.child_by_field_name("body")
                if body is not None:
                    self.walk(body)
            elif kind == "namespace_use_declaration":
                self.imports.extend(self._use_names(child))
            elif kind == "class_declaration":
                info = self._class(child)
                if info is not None:
                    self.classes[info.name] = info
            elif kind == "interface_declaration":
                info = self._interface(child)
                if info is not None:
                    self.interfaces[info.name] = info
            elif kind == "trait_declaration":
                info = self._trait(child)
                if info is not None:
                    self.traits[info.name] = info
            elif kind == "function_definition":
                info = self._function(child)
                if info is not None:
                    self.functions.append(info)
            elif kind == "const_declaration":
                self.constants.extend(self._constants(child))
            elif kind in _CONTAINER_STATEMENTS:
                self.walk(child)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    @staticmethod
    def _clause_name(clause: Any) -> Optional[str]:
        for sub in clause.named_children:
            if sub.type in ("name", "qualified_name", "namespace_name"):
                return _text(sub).lstrip("\\")
        return None

    def _use_names(self, decl: Any) -> List[str]:
        names: List[str] = []
        prefix: Optional[str] = None
        for child in decl.named_children:
            if child.type == "namespace_name":
                prefix = _text(child).lstrip("\\")
            elif child.type == "namespace_use_clause":
                name = self._clause_name(child)
                if name:
                    names.append(name)
            elif child.type == "namespace_use_group":
                for clause in child.named_children:
                    if clause.type not in ("namespace_use_clause", "namespace_use_group_clause"):
                        continue
                    name = self._clause_name(clause)
                    if name:
                        names.append(f"{prefix}\\{name}" if prefix else name)
        return names

    # ------------------------------------------------------------------
    # Class-like declarations
    # ------------------------------------------------------------------

    @staticmethod
    def _name_list(clause: Optional[Any]) -> List[str]:
        if clause is None:
            return []
        return [
            _text(n) for n in clause.named_children
            if n.type in ("name", "qualified_name")
        ]

    @staticmethod
    def _child_of_type(node: Any, kind: str) -> Optional[Any]:
        for child in node.children:
            if child.type == kind:
                return child
        return None

    def _class(self, node: Any) -> Optional[ClassInfo]:
        name = node.child_by_field_name("name")
        if name is None:
            return None
        parents = self._name_list(self._child_of_type(node, "base_clause"))
        interfaces = self._name_list(self._child_of_type(node, "class_interface_clause"))
        methods, properties, constants = self._members(node.child_by_field_name("body"))
        modifier_types = {c.type for c in node.children}
        return ClassInfo(
            name=_text(name),
            extends=parents[0] if parents else None,
            implements=frozenset(interfaces),
            is_abstract="abstract_modifier" in modifier_types,
            is_final="final_modifier" in modifier_types,
            methods=methods,
            properties=properties,
            constants=constants,
        )

    def _interface(self, node: Any) -> Optional[InterfaceInfo]:
        name = node.child_by_field_name("name")
        if name is None:
            return None
        methods, _, constants = self._members(node.child_by_field_name("body"))
        return InterfaceInfo(
            name=_text(name),
            extends=frozenset(self._name_list(self._child_of_type(node, "base_clause"))),
            methods=methods,
            constants=constants,
        )

    def _trait(self, node: Any) -> Optional[TraitInfo]:
        name = node.child_by_field_name("name")
        if name is None:
            return None
        methods, properties, constants = self._members(node.child_by_field_name("body"))
        return TraitInfo(name=_text(name), methods=methods, properties=properties, constants=constants)

    def _members(
        self, body: Optional[Any],
    ) -> Tuple[Tuple[MethodInfo, ...], Tuple[PropertyInfo, ...], Tuple[ConstantInfo, ...]]:
        methods: List[MethodInfo] = []
        properties: List[PropertyInfo] = []
        constants: List[ConstantInfo] = []
        if body is None:
            return (), (), ()

        for stmt in body.named_children:
            if stmt.type == "method_declaration":
                method = self._method(stmt)
                if method is None:
                    continue
                methods.append(method)
                if method.name.lower() == "__construct":
                    properties.extend(self._promoted_properties(stmt))
            elif stmt.type == "property_declaration":
                properties.extend(self._properties(stmt))
            elif stmt.type == "const_declaration":
                constants.extend(self._constants(stmt))
        return tuple(methods), tuple(properties), tuple(constants)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    @staticmethod
    def _visibility(node: Any) -> Visibility:
        modifier = _ModelBuilder._child_of_type(node, "visibility_modifier")
        if modifier is None:
            return Visibility.PUBLIC
        # PHP 8.4 asymmetric visibility ("public private(set)") keeps the read side.
        return Visibility.from_keyword(_text(modifier).split("(")[0])

    def _method(self, node: Any) -> Optional[MethodInfo]:
        name = node.child_by_field_name("name")
        if name is None:
            return None
        modifier_types = {c.type for c in node.children}
        return_type = node.child_by_field_name("return_type")
        return MethodInfo(
            name=_text(name),
            visibility=self._visibility(node),
            is_static="static_modifier" in modifier_types,
            is_abstract="abstract_modifier" in modifier_types,
            is_final="final_modifier" in modifier_types,
            parameters=self._parameters(node.child_by_field_name("parameters")),
            return_type=canonical_type(_text(return_type)) if return_type is not None else None,
        )

    def _function(self, node: Any) -> Optional[FunctionInfo]:
        name = node.child_by_field_name("name")
        if name is None:
            return None
        return_type = node.child_by_field_name("return_type")
        return FunctionInfo(
            name=_text(name),
            parameters=self._parameters(node.child_by_field_name("parameters")),
            return_type=canonical_type(_text(return_type)) if return_type is not None else None,
            by_ref=any(c.type in ("reference_modifier", "&") for c in node.children),
        )

    def _parameters(self, params: Optional[Any]) -> Tuple[ParameterInfo, ...]:
        if params is None:
            return ()
        result: List[ParameterInfo] = []
        for param in params.named_children:
            if param.type not in ("simple_parameter", "variadic_parameter", "property_promotion_parameter"):
                continue
            name_node = param.child_by_field_name("name")
            if name_node is None:
                continue
            by_ref = any(c.type in ("reference_modifier", "&") for c in param.children)
            if name_node.type == "by_ref":
                by_ref = True
            type_node = param.child_by_field_name("type")
            default = param.child_by_field_name("default_value")
            result.append(ParameterInfo(
                name=_text(name_node).lstrip("&").strip().lstrip("$"),
                type=canonical_type(_text(type_node)) if type_node is not None else None,
                default=_render_value(_text(default)) if default is not None else None,
                by_ref=by_ref,
                variadic=param.type == "variadic_parameter",
            ))
        return tuple(result)

    def _promoted_properties(self, ctor: Any) -> List[PropertyInfo]:
        params = ctor.child_by_field_name("parameters")
        if params is None:
            return []
        promoted: List[PropertyInfo] = []
        for param in params.named_children:
            if param.type != "property_promotion_parameter":
                continue
            name_node = param.child_by_field_name("name")
            if name_node is None:
                continue
            type_node = param.child_by_field_name("type")
            default = param.child_by_field_name("default_value")
            promoted.append(PropertyInfo(
                name=_text(name_node).lstrip("&").strip().lstrip("$"),
                visibility=self._visibility(param),
                type=canonical_type(_text(type_node)) if type_node is not None else None,
                default=_render_value(_text(default)) if default is not None else None,
            ))
        return promoted

    def _properties(self, node: Any) -> List[PropertyInfo]:
        visibility = self._visibility(node)
        is_static = self._child_of_type(node, "static_modifier") is not None
        type_node = node.child_by_field_name("type")
        prop_type = canonical_type(_text(type_node)) if type_node is not None else None

        props: List[PropertyInfo] = []
        for element in node.named_children:
            if element.type != "property_element":
                continue
            name_node = element.child_by_field_name("name") or self._child_of_type(element, "variable_name")
            if name_node is None:
                continue
            default = element.child_by_field_name("default_value")
            if default is None:
                initializer = self._child_of_type(element, "property_initializer")
                if initializer is not None and initializer.named_children:
                    default = initializer.named_children[-1]
            props.append(PropertyInfo(
                name=_text(name_node).lstrip("$"),
                visibility=visibility,
                is_static=is_static,
                type=prop_type,
                default=_render_value(_text(default)) if default is not None else None,
            ))
        return props

    def _constants(self, node: Any) -> List[ConstantInfo]:
        visibility = self._visibility(node)
        type_node = node.child_by_field_name("type")
        const_type = canonical_type(_text(type_node)) if type_node is not None else None

        consts: List[ConstantInfo] = []
        for element in node.named_children:
            if element.type != "const_element":
                continue
            parts = [c for c in element.named_children if c.type != "comment"]
            if not parts:
                continue
            value = parts[-1] if len(parts) > 1 else None
            consts.append(ConstantInfo(
                name=_text(parts[0]),
                visibility=visibility,
                type=const_type,
                value=_render_value(_text(value)) if value is not None else None,
            ))
        return consts
