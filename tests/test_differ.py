"""Tests for declaration-level structural diffing."""

import pytest

from docdrift.differ import StructuralDiffer
from docdrift.models import (
    ClassInfo,
    ConstantInfo,
    FunctionInfo,
    InterfaceInfo,
    MethodInfo,
    ParameterInfo,
    PropertyInfo,
    StructuralModel,
    Visibility,
)
from docdrift.parser import StructureExtractor


differ = StructuralDiffer()


def _model(**classes) -> StructuralModel:
    return StructuralModel(classes={name: cls for name, cls in classes.items()})


def test_diff_is_reflexive(sample_php: str):
    """Diffing a model against itself never reports changes."""
    model = StructureExtractor().extract(sample_php)
    report = differ.diff(model, model)
    assert report.has_changes is False
    assert report.summary()["severity"] == "none"


def test_diff_of_two_parses_is_reflexive(sample_php: str):
    extractor = StructureExtractor()
    assert not differ.diff(extractor.extract(sample_php), extractor.extract(sample_php)).has_changes


def test_added_and_removed_classes():
    old = _model(A=ClassInfo(name="A"), B=ClassInfo(name="B"))
    new = _model(B=ClassInfo(name="B"), C=ClassInfo(name="C"))
    report = differ.diff(old, new)
    assert report.classes.added == frozenset({"C"})
    assert report.classes.removed == frozenset({"A"})
    assert report.classes.modified == {}
    assert report.summary()["severity"] == "major"


def test_method_signature_change_is_modified():
    old = _model(A=ClassInfo(name="A", methods=(MethodInfo(name="run", return_type="void"),)))
    new = _model(A=ClassInfo(name="A", methods=(
        MethodInfo(name="run", return_type="void", parameters=(ParameterInfo(name="x", type="string"),)),
    )))
    report = differ.diff(old, new)
    member = report.classes.modified["A"]
    assert member.methods_changes.modified == frozenset({"run"})
    assert not member.methods_changes.added
    assert report.has_changes


def test_parameter_order_matters():
    a, b = ParameterInfo(name="a"), ParameterInfo(name="b")
    old = _model(A=ClassInfo(name="A", methods=(MethodInfo(name="f", parameters=(a, b)),)))
    new = _model(A=ClassInfo(name="A", methods=(MethodInfo(name="f", parameters=(b, a)),)))
    assert differ.diff(old, new).classes.modified["A"].methods_changes.modified == frozenset({"f"})


def test_class_header_changes():
    old = _model(A=ClassInfo(name="A", extends="Base", implements=frozenset({"I"})))
    new = _model(A=ClassInfo(name="A", extends="Other", implements=frozenset({"I", "J"}), is_final=True))
    member = differ.diff(old, new).classes.modified["A"]
    assert member.extends_changed
    assert member.implements_changes.added == frozenset({"J"})
    assert member.modifiers_changed.final
    assert not member.modifiers_changed.abstract


def test_implements_is_compared_as_set():
    old = _model(A=ClassInfo(name="A", implements=frozenset({"I", "J"})))
    new = _model(A=ClassInfo(name="A", implements=frozenset({"J", "I"})))
    assert not differ.diff(old, new).has_changes


def test_property_and_constant_changes():
    old = _model(A=ClassInfo(
        name="A",
        properties=(PropertyInfo(name="x", visibility=Visibility.PRIVATE),),
        constants=(ConstantInfo(name="K", value="1"),),
    ))
    new = _model(A=ClassInfo(
        name="A",
        properties=(PropertyInfo(name="x", visibility=Visibility.PUBLIC),),
        constants=(ConstantInfo(name="K", value="2"), ConstantInfo(name="L", value="3")),
    ))
    member = differ.diff(old, new).classes.modified["A"]
    assert member.properties_changes.modified == frozenset({"x"})
    assert member.constants_changes.modified == frozenset({"K"})
    assert member.constants_changes.added == frozenset({"L"})


def test_interfaces_reuse_member_comparison():
    old = StructuralModel(interfaces={"I": InterfaceInfo(name="I")})
    new = StructuralModel(interfaces={"I": InterfaceInfo(name="I", methods=(MethodInfo(name="go"),))})
    report = differ.diff(old, new)
    assert report.interfaces.modified["I"].methods_changes.added == frozenset({"go"})
    assert report.change_types() == ["interfaces"]


def test_functions_and_constants_have_flat_modified():
    old = StructuralModel(functions=(FunctionInfo(name="f"),), constants=(ConstantInfo(name="C", value="1"),))
    new = StructuralModel(
        functions=(FunctionInfo(name="f", return_type="int"),),
        constants=(ConstantInfo(name="C", value="2"),),
    )
    report = differ.diff(old, new)
    assert report.functions.modified == {"f": None}
    assert report.constants.modified == {"C": None}


@pytest.mark.parametrize(
    "old,new,severity",
    [
        (StructuralModel(namespace="A"), StructuralModel(namespace="B"), "minimal"),
        (StructuralModel(imports=frozenset({"X"})), StructuralModel(), "minor"),
        (StructuralModel(), StructuralModel(functions=(FunctionInfo(name="f"),)), "major"),
    ],
)
def test_summary_severity(old, new, severity):
    assert differ.diff(old, new).summary()["severity"] == severity


def test_to_dict_is_json_ready():
    import json

    old = _model(A=ClassInfo(name="A", methods=(MethodInfo(name="a"),)))
    new = _model(A=ClassInfo(name="A", methods=(MethodInfo(name="b"),)))
    payload = differ.diff(old, new).to_dict()
    json.dumps(payload)
    assert payload["classes"]["modified"]["A"]["methods_changes"] == {
        "added": ["b"], "removed": ["a"], "modified": [],
    }


def test_report_equality_ignores_models():
    a = StructuralModel(classes={"A": ClassInfo(name="A")})
    b = StructuralModel(classes={"B": ClassInfo(name="B")})
    assert differ.diff(a, a) == differ.diff(b, b)
