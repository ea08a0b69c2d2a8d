import pytest

from meshgate.graphql_ast import (
    ChildValue,
    Definition,
    Field,
    FieldDefinition,
    FragmentDefinition,
    FragmentSpread,
    InlineFragment,
    OperationContext,
    OperationDefinition,
    Type,
    Value,
    ValueKind,
    selection_set_to_fields,
)


def test_type_name_of_list_is_inner_name():
    t = Type(elem=Type("Movie", non_null=True), non_null=True)
    assert t.name() == "Movie"


def test_type_str_list():
    assert str(Type(elem=Type("ID", non_null=True))) == "[ID!]"


def test_type_str_named_roundtrip():
    assert str(Type("Boolean", non_null=True)) == "Boolean" + "!"
    assert str(Type("Boolean")) == "Boolean"


def test_value_variable_str():
    assert str(Value(ValueKind.VARIABLE, "id")) == "$id"


def test_value_list_str():
    value = Value(
        ValueKind.LIST,
        children=[
            ChildValue("", Value(ValueKind.STRING, "123")),
            ChildValue("", Value(ValueKind.VARIABLE, "id")),
            ChildValue("", Value(ValueKind.STRING, "789")),
        ],
    )
    assert str(value) == '["123",$id,"789"]'


def test_value_nested_object_str():
    inner = Value(ValueKind.OBJECT, children=[ChildValue("id", Value(ValueKind.VARIABLE, "id"))])
    outer = Value(ValueKind.OBJECT, children=[ChildValue("sub", inner)])
    assert str(outer) == "{sub:{id:$id}}"


@pytest.mark.parametrize("kind", [ValueKind.INT, ValueKind.ENUM, ValueKind.BOOLEAN, ValueKind.NULL])
def test_scalar_values_print_raw(kind):
    assert str(Value(kind, "RAWTEXT")) == "RAWTEXT"


@pytest.mark.parametrize(
    "kind,expected", [("INTERFACE", True), ("UNION", True), ("OBJECT", False), ("SCALAR", False)]
)
def test_is_abstract_type(kind, expected):
    assert Definition("Thing", kind=kind).is_abstract_type() is expected


def test_definition_field_lookup():
    name_def = FieldDefinition("name", Type("String", non_null=True))
    gizmo = Definition("Gizmo", fields=[name_def])
    assert gizmo.field("name") is name_def
    assert gizmo.field("missing") is None


def test_field_alias_defaults_to_name():
    assert Field("gizmo").alias == "gizmo"
    assert Field("gizmo", alias="g").alias == "g"


def test_selection_set_to_fields_keeps_only_fields():
    a = Field("a")
    b = Field("b")
    fragment = InlineFragment("Gizmo", selection_set=[Field("c")])
    spread = FragmentSpread("Frag", definition=FragmentDefinition("Frag", "Gizmo"))
    result = selection_set_to_fields([a, fragment, b, spread])
    assert len(result) == 2
    assert result[0] is a and result[1] is b


def test_operation_context_takes_name_from_operation():
    ctx = OperationContext(operation=OperationDefinition(name="search"))
    assert ctx.operation_name == "search"
    assert ctx.variables == {}