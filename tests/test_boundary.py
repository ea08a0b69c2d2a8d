import pytest

from meshgate.boundary import (
    INTERNAL_SERVICE_NAME,
    BoundaryField,
    batch_by,
    build_boundary_query_documents,
    build_typename_response_map,
    execute_internal_step,
    extract_and_dedupe_boundary_ids,
    extract_boundary_ids,
    extract_non_nil_boundary_results,
    trim_insertion_point_for_nested_boundary_step,
)
from meshgate.graphql_ast import (
    Argument,
    Field,
    FieldDefinition,
    OperationContext,
    OperationDefinition,
    Type,
    Value,
    ValueKind,
    VariableDefinition,
)


def _gizmos():
    return {
        "gizmos": [
            {"id": "1", "owner": {"_bramble_id": "4", "_bramble__typename": "Owner"}},
            {"id": "2", "owner": {"_bramble_id": "5", "_bramble__typename": "Owner"}},
            {"id": "3", "owner": {"_bramble_id": "6", "_bramble__typename": "Owner"}},
        ]
    }


def _slow_selection():
    string = Type(named_type="String")
    return [
        Field(name="slowField", definition=FieldDefinition("slowField", string)),
        Field(name="id", alias="_bramble_id", definition=FieldDefinition("id", Type("ID", non_null=True))),
        Field(name="__typename", alias="_bramble__typename", definition=FieldDefinition("__typename", string)),
    ]


SLOW_QL = "{ slowField _bramble_id: id _bramble__typename: __typename }"


def test_extract_boundary_ids_through_list():
    assert extract_boundary_ids(_gizmos(), ["gizmos", "owner"], "Owner") == ["4", "5", "6"]


def test_extract_boundary_ids_other_type_is_skipped():
    assert extract_boundary_ids(_gizmos(), ["gizmos", "owner"], "Gizmo") == []


def test_extract_boundary_ids_none_data():
    assert extract_boundary_ids(None, ["movie"], "Movie") == []


def test_extract_boundary_ids_skips_nulls_above_insertion_point():
    data = {
        "ns": {
            "movies": [
                {"director": {"_bramble_id": "DIRECTOR1", "_bramble__typename": "Person"}},
                {"director": None},
            ]
        }
    }
    assert extract_boundary_ids(data, ["ns", "movies", "director"], "Person") == ["DIRECTOR1"]


def test_extract_boundary_ids_nested_lists():
    data = {
        "compTitles": [
            [
                {"_bramble_id": "2", "_bramble__typename": "Movie"},
                {"_bramble_id": "3", "_bramble__typename": "Movie"},
            ]
        ]
    }
    assert extract_boundary_ids(data, ["compTitles"], "Movie") == ["2", "3"]


def test_extract_boundary_ids_unexpected_type():
    with pytest.raises(TypeError):
        extract_boundary_ids({"movie": 42}, ["movie"], "Movie")


def test_extract_boundary_ids_missing_typename():
    with pytest.raises(ValueError):
        extract_boundary_ids({"movie": {"_bramble_id": "1"}}, ["movie"], "Movie")


def test_extract_boundary_ids_missing_id():
    with pytest.raises(ValueError):
        extract_boundary_ids({"movie": {"_bramble__typename": "Movie"}}, ["movie"], "Movie")


def test_dedupe_keeps_each_id_once():
    data = {
        "movies": [
            {"_bramble_id": "1", "_bramble__typename": "Movie"},
            {"_bramble_id": "2", "_bramble__typename": "Movie"},
            {"_bramble_id": "1", "_bramble__typename": "Movie"},
        ]
    }
    raw = extract_boundary_ids(data, ["movies"], "Movie")
    deduped = extract_and_dedupe_boundary_ids(data, ["movies"], "Movie")
    assert sorted(deduped) == sorted(set(raw))
    assert len(deduped) == len(set(deduped))
    assert deduped == ["1", "2"]


def test_batch_by_preserves_items_and_limits_size():
    items = [str(i) for i in range(7)]
    batches = batch_by(items, 3)
    assert [i for batch in batches for i in batch] == items
    assert all(len(batch) <= 3 for batch in batches)
    assert len(batches) == 3


def test_batch_by_exact_and_empty():
    assert batch_by(["a", "b"], 2) == [["a", "b"]]
    assert batch_by([], 50) == [[]]


def test_boundary_documents_selection_matches_source_format():
    documents, variables = build_boundary_query_documents(
        None, None, _slow_selection(), ["1"], BoundaryField("movie", "id"), 50
    )
    assert len(documents) == 1
    assert f'_0: movie(id: "1") {SLOW_QL}' in documents[0]
    assert documents[0].startswith("query ")
    assert variables is None


def test_boundary_documents_batched_with_running_aliases():
    documents, _ = build_boundary_query_documents(
        None, None, _slow_selection(), ["1", "2", "3"], BoundaryField("movie", "id"), 2
    )
    assert len(documents) == 2
    assert '_0: movie(id: "1")' in documents[0]
    assert '_1: movie(id: "2")' in documents[0]
    assert '_2: movie(id: "3")' in documents[1]
    assert "_2" not in documents[0]


def test_boundary_documents_array_field_single_document():
    documents, _ = build_boundary_query_documents(
        None, None, _slow_selection(), ["1", "2", "3"], BoundaryField("movies", "ids", array=True), 1
    )
    assert len(documents) == 1
    assert '_result: movies(ids: ["1", "2", "3"])' in documents[0]
    assert documents[0].endswith(SLOW_QL + " }")


def test_boundary_documents_carry_used_variables():
    lang = Argument("lang", Value(ValueKind.VARIABLE, raw="lang"))
    selection = [Field(name="title", arguments=[lang], definition=FieldDefinition("title", Type("String")))]
    operation = OperationDefinition(
        name="Op", variable_definitions=[VariableDefinition("lang", Type("String"))]
    )
    ctx = OperationContext(operation=operation, variables={"lang": "en", "extra": "ignore"})
    documents, variables = build_boundary_query_documents(
        ctx, None, selection, ["1"], BoundaryField("movie", "id"), 50
    )
    assert variables == {"lang": "en"}
    assert documents[0].startswith("query Op($lang: String) {")


def test_trim_insertion_point_documented_example():
    data = [{"_bramble_id": "MOVIE1", "compTitles": [{"_bramble_id": "1"}]}]
    point = ["foo", "bar", "movies", "movie", "compTitles"]
    assert trim_insertion_point_for_nested_boundary_step(data, point) == ["compTitles"]


def test_trim_insertion_point_errors():
    with pytest.raises(ValueError):
        trim_insertion_point_for_nested_boundary_step([], ["a"])
    with pytest.raises(TypeError):
        trim_insertion_point_for_nested_boundary_step(["x"], ["a"])
    with pytest.raises(ValueError):
        trim_insertion_point_for_nested_boundary_step([{"b": 1}], ["a"])


def test_extract_non_nil_boundary_results():
    umlaut = {"_bramble_id": "umlaut"}
    assert extract_non_nil_boundary_results([None, umlaut, None]) == [umlaut]
    assert extract_non_nil_boundary_results([None, None, None]) == []


def _namespace_selection():
    return [
        Field(name="__typename", definition=FieldDefinition("__typename", Type("String"))),
        Field(
            name="movie",
            definition=FieldDefinition("movie", Type("MovieQuery", non_null=True)),
            selection_set=[Field(name="__typename", definition=FieldDefinition("__typename", Type("String")))],
        ),
    ]


def test_build_typename_response_map():
    result = build_typename_response_map(_namespace_selection(), "Query")
    assert result == {"__typename": "Query", "movie": {"__typename": "MovieQuery"}}


def test_build_typename_response_map_rejects_other_fields():
    selection = [Field(name="id", definition=FieldDefinition("id", Type("ID")))]
    with pytest.raises(ValueError):
        build_typename_response_map(selection, "Query")


def test_build_typename_response_map_rejects_list_type():
    selection = [
        Field(
            name="movies",
            definition=FieldDefinition("movies", Type(elem=Type("Movie"))),
            selection_set=[Field(name="__typename")],
        )
    ]
    with pytest.raises(ValueError):
        build_typename_response_map(selection, "Query")


def test_execute_internal_step():
    result = execute_internal_step(_namespace_selection(), "Query")
    assert result.service_url == INTERNAL_SERVICE_NAME
    assert result.insertion_point == []
    assert result.data == {"__typename": "Query", "movie": {"__typename": "MovieQuery"}}