# meshgate

Building blocks for a gateway that spreads one GraphQL query over several
downstream services and stitches the answers back together.

Everything works on a small, explicit GraphQL syntax tree defined in
`meshgate.graphql_ast`: `Schema`, `Definition`, `FieldDefinition`, `Type`,
`Field`, `InlineFragment`, `FragmentSpread`, `FragmentDefinition`, `Value`
(with `ValueKind` and `ChildValue`), `Argument`, `Directive`,
`VariableDefinition`, `OperationDefinition` and `OperationContext` (an
operation plus its request variables). `selection_set_to_fields` picks the
plain field selections out of a selection set.

## What is in the package

- **Formatting** (`meshgate.format`)
  - `format_document(ctx, schema, operation_type, selection_set)` renders a
    full operation document and returns it with the request variables it uses.
  - `format_operation(ctx, selection_set)` renders the operation name and the
    variable definitions the selection set references.
  - `selection_set_variables(selection_set)` lists the variable names used in
    arguments and directives.
  - `format_selection_set` renders indented GraphQL;
    `format_selection_set_single_line` collapses it onto one line.
  - `format_argument(schema, value, variables)` renders an argument value,
    keeping variables as `$name` references.
- **Fragment handling** (`meshgate.selection`)
  - `union_and_trim_selection_set(response_type_name, schema, selection_set)`
    drops fragments on abstract-type implementations that do not match the
    response object's type name, then merges fields repeated between the
    selection set and its fragments (`eliminate_unwanted_fragments`,
    `include_fragment`, `merge_with_top_level_fragment_fields`). The input
    selection set is not modified.
- **Response handling** (`meshgate.execution_result`)
  - `ExecutionResult` holds the data one downstream request returned and the
    insertion point where it belongs.
  - `merge_execution_results(results)` merges every result into the first,
    matching boundary objects by `_bramble__typename` and `_bramble_id`
    (`boundary_type_from_map`, `boundary_id_from_map`).
  - `bubble_up_null_values_in_place(schema, selection_set, result)` replaces
    parents of nulls in non-nullable positions with null as the schema
    requires and returns a `GraphQLError` for each; when a null reaches the
    root it raises `NullBubbledToRootError`, whose `errors` holds them.
  - `format_response_data(schema, selection_set, result)` renders the data as
    a JSON string, in the order of the selection set and with internal keys
    left out.
- **Boundary lookups** (`meshgate.boundary`)
  - `extract_boundary_ids` and `extract_and_dedupe_boundary_ids` collect the
    `_bramble_id` values of objects of a given type at an insertion point.
  - `batch_by(items, batch_size)` splits ids into batches.
  - `build_boundary_query_documents(...)` builds the lookup documents for a
    `BoundaryField` (one document with a list argument for array lookups,
    otherwise aliased `_0`, `_1`, … selections, `batch_size` per document).
  - `trim_insertion_point_for_nested_boundary_step` and
    `extract_non_nil_boundary_results` help plan lookups nested inside
    boundary results.
  - `build_typename_response_map` and `execute_internal_step` answer
    selections made only of `__typename` fields without a downstream call.

## Example

```python
from meshgate.execution_result import ExecutionResult, merge_execution_results

root = ExecutionResult(
    service_url="http://service-a",
    insertion_point=[],
    data={"gizmo": {"owner": {"_bramble_id": "1", "_bramble__typename": "Owner"}}},
)
child = ExecutionResult(
    service_url="http://service-b",
    insertion_point=["gizmo", "owner"],
    data=[{"_bramble_id": "1", "_bramble__typename": "Owner", "name": "Owner A"}],
)

merged = merge_execution_results([root, child])
assert merged["gizmo"]["owner"]["name"] == "Owner A"
```

## What it does not do

meshgate is a library of pieces, not a running gateway. It has no GraphQL
parser (syntax trees are built as Python objects), no schema merging or
validation, no query planner, no HTTP client for calling downstream services,
no server and no command-line tool.

## Install and test

Python 3.10 or later; no third-party runtime dependencies.

```
pip install -e ".[test]"
pytest
```