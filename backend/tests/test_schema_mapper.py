import pytest

from agent_builder.models.schema import SchemaField
from agent_builder.services.schema_mapper import map_field, render_object_schema


@pytest.mark.parametrize(
    "field_type,expected",
    [
        ("string", "z.string()"),
        ("number", "z.number()"),
        ("boolean", "z.boolean()"),
        ("date", "z.date()"),
        ("array", "z.array(z.any())"),
        ("object", "z.record(z.any())"),
        ("enum", "z.any()"),
        ("unknown", "z.any()"),
        ("something-new", "z.any()"),
    ],
)
def test_base_types(field_type, expected):
    assert map_field(SchemaField(name="f", type=field_type)) == expected


def test_suffixes_follow_fixed_order():
    """Range, optional, describe, default."""
    field = SchemaField(
        name="age",
        type="number",
        optional=True,
        description="Age in years",
        default_value=18,
        validation=[{"type": "max", "value": 130}, {"type": "min", "value": 0}],
    )

    assert map_field(field) == "z.number().min(0).max(130).optional().describe('Age in years').default(18)"


def test_range_rules_only_apply_to_numbers():
    field = SchemaField(name="s", type="string", validation=[{"type": "min", "value": 3}])

    assert map_field(field) == "z.string()"


def test_range_rule_without_value_is_ignored():
    field = SchemaField(name="n", type="number", validation=[{"type": "min"}, {"type": "max", "value": "abc"}])

    assert map_field(field) == "z.number()"


def test_numeric_string_bounds_are_accepted():
    field = SchemaField(name="n", type="number", validation=[{"type": "min", "value": "1.5"}])

    assert map_field(field) == "z.number().min(1.5)"


def test_string_defaults_and_descriptions_are_escaped():
    field = SchemaField(name="q", type="string", description="it's \"quoted\"", default_value="a'b")

    assert map_field(field) == "z.string().describe('it\\'s \\\"quoted\\\"').default('a\\'b')"


@pytest.mark.parametrize(
    "default,rendered",
    [
        (True, "true"),
        (False, "false"),
        (0, "0"),
        (2.5, "2.5"),
        (["a", 1], '["a", 1]'),
        ({"b": 1, "a": 2}, '{"a": 2, "b": 1}'),
    ],
)
def test_default_literals(default, rendered):
    assert map_field(SchemaField(name="d", default_value=default)).endswith(f".default({rendered})")


def test_empty_default_is_omitted():
    assert map_field(SchemaField(name="d", type="string", default_value="")) == "z.string()"


def test_render_object_schema_quotes_invalid_keys():
    fields = [SchemaField(name="query", type="string"), SchemaField(name="max-results", type="number")]

    lines = render_object_schema("searchInputSchema", fields)

    assert lines == [
        "const searchInputSchema = z.object({",
        "  query: z.string(),",
        "  'max-results': z.number(),",
        "});",
    ]
