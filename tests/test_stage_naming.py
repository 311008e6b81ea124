"""
Stage name resolution tests: case conversion, collision suffixes, the eager name table.
"""
from __future__ import annotations

import pytest

from stagebuilder.core.derive.classifier import classify_fields, split_fields
from stagebuilder.core.derive.models import FieldDescriptor
from stagebuilder.core.derive.naming import (
    MAX_COLLISIONS,
    NameRegistry,
    resolve_stage_name,
    resolve_stage_names,
    snake_to_upper_camel,
    terminal_stage_name,
)
from stagebuilder.core.errors import NameOverflowError
from stagebuilder.core.frontend.type_parser import parse_annotation


def _field(name: str, position: int = 0) -> FieldDescriptor:
    return FieldDescriptor(position=position, name=name, type=parse_annotation("int"))


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("my_field", "MyField"),
        ("my_Field", "MyField"),
        ("owner", "Owner"),
        ("NuMWheels", "NuMWheels"),
        ("num_wheels_", "NumWheels"),
        ("_private", "Private"),
        ("a__b", "AB"),
        ("x1_y2", "X1Y2"),
    ],
)
def test_snake_to_upper_camel(raw, expected):
    assert snake_to_upper_camel(raw) == expected


def test_non_ascii_first_letter_passes_through():
    assert snake_to_upper_camel("é_b") == "éB"


def test_collisions_get_numeric_suffixes():
    registry = NameRegistry()
    first = resolve_stage_name(_field("my_field", 0), "MyStruct", registry)
    second = resolve_stage_name(_field("my_Field", 1), "MyStruct", registry)
    third = resolve_stage_name(_field("my_field_", 2), "MyStruct", registry)
    assert first == "MyStructBuilderMissingMyField"
    assert second == "MyStructBuilderMissingMyField1"
    assert third == "MyStructBuilderMissingMyField2"
    assert registry.counts["MyStructBuilderMissingMyField"] == 3


def test_table_lookup_is_idempotent():
    registry = NameRegistry()
    f = _field("my_field")
    table = resolve_stage_names([f], "MyStruct", registry)
    counts_before = dict(registry.counts)

    assert table.name_for(f) == "MyStructBuilderMissingMyField"
    assert table.name_for(f) == "MyStructBuilderMissingMyField"
    assert registry.counts == counts_before


def test_table_rejects_unknown_field():
    table = resolve_stage_names([_field("a", 0)], "R")
    with pytest.raises(KeyError):
        table.name_for(_field("b", 1))


def test_duplicate_case_variants_from_record(make_record):
    record = make_record(
        [
            ("num_wheels", "int"),
            ("numwheels", "Optional[int]"),
            ("NuMWheels", "int"),
            ("num_Wheels", "int"),
            ("num_wheels_", "int"),
        ]
    )
    required, _ = split_fields(classify_fields(record))
    table = resolve_stage_names(required, record.name)
    assert table.names() == [
        "CartBuilderMissingNumWheels",
        "CartBuilderMissingNuMWheels",
        "CartBuilderMissingNumWheels1",
        "CartBuilderMissingNumWheels2",
    ]


def test_suffixed_name_never_duplicates_another_base():
    fields = [_field("num_wheels", 0), _field("num_Wheels", 1), _field("num_wheels1", 2)]
    names = resolve_stage_names(fields, "Cart").names()
    assert len(set(names)) == len(names)
    assert names[:2] == ["CartBuilderMissingNumWheels", "CartBuilderMissingNumWheels1"]


def test_registries_are_independent():
    a = resolve_stage_names([_field("x")], "R").names()
    b = resolve_stage_names([_field("x")], "R").names()
    assert a == b == ["RBuilderMissingX"]


def test_terminal_name_is_reserved():
    registry = NameRegistry()
    resolve_stage_names([], "Cart", registry)
    assert terminal_stage_name("Cart") in registry.issued


def test_counter_overflow_is_fatal():
    registry = NameRegistry(counts={"CartBuilderMissingOwner": MAX_COLLISIONS})
    with pytest.raises(NameOverflowError):
        resolve_stage_name(_field("owner"), "Cart", registry)


def test_table_mapping_is_read_only():
    table = resolve_stage_names([_field("a", 0), _field("b", 3)], "R")
    assert dict(table.by_position) == {0: "RBuilderMissingA", 3: "RBuilderMissingB"}
    with pytest.raises(TypeError):
        table.by_position[1] = "RBuilderMissingC"


def test_tables_with_same_entries_are_equal():
    a = resolve_stage_names([_field("a")], "R")
    b = resolve_stage_names([_field("a")], "R")
    assert a == b
    assert hash(a) == hash(b)
