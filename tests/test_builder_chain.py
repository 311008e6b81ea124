"""
Builder declaration tests: chain stages, terminal stage, entry point.
"""
from __future__ import annotations

from stagebuilder.core.derive import derive


def _ops(stage):
    return [op.name for op in stage.operations]


def _assignments(op):
    return [(a.target, a.source) for a in op.assignments]


# ---------------------------------------------------------------------------
# chain
# ---------------------------------------------------------------------------

def test_one_stage_per_required_field(cart_record):
    d = derive(cart_record)
    assert [s.name for s in d.chain] == [
        "CartBuilderMissingOwner",
        "CartBuilderMissingNumWheels",
    ]
    assert d.terminal.name == "CartBuilder"
    assert len(d.stages) == 3


def test_stage_carries_previously_supplied_fields(cart_record):
    first, second = derive(cart_record).chain
    assert [f.name for f in first.fields] == []
    assert [f.name for f in second.fields] == ["owner"]


def test_each_stage_exposes_exactly_one_forward(cart_record):
    d = derive(cart_record)
    for stage in d.chain:
        assert len(stage.operations) == 1
        op = stage.operations[0]
        assert op.kind == "forward"
        assert op.consumes is True


def test_forwards_link_the_chain(cart_record):
    first, second = derive(cart_record).chain
    assert first.operations[0].name == "owner"
    assert first.operations[0].param.type.render() == "str"
    assert first.operations[0].returns == second.name
    assert second.operations[0].name == "num_wheels"
    assert second.operations[0].returns == "CartBuilder"


def test_last_forward_defaults_optionals_to_absent(cart_record):
    _, last = derive(cart_record).chain
    assert _assignments(last.operations[0]) == [
        ("owner", "self"),
        ("num_wheels", "param"),
        ("num_seats", "absent"),
    ]


def test_middle_forward_does_not_touch_optionals(cart_record):
    first, _ = derive(cart_record).chain
    assert _assignments(first.operations[0]) == [("owner", "param")]


def test_stage_visibility_follows_record(make_record):
    d = derive(make_record([("a", "int")], name="_Hidden"))
    assert {s.visibility for s in d.stages} == {"private"}


def test_type_params_are_propagated(make_record):
    d = derive(make_record([("item", "T")], name="Box", type_params=["T"]))
    assert all(s.type_params == ["T"] for s in d.stages)


# ---------------------------------------------------------------------------
# terminal
# ---------------------------------------------------------------------------

def test_terminal_has_setters_for_optionals_then_build(cart_record):
    terminal = derive(cart_record).terminal
    assert _ops(terminal) == ["num_seats", "build"]


def test_setter_returns_same_stage_without_consuming(cart_record):
    terminal = derive(cart_record).terminal
    setter = terminal.operations[0]
    assert setter.kind == "setter"
    assert setter.returns == terminal.name
    assert setter.consumes is False
    assert setter.param.type.render() == "Optional[int]"


def test_build_consumes_and_uses_declaration_order(make_record):
    record = make_record([("note", "Optional[str]"), ("a", "int"), ("b", "str")])
    terminal = derive(record).terminal
    build = terminal.operations[-1]
    assert build.kind == "build"
    assert build.consumes is True
    assert build.returns == "Cart"
    assert [a.target for a in build.assignments] == ["note", "a", "b"]


def test_terminal_holds_every_field(cart_record):
    terminal = derive(cart_record).terminal
    assert [(f.name, f.optional) for f in terminal.fields] == [
        ("owner", False),
        ("num_wheels", False),
        ("num_seats", True),
    ]


def test_terminal_has_no_setters_when_all_required(make_record):
    terminal = derive(make_record([("a", "int"), ("b", "int")])).terminal
    assert _ops(terminal) == ["build"]


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------

def test_entry_returns_first_chain_stage(cart_record):
    d = derive(cart_record)
    assert d.entry.name == "builder"
    assert d.entry.kind == "factory"
    assert d.entry.receiver == "Cart"
    assert d.entry.returns == "CartBuilderMissingOwner"
    assert d.entry.assignments == []


def test_all_optional_record_starts_at_terminal(make_record):
    d = derive(make_record([("x", "Optional[int]"), ("y", "Optional[str]")], name="Opts"))
    assert d.chain == []
    assert d.entry.returns == "OptsBuilder"
    assert _assignments(d.entry) == [("x", "absent"), ("y", "absent")]


def test_zero_field_record(make_record):
    d = derive(make_record([], name="Unit"))
    assert [s.name for s in d.stages] == ["UnitBuilder"]
    assert _ops(d.terminal) == ["build"]
    assert d.entry.returns == "UnitBuilder"


def test_stage_lookup(cart_record):
    d = derive(cart_record)
    assert d.stage("CartBuilder") is d.terminal
    assert d.stage("Nope") is None
