"""
Derivation engine tests: diagnostics, batch isolation, determinism, metrics.
"""
from __future__ import annotations

import logging

import pytest

from stagebuilder.core.config import GenerationConfig
from stagebuilder.core.derive import derive, derive_many, diagnose
from stagebuilder.core.descriptor_schema import Span
from stagebuilder.core.errors import DeclarationError, InputShapeError
from stagebuilder.core.observability.metrics import snapshot


# ---------------------------------------------------------------------------
# diagnostics
# ---------------------------------------------------------------------------

def test_valid_record_has_no_diagnostic(cart_record):
    assert diagnose(cart_record) is None


def test_tuple_struct_diagnostic(make_record):
    record = make_record(
        [(None, "int")],
        name="Pair",
        span=Span(source="pair.py", line=7, column=4),
    )
    diag = diagnose(record)
    assert diag.message == "can only be derived on structs with named fields"
    assert diag.code == "named-fields-required"
    assert diag.render() == "error: can only be derived on structs with named fields\n  --> pair.py:7:4"


def test_enum_diagnostic(make_record):
    diag = diagnose(make_record([], name="Color", kind="enum"))
    assert diag.message == "can only be derived on structs"
    assert diag.span.source == "cart.py"


def test_failed_derivation_produces_nothing(make_record):
    with pytest.raises(InputShapeError):
        derive(make_record([], kind="union"))


# ---------------------------------------------------------------------------
# derive_many
# ---------------------------------------------------------------------------

def test_derive_many_isolates_failures(make_record, cart_record, caplog):
    bad = make_record([], name="Color", kind="enum")
    with caplog.at_level(logging.WARNING, logger="stagebuilder.derive"):
        report = derive_many([cart_record, bad, make_record([("x", "int")], name="Other")])

    assert [r.record_name for r in report.results] == ["Cart", "Color", "Other"]
    assert [d.record.name for d in report.derivations] == ["Cart", "Other"]
    assert len(report.failures) == 1
    assert report.failures[0].diagnostic.code == "struct-required"
    assert "Color" in caplog.text


def test_derive_many_empty():
    report = derive_many([])
    assert report.results == []
    assert report.failures == []


# ---------------------------------------------------------------------------
# determinism
# ---------------------------------------------------------------------------

def test_derivation_hash_is_stable(make_record):
    fields = [("owner", "str"), ("num_seats", "Optional[int]")]
    a = derive(make_record(fields))
    b = derive(make_record(fields))
    assert a.deterministic_hash() == b.deterministic_hash()


def test_derivation_hash_changes_with_fields(make_record):
    a = derive(make_record([("owner", "str")]))
    b = derive(make_record([("owner", "int")]))
    assert a.deterministic_hash() != b.deterministic_hash()


def test_custom_optional_wrapper(make_record):
    record = make_record([("a", "Maybe[int]"), ("b", "Optional[int]")])
    d = derive(record, GenerationConfig(optional_wrapper="Maybe"))
    assert [s.name for s in d.chain] == ["CartBuilderMissingB"]
    assert [op.name for op in d.terminal.operations] == ["a", "build"]


# ---------------------------------------------------------------------------
# metrics
# ---------------------------------------------------------------------------

def test_metrics_count_outcomes(cart_record, make_record):
    derive(cart_record)
    diagnose(make_record([(None, "int")]))

    snap = snapshot()
    assert snap["derivations_total"] == 2
    assert snap["outcome_ok"] == 1
    assert snap["outcome_named-fields-required"] == 1
    assert snap["stages_generated"] == 3


# ---------------------------------------------------------------------------
# field names
# ---------------------------------------------------------------------------

def test_duplicate_field_names_abort_derivation(make_record):
    with pytest.raises(DeclarationError) as exc:
        derive(make_record([("a", "int"), ("a", "str")], name="R"))
    assert "R.a" in str(exc.value)
    assert snapshot()["outcome_invalid-field-name"] == 1


def test_derive_many_reports_invalid_field_names(make_record, cart_record):
    report = derive_many([make_record([("self", "int")], name="Bad"), cart_record])
    assert [d.record.name for d in report.derivations] == ["Cart"]
    failure = report.failures[0]
    assert failure.record_name == "Bad"
    assert failure.diagnostic is None
    assert "reserved" in failure.error
