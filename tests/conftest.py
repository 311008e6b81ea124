from __future__ import annotations

import os
from typing import List, Optional, Tuple

import pytest

from stagebuilder.core.descriptor_schema import FieldDecl, RecordDecl, Span
from stagebuilder.core.frontend.type_parser import parse_annotation
from stagebuilder.core.observability.metrics import reset_metrics


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Generated code must not depend on the caller's environment
    os.environ.pop("STAGEBUILDER_OPTIONAL_WRAPPER", None)
    os.environ.pop("STAGEBUILDER_CONSUME_GUARD", None)


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


def _make_record(
    fields: List[Tuple[Optional[str], str]],
    name: str = "Cart",
    **overrides,
) -> RecordDecl:
    defaults = dict(
        name=name,
        fields=[FieldDecl(name=n, type=parse_annotation(t)) for n, t in fields],
        span=Span(source="cart.py", line=1, column=0),
    )
    defaults.update(overrides)
    return RecordDecl(**defaults)


@pytest.fixture()
def make_record():
    """
    Factory fixture: RecordDecl from (field name, annotation) pairs.

    Usage:
        record = make_record([("owner", "str"), ("seats", "Optional[int]")])
    """
    return _make_record


@pytest.fixture()
def cart_record() -> RecordDecl:
    return _make_record(
        [
            ("owner", "str"),
            ("num_wheels", "int"),
            ("num_seats", "Optional[int]"),
        ]
    )
