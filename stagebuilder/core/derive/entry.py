from __future__ import annotations

from typing import List

from stagebuilder.core.descriptor_schema import RecordDecl

from .models import Assignment, OperationDecl, StageDecl


ENTRY_POINT_NAME = "builder"


def build_entry(record: RecordDecl, chain: List[StageDecl], terminal: StageDecl) -> OperationDecl:
    """Static factory on the record that starts the chain.

    With no required fields it returns the terminal stage directly, with
    every optional field absent.
    """
    if chain:
        return OperationDecl(
            receiver=record.name,
            name=ENTRY_POINT_NAME,
            kind="factory",
            returns=chain[0].name,
        )

    return OperationDecl(
        receiver=record.name,
        name=ENTRY_POINT_NAME,
        kind="factory",
        returns=terminal.name,
        assignments=[Assignment(target=f.name, source="absent") for f in terminal.fields],
    )
