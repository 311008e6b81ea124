from __future__ import annotations

from typing import List

from stagebuilder.core.descriptor_schema import RecordDecl

from .models import (
    Assignment,
    FieldDescriptor,
    OperationDecl,
    ParamDecl,
    StageDecl,
    StageField,
)
from .naming import StageNameTable


def stage_field(f: FieldDescriptor) -> StageField:
    return StageField(name=f.name, type=f.type, optional=f.optional)


def build_chain(
    record: RecordDecl,
    required: List[FieldDescriptor],
    optional: List[FieldDescriptor],
    names: StageNameTable,
    terminal_name: str,
) -> List[StageDecl]:
    """One stage per required field, linked into a single linear chain.

    Stage i carries required fields [0, i) and exposes exactly one operation,
    named after field i, that consumes the stage and produces stage i + 1, or
    the terminal stage (optional fields absent) after the last required field.
    """
    stages: List[StageDecl] = []
    k = len(required)

    for i, current in enumerate(required):
        carried = required[:i]
        name = names.name_for(current)

        assignments = [Assignment(target=f.name, source="self") for f in carried]
        assignments.append(Assignment(target=current.name, source="param"))

        if i + 1 < k:
            next_name = names.name_for(required[i + 1])
        else:
            next_name = terminal_name
            assignments.extend(Assignment(target=f.name, source="absent") for f in optional)

        forward = OperationDecl(
            receiver=name,
            name=current.name,
            kind="forward",
            param=ParamDecl(name=current.name, type=current.type),
            returns=next_name,
            consumes=True,
            assignments=assignments,
        )

        stages.append(
            StageDecl(
                name=name,
                visibility=record.visibility,
                fields=[stage_field(f) for f in carried],
                type_params=list(record.type_params),
                operations=[forward],
            )
        )

    return stages
