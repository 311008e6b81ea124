from __future__ import annotations

from typing import List

from stagebuilder.core.descriptor_schema import RecordDecl

from .chain import stage_field
from .models import Assignment, FieldDescriptor, OperationDecl, ParamDecl, StageDecl


def build_terminal(record: RecordDecl, fields: List[FieldDescriptor], name: str) -> StageDecl:
    """Terminal stage: every field, one setter per optional field, and build().

    Setters take the declared wrapper type so absent can be set explicitly;
    they overwrite and return the same stage. build() consumes the stage and
    passes fields in the record's declaration order.
    """
    setters = [
        OperationDecl(
            receiver=name,
            name=f.name,
            kind="setter",
            param=ParamDecl(name=f.name, type=f.type),
            returns=name,
            consumes=False,
            assignments=[Assignment(target=f.name, source="param")],
        )
        for f in fields
        if f.optional
    ]

    in_declaration_order = sorted(fields, key=lambda f: f.position)
    build = OperationDecl(
        receiver=name,
        name="build",
        kind="build",
        returns=record.name,
        consumes=True,
        assignments=[Assignment(target=f.name, source="self") for f in in_declaration_order],
    )

    return StageDecl(
        name=name,
        visibility=record.visibility,
        terminal=True,
        fields=[stage_field(f) for f in fields],
        type_params=list(record.type_params),
        operations=setters + [build],
    )
