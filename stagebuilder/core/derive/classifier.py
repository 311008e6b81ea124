from __future__ import annotations

import keyword
from typing import List, Tuple

from stagebuilder.core.descriptor_schema import RecordDecl
from stagebuilder.core.errors import (
    NAMED_FIELDS_REQUIRED,
    STRUCT_REQUIRED,
    DeclarationError,
    InputShapeError,
)

from .models import FieldDescriptor, is_optional_type  # noqa: F401


# Names the generated stage classes already use for themselves.
RESERVED_FIELD_NAMES = {"self"}
RESERVED_OPTIONAL_NAMES = {"build"}
RESERVED_PREFIX = "_stage_"


def check_field_names(record: RecordDecl, fields: List[FieldDescriptor]) -> None:
    """Reject field names the emitted stages cannot carry.

    Duplicates and ``self`` would be repeated parameters, a setter named
    ``build`` would shadow build(), and ``_stage_*`` shadows the runtime
    helpers.
    """
    seen = set()
    for f in fields:
        where = f"{record.name}.{f.name}"
        if not f.name.isidentifier() or keyword.iskeyword(f.name):
            raise DeclarationError(f"{where}: field name is not a valid Python identifier")
        if f.name in seen:
            raise DeclarationError(f"{where}: duplicate field name")
        if f.name in RESERVED_FIELD_NAMES or f.name.startswith(RESERVED_PREFIX):
            raise DeclarationError(f"{where}: field name is reserved by the generated builder")
        if f.optional and f.name in RESERVED_OPTIONAL_NAMES:
            raise DeclarationError(f"{where}: an optional field cannot be named {f.name!r}")
        seen.add(f.name)


def classify_fields(record: RecordDecl, optional_wrapper: str = "Optional") -> List[FieldDescriptor]:
    """Validate the record shape and return its fields, required first.

    The partition is stable: each group keeps declaration order.
    """
    if record.kind != "struct":
        raise InputShapeError(STRUCT_REQUIRED, record_name=record.name, span=record.span)

    if record.field_shape == "unnamed":
        raise InputShapeError(NAMED_FIELDS_REQUIRED, record_name=record.name, span=record.span)

    fields = [
        FieldDescriptor(position=idx, name=f.name, type=f.type, optional_wrapper=optional_wrapper)
        for idx, f in enumerate(record.fields)
    ]
    check_field_names(record, fields)
    # sorted() is stable; False (required) sorts before True (optional)
    return sorted(fields, key=lambda f: f.optional)


def split_fields(fields: List[FieldDescriptor]) -> Tuple[List[FieldDescriptor], List[FieldDescriptor]]:
    required = [f for f in fields if not f.optional]
    optional = [f for f in fields if f.optional]
    return required, optional
