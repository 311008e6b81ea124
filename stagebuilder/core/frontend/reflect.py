from __future__ import annotations

import dataclasses
import enum
import inspect
import logging
import typing
from typing import Any, List

from pydantic import BaseModel

from stagebuilder.core.descriptor_schema import FieldDecl, RecordDecl, Span, TypeRef, visibility_for

from .type_parser import type_ref_from_object

log = logging.getLogger("stagebuilder.frontend")


def _span_for(obj: Any) -> Span:
    try:
        source = inspect.getsourcefile(obj)
        _, line = inspect.getsourcelines(obj)
    except (OSError, TypeError):
        return Span(source=getattr(obj, "__module__", None))
    return Span(source=source, line=line, column=0)


def _type_params(cls: type) -> List[str]:
    params = getattr(cls, "__parameters__", ()) or ()
    return [p.__name__ for p in params if isinstance(p, typing.TypeVar)]


def _tuple_field_types(cls: type) -> List[TypeRef]:
    for base in getattr(cls, "__orig_bases__", ()):
        if typing.get_origin(base) is tuple:
            return [type_ref_from_object(a) for a in typing.get_args(base)]
    # plain tuple subclass: positional, arity unknown
    return [TypeRef(raw="object")]


def reflect_record(obj: Any) -> RecordDecl:
    """Describe a live class as a RecordDecl.

    dataclasses, pydantic models and NamedTuples are structs with named
    fields; Enum subclasses are enums; tuple subclasses carry positional
    fields; anything else is kind "other".
    """
    name = getattr(obj, "__name__", type(obj).__name__)
    common = dict(
        name=name,
        visibility=visibility_for(name),
        module=getattr(obj, "__module__", None),
        span=_span_for(obj),
    )

    if not isinstance(obj, type):
        return RecordDecl(kind="other", **common)

    common["type_params"] = _type_params(obj)

    if issubclass(obj, enum.Enum):
        return RecordDecl(kind="enum", **common)

    if dataclasses.is_dataclass(obj):
        fields = [
            FieldDecl(name=f.name, type=type_ref_from_object(f.type))
            for f in dataclasses.fields(obj)
            if f.init
        ]
        return RecordDecl(kind="struct", fields=fields, **common)

    if issubclass(obj, BaseModel):
        fields = [
            FieldDecl(name=fname, type=type_ref_from_object(info.annotation))
            for fname, info in obj.model_fields.items()
        ]
        return RecordDecl(kind="struct", fields=fields, **common)

    if issubclass(obj, tuple):
        named = getattr(obj, "_fields", None)
        if named is not None:
            hints = getattr(obj, "__annotations__", {})
            fields = [FieldDecl(name=n, type=type_ref_from_object(hints.get(n, "object"))) for n in named]
            return RecordDecl(kind="struct", fields=fields, **common)
        return RecordDecl(kind="struct", fields=[FieldDecl(type=t) for t in _tuple_field_types(obj)], **common)

    log.debug("reflect %s: not a dataclass, pydantic model or NamedTuple", name)
    return RecordDecl(kind="other", **common)
