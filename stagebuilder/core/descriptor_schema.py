"""
Record declaration schema (input contract of a derivation).

A RecordDecl is what every frontend produces: the Python source reader, the
runtime reflector and the YAML/JSON declaration loader. Instances are frozen;
a derivation never mutates its input.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


RecordKind = Literal["struct", "enum", "union", "other"]
Visibility = Literal["public", "private"]
FieldShape = Literal["named", "empty", "unnamed"]


class Span(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def __str__(self) -> str:
        where = self.source or "<unknown>"
        if self.line is None:
            return where
        return f"{where}:{self.line}:{self.column or 0}"


class TypeRef(BaseModel):
    """Syntactic type reference.

    `segments` is the dotted path of the outermost type constructor
    (``typing.Optional`` -> ``["typing", "Optional"]``) and `args` its
    subscript arguments. Type expressions that are not a subscripted path
    (``int | None``, ``Callable[[int], str]`` argument lists, literals) keep
    their verbatim source text in `raw` and have no segments.
    """

    model_config = ConfigDict(frozen=True)

    segments: List[str] = Field(default_factory=list)
    args: List["TypeRef"] = Field(default_factory=list)
    raw: Optional[str] = None

    @property
    def head(self) -> Optional[str]:
        return self.segments[-1] if self.segments else None

    def render(self) -> str:
        if not self.segments:
            return self.raw or "object"
        base = ".".join(self.segments)
        if not self.args:
            return base
        return f"{base}[{', '.join(a.render() for a in self.args)}]"

    def __str__(self) -> str:
        return self.render()


class FieldDecl(BaseModel):
    model_config = ConfigDict(frozen=True)

    # None for a positional (tuple-struct) field
    name: Optional[str] = None
    type: TypeRef


class RecordDecl(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    visibility: Visibility = "public"
    kind: RecordKind = "struct"
    fields: List[FieldDecl] = Field(default_factory=list)
    type_params: List[str] = Field(default_factory=list)
    module: Optional[str] = None
    span: Span = Field(default_factory=Span)

    @property
    def field_shape(self) -> FieldShape:
        if not self.fields:
            return "empty"
        if all(f.name is not None for f in self.fields):
            return "named"
        return "unnamed"


TypeRef.model_rebuild()


def visibility_for(name: str) -> Visibility:
    return "private" if name.startswith("_") else "public"
