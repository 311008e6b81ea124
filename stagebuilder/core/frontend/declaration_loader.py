"""
Record declarations from YAML or JSON files.

File format (YAML shown; the same document in JSON works):

    records:
      - name: Cart
        fields:
          - {name: owner, type: str}
          - {name: num_wheels, type: int}
          - {name: num_seats, type: "Optional[int]"}
      - name: Pair
        fields:            # positional fields: rejected at derivation time
          - {type: int}
          - {type: str}

A single record mapping (without the ``records`` key) is accepted too.
"""
from __future__ import annotations

import json
import keyword
import logging
from pathlib import Path
from typing import Any, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from stagebuilder.core.derive.classifier import RESERVED_FIELD_NAMES, RESERVED_PREFIX
from stagebuilder.core.descriptor_schema import FieldDecl, RecordDecl, Span, visibility_for
from stagebuilder.core.errors import DeclarationError

from .type_parser import parse_annotation

_log = logging.getLogger("stagebuilder.frontend")


class FieldEntry(BaseModel):
    name: Optional[str] = None
    type: str

    @field_validator("name")
    @classmethod
    def _identifier(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.isidentifier() or keyword.iskeyword(v):
            raise ValueError(f"{v!r} is not a valid Python identifier")
        if v in RESERVED_FIELD_NAMES or v.startswith(RESERVED_PREFIX):
            raise ValueError(f"{v!r} is reserved by the generated builder")
        return v


class RecordEntry(BaseModel):
    name: str
    kind: Literal["struct", "enum", "union", "other"] = "struct"
    visibility: Optional[Literal["public", "private"]] = None
    type_params: List[str] = Field(default_factory=list)
    module: Optional[str] = None
    fields: List[FieldEntry] = Field(default_factory=list)

    @field_validator("fields")
    @classmethod
    def _unique_names(cls, v: List[FieldEntry]) -> List[FieldEntry]:
        names = [f.name for f in v if f.name is not None]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate field names: {', '.join(dupes)}")
        return v

    @field_validator("name")
    @classmethod
    def _identifier(cls, v: str) -> str:
        if not v.isidentifier() or keyword.iskeyword(v):
            raise ValueError(f"{v!r} is not a valid Python identifier")
        return v


class DeclarationDocument(BaseModel):
    records: List[RecordEntry] = Field(default_factory=list)


def _to_record(entry: RecordEntry, source: str) -> RecordDecl:
    return RecordDecl(
        name=entry.name,
        visibility=entry.visibility or visibility_for(entry.name),
        kind=entry.kind,
        fields=[FieldDecl(name=f.name, type=parse_annotation(f.type)) for f in entry.fields],
        type_params=list(entry.type_params),
        module=entry.module,
        span=Span(source=source),
    )


def parse_declarations(data: Any, source: str = "<declarations>") -> List[RecordDecl]:
    if isinstance(data, dict) and "records" not in data and "name" in data:
        data = {"records": [data]}
    if not isinstance(data, dict):
        raise DeclarationError(f"{source}: expected a mapping, got {type(data).__name__}")
    try:
        doc = DeclarationDocument(**data)
    except ValidationError as exc:
        raise DeclarationError(f"{source}: invalid declaration document: {exc}") from exc
    return [_to_record(r, source) for r in doc.records]


def load_declarations(path: str | Path) -> List[RecordDecl]:
    """Load record declarations from a YAML or JSON file."""
    resolved = Path(path)
    try:
        raw_text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeclarationError(f"Cannot read declaration file {resolved}: {exc}") from exc

    # Try JSON first, then YAML
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise DeclarationError(f"Failed to parse {resolved} as JSON or YAML: {exc}") from exc

    records = parse_declarations(data, source=str(resolved))
    _log.info("Loaded %d record declaration(s) from %s", len(records), resolved)
    return records
