from __future__ import annotations

import json
from dataclasses import dataclass
from hashlib import sha256
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from stagebuilder.core.descriptor_schema import RecordDecl, TypeRef, Visibility


OperationKind = Literal["forward", "setter", "build", "factory"]
ValueSource = Literal["self", "param", "absent"]


def is_optional_type(type_ref: TypeRef, wrapper: str = "Optional") -> bool:
    """Shallow, name-based check on the head constructor.

    The head is the *last* segment of the dotted path, so
    ``typing.Optional[int]`` is optional just like ``Optional[int]``; matching
    on the first segment would classify the qualified spelling as required.
    Aliases of the wrapper and ``X | None`` unions are not recognized.
    """
    return type_ref.head == wrapper


@dataclass(frozen=True)
class FieldDescriptor:
    position: int  # index in the record's declaration order
    name: str
    type: TypeRef
    optional_wrapper: str = "Optional"

    @property
    def optional(self) -> bool:
        return is_optional_type(self.type, self.optional_wrapper)


class StageField(BaseModel):
    name: str
    type: TypeRef
    optional: bool = False


class ParamDecl(BaseModel):
    name: str
    type: TypeRef


class Assignment(BaseModel):
    """One field of the value an operation produces."""
    target: str
    source: ValueSource


class OperationDecl(BaseModel):
    receiver: str
    name: str
    kind: OperationKind
    param: Optional[ParamDecl] = None
    returns: str
    consumes: bool = False
    assignments: List[Assignment] = Field(default_factory=list)


class StageDecl(BaseModel):
    name: str
    visibility: Visibility
    terminal: bool = False
    fields: List[StageField] = Field(default_factory=list)
    type_params: List[str] = Field(default_factory=list)
    operations: List[OperationDecl] = Field(default_factory=list)


class Derivation(BaseModel):
    record: RecordDecl
    stages: List[StageDecl]
    entry: OperationDecl

    @property
    def chain(self) -> List[StageDecl]:
        return [s for s in self.stages if not s.terminal]

    @property
    def terminal(self) -> StageDecl:
        return next(s for s in self.stages if s.terminal)

    def stage(self, name: str) -> Optional[StageDecl]:
        for s in self.stages:
            if s.name == name:
                return s
        return None

    def deterministic_hash(self) -> str:
        raw = json.dumps(
            self.model_dump(),
            sort_keys=True,
            separators=(",", ":")
        )
        return sha256(raw.encode()).hexdigest()
