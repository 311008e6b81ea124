from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .descriptor_schema import Span


NAMED_FIELDS_REQUIRED = "named-fields-required"
STRUCT_REQUIRED = "struct-required"

# Closed set: a diagnostic carries exactly one of these messages.
DIAGNOSTIC_MESSAGES: Dict[str, str] = {
    NAMED_FIELDS_REQUIRED: "can only be derived on structs with named fields",
    STRUCT_REQUIRED: "can only be derived on structs",
}


@dataclass(frozen=True)
class Diagnostic:
    message: str
    span: Span
    code: str

    def render(self) -> str:
        return f"error: {self.message}\n  --> {self.span}"


class StageBuilderError(Exception):
    """Base class for every error raised by stagebuilder."""


class InputShapeError(StageBuilderError):
    """The declaration is not a struct with named fields."""

    def __init__(self, code: str, record_name: Optional[str] = None, span: Optional[Span] = None):
        if code not in DIAGNOSTIC_MESSAGES:
            raise ValueError(f"Unknown input shape code: {code}")
        self.code = code
        self.record_name = record_name
        self.span = span or Span()
        super().__init__(DIAGNOSTIC_MESSAGES[code])

    @property
    def message(self) -> str:
        return DIAGNOSTIC_MESSAGES[self.code]

    def diagnostic(self) -> Diagnostic:
        return Diagnostic(message=self.message, span=self.span, code=self.code)


class NameOverflowError(StageBuilderError):
    """Collision counter for a generated stage name ran past its limit."""


class DeclarationError(StageBuilderError):
    """A frontend could not read a record declaration."""


class BuilderConsumedError(StageBuilderError):
    """An operation was invoked on a builder stage that was already consumed."""

    def __init__(self, stage: str, operation: str):
        self.stage = stage
        self.operation = operation
        super().__init__(f"{stage}.{operation}() called on a consumed builder stage")
