"""
Runtime support imported by generated builder modules.

Python has no move semantics, so one-shot stage consumption is emulated with
an explicit flag: every forwarding operation and build() mark their stage as
consumed, and any later operation on it raises BuilderConsumedError.

Helper names carry a ``_stage_`` prefix so they cannot collide with the
setter and forwarding methods generated from field names.
"""
from __future__ import annotations

from typing import Iterator, Tuple

from stagebuilder.core.errors import BuilderConsumedError

__all__ = ["BuilderConsumedError", "Stage", "is_consumed", "FIELD_PREFIX"]

# generated stages store field values under this prefix
FIELD_PREFIX = "_f_"


class Stage:
    __slots__ = ("_stage_consumed",)

    def __init__(self) -> None:
        self._stage_consumed = False

    def _stage_check(self, operation: str) -> None:
        if self._stage_consumed:
            raise BuilderConsumedError(type(self).__name__, operation)

    def _stage_consume(self, operation: str) -> None:
        self._stage_check(operation)
        self._stage_consumed = True

    def _stage_values(self) -> Iterator[Tuple[str, object]]:
        for klass in reversed(type(self).__mro__):
            for slot in getattr(klass, "__slots__", ()):
                if slot.startswith(FIELD_PREFIX) and hasattr(self, slot):
                    yield slot[len(FIELD_PREFIX):], getattr(self, slot)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._stage_values())
        state = " consumed" if self._stage_consumed else ""
        return f"<{type(self).__name__}({inner}){state}>"


def is_consumed(stage: Stage) -> bool:
    return stage._stage_consumed
