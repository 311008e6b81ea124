"""
Generation settings.

Environment variables (all optional):
    STAGEBUILDER_OPTIONAL_WRAPPER: head constructor name treated as optional
        (default: Optional)
    STAGEBUILDER_CONSUME_GUARD: "0" disables the consumed-stage checks in
        generated code (default: enabled)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any


DEFAULT_HEADER = "Generated typestate builders. Do not edit by hand."


def _env_flag(value: str, default: bool) -> bool:
    v = value.strip().lower()
    if not v:
        return default
    return v not in {"0", "false", "no", "off"}


@dataclass(frozen=True)
class GenerationConfig:
    optional_wrapper: str = "Optional"
    absent_literal: str = "None"
    consume_guard: bool = True
    header: str = DEFAULT_HEADER

    @classmethod
    def from_payload(cls, payload: Any) -> "GenerationConfig":
        """
        Accepts:
          - None
          - {"optional_wrapper": "...", "consume_guard": bool, "header": "..."}
        Unknown keys and wrongly typed values are ignored.
        """
        if not isinstance(payload, dict):
            return cls()

        cfg = cls()
        wrapper = payload.get("optional_wrapper")
        if isinstance(wrapper, str) and wrapper.strip():
            cfg = replace(cfg, optional_wrapper=wrapper.strip())

        guard = payload.get("consume_guard")
        if isinstance(guard, bool):
            cfg = replace(cfg, consume_guard=guard)

        header = payload.get("header")
        if isinstance(header, str) and header.strip():
            cfg = replace(cfg, header=header.strip())

        return cfg

    @classmethod
    def from_env(cls, base: "GenerationConfig | None" = None) -> "GenerationConfig":
        cfg = base or cls()
        wrapper = os.getenv("STAGEBUILDER_OPTIONAL_WRAPPER", "").strip()
        if wrapper:
            cfg = replace(cfg, optional_wrapper=wrapper)
        guard = os.getenv("STAGEBUILDER_CONSUME_GUARD", "")
        cfg = replace(cfg, consume_guard=_env_flag(guard, cfg.consume_guard))
        return cfg
