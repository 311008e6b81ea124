"""
Stage name resolution.

Every required field gets one generated stage class named
``<Record>BuilderMissing<FieldInUpperCamel>``. Names that collide after case
conversion are disambiguated with a numeric suffix in first-encountered
order: the first occurrence stays unsuffixed, the next ones get 1, 2, 3, ...

Counters live in a NameRegistry owned by a single derivation. Names are
resolved once, eagerly, right after classification, into a StageNameTable;
later lookups read the table and never touch the registry again.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Set, Tuple

from stagebuilder.core.errors import NameOverflowError

from .models import FieldDescriptor


# Same ceiling as an unsigned 16 bit counter.
MAX_COLLISIONS = 0xFFFF


def snake_to_upper_camel(name: str) -> str:
    out: List[str] = []
    capitalize_next = True
    for c in name:
        if c == "_":
            capitalize_next = True
        elif capitalize_next:
            out.append(c.upper() if c.isascii() else c)
            capitalize_next = False
        else:
            out.append(c)
    return "".join(out)


def base_stage_name(record_name: str, field_name: str) -> str:
    return f"{record_name}BuilderMissing{snake_to_upper_camel(field_name)}"


def terminal_stage_name(record_name: str) -> str:
    return f"{record_name}Builder"


@dataclass
class NameRegistry:
    counts: Dict[str, int] = field(default_factory=dict)
    issued: Set[str] = field(default_factory=set)

    def reserve(self, name: str) -> None:
        self.issued.add(name)

    def claim(self, base: str) -> str:
        count = self.counts.get(base, 0)
        while True:
            candidate = base if count == 0 else f"{base}{count}"
            if count >= MAX_COLLISIONS:
                raise NameOverflowError(f"Overflow in builder name generation for {base}")
            count += 1
            # a suffixed candidate may equal another field's base name
            if candidate not in self.issued:
                break
        self.counts[base] = count
        self.issued.add(candidate)
        return candidate


def resolve_stage_name(field_desc: FieldDescriptor, record_name: str, registry: NameRegistry) -> str:
    return registry.claim(base_stage_name(record_name, field_desc.name))


@dataclass(frozen=True)
class StageNameTable:
    """Immutable position -> stage name mapping for one derivation."""
    entries: Tuple[Tuple[int, str], ...] = ()
    by_position: Mapping[int, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_position", MappingProxyType(dict(self.entries)))

    def name_for(self, field_desc: FieldDescriptor) -> str:
        name = self.by_position.get(field_desc.position)
        if name is None:
            raise KeyError(f"No stage name resolved for field {field_desc.name!r}")
        return name

    def names(self) -> List[str]:
        return [name for _, name in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


def resolve_stage_names(
    required: Iterable[FieldDescriptor],
    record_name: str,
    registry: NameRegistry | None = None,
) -> StageNameTable:
    registry = registry if registry is not None else NameRegistry()
    registry.reserve(terminal_stage_name(record_name))
    entries = []
    for f in required:
        entries.append((f.position, resolve_stage_name(f, record_name, registry)))
    return StageNameTable(entries=tuple(entries))
