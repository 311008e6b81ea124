from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from stagebuilder.core.config import GenerationConfig
from stagebuilder.core.descriptor_schema import RecordDecl
from stagebuilder.core.errors import DeclarationError, Diagnostic, InputShapeError, NameOverflowError
from stagebuilder.core.observability.metrics import inc_derivation

from .chain import build_chain
from .classifier import classify_fields, split_fields
from .entry import build_entry
from .models import Derivation
from .naming import NameRegistry, resolve_stage_names, terminal_stage_name
from .terminal import build_terminal

log = logging.getLogger("stagebuilder.derive")


def derive(record: RecordDecl, config: Optional[GenerationConfig] = None) -> Derivation:
    """Derive the typestate builder declarations for one record.

    Raises InputShapeError for a non-struct or a struct with unnamed fields,
    DeclarationError for field names the generated stages cannot carry,
    NameOverflowError on a pathological number of name collisions. Nothing is
    returned on failure.
    """
    cfg = config or GenerationConfig()

    try:
        fields = classify_fields(record, optional_wrapper=cfg.optional_wrapper)
        required, optional = split_fields(fields)

        registry = NameRegistry()
        names = resolve_stage_names(required, record.name, registry)
    except InputShapeError as exc:
        inc_derivation(exc.code)
        raise
    except DeclarationError:
        inc_derivation("invalid-field-name")
        raise
    except NameOverflowError:
        inc_derivation("overflow")
        raise

    terminal_name = terminal_stage_name(record.name)
    chain = build_chain(record, required, optional, names, terminal_name)
    terminal = build_terminal(record, fields, terminal_name)
    entry = build_entry(record, chain, terminal)

    derivation = Derivation(record=record, stages=chain + [terminal], entry=entry)

    inc_derivation("ok", stages=len(derivation.stages))
    log.debug(
        "derive record=%s required=%s optional=%s stages=%s entry=%s",
        record.name,
        len(required),
        len(optional),
        len(derivation.stages),
        entry.returns,
    )
    return derivation


def diagnose(record: RecordDecl, config: Optional[GenerationConfig] = None) -> Optional[Diagnostic]:
    """Return the single diagnostic for an invalid record, or None when it derives."""
    try:
        derive(record, config)
    except InputShapeError as exc:
        return exc.diagnostic()
    return None


@dataclass
class DerivationResult:
    record_name: str
    derivation: Optional[Derivation] = None
    diagnostic: Optional[Diagnostic] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.derivation is not None


@dataclass
class DerivationReport:
    results: List[DerivationResult] = field(default_factory=list)

    @property
    def derivations(self) -> List[Derivation]:
        return [r.derivation for r in self.results if r.derivation is not None]

    @property
    def failures(self) -> List[DerivationResult]:
        return [r for r in self.results if not r.ok]


def derive_many(records: Iterable[RecordDecl], config: Optional[GenerationConfig] = None) -> DerivationReport:
    """Derive several records; one record's failure does not affect the others."""
    report = DerivationReport()
    for record in records:
        try:
            report.results.append(DerivationResult(record_name=record.name, derivation=derive(record, config)))
        except InputShapeError as exc:
            log.warning("derive record=%s rejected: %s", record.name, exc.message)
            report.results.append(DerivationResult(record_name=record.name, diagnostic=exc.diagnostic()))
        except DeclarationError as exc:
            log.warning("derive record=%s rejected: %s", record.name, exc)
            report.results.append(DerivationResult(record_name=record.name, error=str(exc)))
        except NameOverflowError as exc:
            log.error("derive record=%s aborted: %s", record.name, exc)
            report.results.append(DerivationResult(record_name=record.name, error=str(exc)))
    return report
