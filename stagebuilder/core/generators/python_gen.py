from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from stagebuilder.core.config import GenerationConfig
from stagebuilder.core.derive.models import Assignment, Derivation, OperationDecl, StageDecl
from stagebuilder.runtime import FIELD_PREFIX

log = logging.getLogger("stagebuilder.emit")

PACKAGE_ROOT = Path(__file__).resolve().parents[2]
TEMPLATES_DIR = PACKAGE_ROOT / "templates"


def _env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _generic(name: str, type_params: Sequence[str]) -> str:
    if not type_params:
        return name
    return f"{name}[{', '.join(type_params)}]"


class _ModuleView:
    """Turns derivations into the plain values the template lays out."""

    def __init__(self, derivations: Sequence[Derivation], cfg: GenerationConfig):
        self.cfg = cfg
        self.derivations = derivations
        self._stage_params: Dict[str, List[str]] = {}
        for d in derivations:
            for s in d.stages:
                self._stage_params[s.name] = list(s.type_params)
            self._stage_params[d.record.name] = list(d.record.type_params)

    def _type_ref(self, name: str) -> str:
        return _generic(name, self._stage_params.get(name, []))

    def _value(self, a: Assignment) -> str:
        if a.source == "self":
            return f"self.{FIELD_PREFIX}{a.target}"
        if a.source == "param":
            return a.target
        return self.cfg.absent_literal

    def _call(self, target: str, assignments: Sequence[Assignment]) -> str:
        kwargs = ", ".join(f"{a.target}={self._value(a)}" for a in assignments)
        return f"{target}({kwargs})"

    def method(self, op: OperationDecl) -> Dict[str, object]:
        params = "self"
        if op.param is not None:
            params += f", {op.param.name}: {op.param.type.render()}"

        body: List[str] = []
        if self.cfg.consume_guard:
            helper = "_stage_consume" if op.consumes else "_stage_check"
            body.append(f"self.{helper}({op.name!r})")

        if op.kind == "setter":
            for a in op.assignments:
                body.append(f"self.{FIELD_PREFIX}{a.target} = {self._value(a)}")
            body.append("return self")
        else:
            body.append(f"return {self._call(op.returns, op.assignments)}")

        return {
            "name": op.name,
            "params": params,
            "returns": self._type_ref(op.returns),
            "body": body,
        }

    def stage(self, stage: StageDecl) -> Dict[str, object]:
        bases = "Stage"
        if stage.type_params:
            bases += f", Generic[{', '.join(stage.type_params)}]"
        slots = [f"{FIELD_PREFIX}{f.name}" for f in stage.fields]
        init_params = "".join(f", {f.name}: {f.type.render()}" for f in stage.fields)
        return {
            "name": stage.name,
            "bases": bases,
            "slots": repr(tuple(slots)),
            "init_params": init_params,
            "init_assigns": [(f"{FIELD_PREFIX}{f.name}", f.name) for f in stage.fields],
            "methods": [self.method(op) for op in stage.operations],
            "terminal": stage.terminal,
        }

    def entry(self, d: Derivation) -> Dict[str, object]:
        return {
            "record": d.record.name,
            "function": f"_{d.record.name}_{d.entry.name}",
            "returns": self._type_ref(d.entry.returns),
            "call": self._call(d.entry.returns, d.entry.assignments),
            # the record must be importable for the module to patch it
            "attach": d.record.module is not None,
        }

    def type_vars(self) -> List[str]:
        seen: List[str] = []
        for d in self.derivations:
            for p in d.record.type_params:
                if p not in seen:
                    seen.append(p)
        return seen

    def exports(self) -> List[str]:
        return [s.name for d in self.derivations for s in d.stages if s.visibility == "public"]


def _record_imports(derivations: Sequence[Derivation]) -> List[str]:
    by_module: Dict[str, List[str]] = {}
    for d in derivations:
        if d.record.module:
            by_module.setdefault(d.record.module, []).append(d.record.name)
    return [f"from {m} import {', '.join(names)}" for m, names in by_module.items()]


def render_python_module(
    derivations: Sequence[Derivation],
    *,
    imports: Optional[Sequence[str]] = None,
    import_records: bool = True,
    attach_entry: bool = True,
    config: Optional[GenerationConfig] = None,
) -> str:
    """Render derivations as one importable Python module.

    `imports` are reproduced verbatim (typically the source module's own
    import lines, so annotations resolve for type checkers). With
    `attach_entry` the module installs `builder` on each record at import.
    """
    cfg = config or GenerationConfig()
    view = _ModuleView(derivations, cfg)

    template = _env().get_template("python/builders.py.j2")
    code = template.render(
        header=cfg.header,
        record_names=[d.record.name for d in derivations],
        imports=list(imports or []),
        record_imports=_record_imports(derivations) if import_records else [],
        type_vars=view.type_vars(),
        exports=view.exports(),
        stages=[view.stage(s) for d in derivations for s in d.stages],
        entries=[view.entry(d) for d in derivations],
        attach_entry=attach_entry,
    )
    log.debug(
        "render module records=%s stages=%s bytes=%s",
        len(derivations),
        sum(len(d.stages) for d in derivations),
        len(code),
    )
    return code


def render_files(
    derivations: Sequence[Derivation],
    out_name: str,
    *,
    imports: Optional[Sequence[str]] = None,
    config: Optional[GenerationConfig] = None,
) -> Dict[str, str]:
    """
    Returns:
      {"<out_name>": "<python code>"}
    """
    return {out_name: render_python_module(derivations, imports=imports, config=config)}
