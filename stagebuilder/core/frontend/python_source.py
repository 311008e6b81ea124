"""
Python source frontend.

Reads record declarations straight from source text with `ast`, without
importing the module:

    @derive_builder
    @dataclass
    class Cart:
        owner: str
        num_wheels: int
        num_seats: Optional[int] = None

Every top-level class becomes a RecordDecl. Enum subclasses are recorded with
kind "enum" and subclasses of ``Tuple[...]`` as structs with positional
(unnamed) fields, so the derivation can reject them with the proper
diagnostic.
"""
from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from stagebuilder.core.descriptor_schema import FieldDecl, RecordDecl, Span, visibility_for
from stagebuilder.core.errors import DeclarationError

from .type_parser import type_ref_from_node

log = logging.getLogger("stagebuilder.frontend")

MARKER = "derive_builder"

_ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}
_TUPLE_BASES = {"Tuple", "tuple"}
_FIELD_FACTORIES = {"field", "Field"}


@dataclass
class SourceModule:
    filename: str
    module: Optional[str] = None
    records: List[RecordDecl] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    marked: List[str] = field(default_factory=list)

    def record(self, name: str) -> Optional[RecordDecl]:
        for r in self.records:
            if r.name == name:
                return r
        return None

    def select(self, names: Iterable[str]) -> List[RecordDecl]:
        out: List[RecordDecl] = []
        for name in names:
            r = self.record(name)
            if r is None:
                raise DeclarationError(f"{self.filename}: no class named {name!r}")
            out.append(r)
        return out

    def select_marked(self) -> List[RecordDecl]:
        return [r for r in self.records if r.name in self.marked]


def _base_name(node: ast.expr) -> Optional[str]:
    target = node.value if isinstance(node, ast.Subscript) else node
    if isinstance(target, ast.Name):
        return target.id
    if isinstance(target, ast.Attribute):
        return target.attr
    return None


def _is_marker(node: ast.expr) -> bool:
    if isinstance(node, ast.Call):
        node = node.func
    return _base_name(node) == MARKER


def _type_params(cls: ast.ClassDef) -> List[str]:
    params: List[str] = []
    # PEP 695: class Box[T]: ...
    for tp in getattr(cls, "type_params", None) or []:
        name = getattr(tp, "name", None)
        if name:
            params.append(name)
    for base in cls.bases:
        if isinstance(base, ast.Subscript) and _base_name(base) in ("Generic", "Protocol"):
            ref = type_ref_from_node(base)
            params.extend(a.render() for a in ref.args if a.segments)
    return params


def _excluded_from_init(value: Optional[ast.expr]) -> bool:
    # dataclasses.field(init=False) is not a constructor argument
    if not isinstance(value, ast.Call) or _base_name(value.func) not in _FIELD_FACTORIES:
        return False
    for kw in value.keywords:
        if kw.arg == "init" and isinstance(kw.value, ast.Constant) and kw.value.value is False:
            return True
    return False


def _record_from_class(cls: ast.ClassDef, filename: str, module: Optional[str]) -> RecordDecl:
    span = Span(
        source=filename,
        line=cls.lineno,
        column=cls.col_offset,
        end_line=getattr(cls, "end_lineno", None),
        end_column=getattr(cls, "end_col_offset", None),
    )
    common = dict(
        name=cls.name,
        visibility=visibility_for(cls.name),
        type_params=_type_params(cls),
        module=module,
        span=span,
    )

    base_names = [_base_name(b) for b in cls.bases]
    if any(b in _ENUM_BASES for b in base_names):
        return RecordDecl(kind="enum", **common)

    for base in cls.bases:
        if isinstance(base, ast.Subscript) and _base_name(base) in _TUPLE_BASES:
            ref = type_ref_from_node(base)
            return RecordDecl(kind="struct", fields=[FieldDecl(type=a) for a in ref.args], **common)

    fields: List[FieldDecl] = []
    for stmt in cls.body:
        if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
            continue
        type_ref = type_ref_from_node(stmt.annotation)
        if type_ref.head == "ClassVar":
            continue
        if _excluded_from_init(stmt.value):
            log.debug("skip field %s.%s (init=False)", cls.name, stmt.target.id)
            continue
        fields.append(FieldDecl(name=stmt.target.id, type=type_ref))

    return RecordDecl(kind="struct", fields=fields, **common)


def parse_source(text: str, *, filename: str = "<source>", module: Optional[str] = None) -> SourceModule:
    try:
        tree = ast.parse(text, filename=filename)
    except SyntaxError as exc:
        raise DeclarationError(f"{filename}:{exc.lineno}: {exc.msg}") from exc

    out = SourceModule(filename=filename, module=module)
    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            if isinstance(node, ast.ImportFrom) and node.module == "__future__":
                continue
            out.imports.append(ast.get_source_segment(text, node) or ast.unparse(node))
        elif isinstance(node, ast.ClassDef):
            out.records.append(_record_from_class(node, filename, module))
            if any(_is_marker(d) for d in node.decorator_list):
                out.marked.append(node.name)

    log.debug(
        "parsed %s records=%s marked=%s imports=%s",
        filename,
        len(out.records),
        len(out.marked),
        len(out.imports),
    )
    return out


def parse_file(path: str | Path, module: Optional[str] = None) -> SourceModule:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeclarationError(f"Cannot read {p}: {exc}") from exc
    return parse_source(text, filename=str(p), module=module or p.stem)
