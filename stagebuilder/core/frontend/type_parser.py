"""
Annotation -> TypeRef conversion shared by every frontend.

Only the syntax is inspected. Nothing is imported or resolved, so a type
alias of Optional is just another name.
"""
from __future__ import annotations

import ast
import typing
from typing import Any, List, Optional

from stagebuilder.core.descriptor_schema import TypeRef


# Constructors whose subscript arguments are values, not types.
_VALUE_ARG_HEADS = {"Literal"}


def _dotted_path(node: ast.expr) -> Optional[List[str]]:
    parts: List[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return list(reversed(parts))


def _subscript_args(node: ast.Subscript) -> List[ast.expr]:
    sl = node.slice
    if isinstance(sl, ast.Tuple):
        return list(sl.elts)
    return [sl]


def type_ref_from_node(node: ast.expr) -> TypeRef:
    if isinstance(node, (ast.Name, ast.Attribute)):
        path = _dotted_path(node)
        if path is not None:
            return TypeRef(segments=path)

    if isinstance(node, ast.Subscript):
        path = _dotted_path(node.value)
        if path is not None:
            raw_args = _subscript_args(node)
            if path[-1] in _VALUE_ARG_HEADS:
                args = [TypeRef(raw=ast.unparse(a)) for a in raw_args]
            elif path[-1] == "Annotated" and raw_args:
                args = [type_ref_from_node(raw_args[0])]
                args.extend(TypeRef(raw=ast.unparse(a)) for a in raw_args[1:])
            else:
                args = [type_ref_from_node(a) for a in raw_args]
            return TypeRef(segments=path, args=args)

    if isinstance(node, ast.Constant):
        if node.value is None:
            return TypeRef(segments=["None"])
        if isinstance(node.value, str):
            # forward reference: "Cart" or "Optional[Cart]"
            return parse_annotation(node.value)

    # ForwardRef('Cart') as printed by typing reprs
    if (
        isinstance(node, ast.Call)
        and _dotted_path(node.func) in (["ForwardRef"], ["typing", "ForwardRef"])
        and len(node.args) == 1
        and isinstance(node.args[0], ast.Constant)
        and isinstance(node.args[0].value, str)
    ):
        return parse_annotation(node.args[0].value)

    return TypeRef(raw=ast.unparse(node))


def parse_annotation(text: str) -> TypeRef:
    text = text.strip()
    try:
        expr = ast.parse(text, mode="eval").body
    except SyntaxError:
        return TypeRef(raw=text)
    return type_ref_from_node(expr)


def _origin_segments(annotation: Any, origin: Any) -> List[str]:
    # typing.List[int] -> ["typing", "List"]; list[int] / Box[int] -> ["list"] / ["Box"]
    name = getattr(annotation, "_name", None)
    if name:
        return ["typing", name]
    return [getattr(origin, "__name__", "object")]


def type_ref_from_object(annotation: Any) -> TypeRef:
    """Convert a runtime annotation object (or string) into a TypeRef.

    Evaluated typing objects are walked structurally rather than through their
    repr, so classes local to a function never leak ``<locals>`` into
    generated source.
    """
    if isinstance(annotation, str):
        return parse_annotation(annotation)
    if annotation is None or annotation is type(None):
        return TypeRef(segments=["None"])
    if annotation is Ellipsis:
        return TypeRef(raw="...")
    if isinstance(annotation, typing.ForwardRef):
        return parse_annotation(annotation.__forward_arg__)
    if isinstance(annotation, list):
        return TypeRef(raw="[" + ", ".join(type_ref_from_object(a).render() for a in annotation) + "]")

    origin = typing.get_origin(annotation)
    if origin is None:
        if isinstance(annotation, (type, typing.TypeVar)):
            return TypeRef(segments=[annotation.__name__])
        return parse_annotation(repr(annotation))

    args = typing.get_args(annotation)

    if origin is typing.Annotated:
        return type_ref_from_object(args[0])

    if origin is typing.Literal:
        return TypeRef(segments=["typing", "Literal"], args=[TypeRef(raw=repr(a)) for a in args])

    if origin is typing.Union:
        members = [a for a in args if a is not type(None)]
        if len(members) == len(args):
            return TypeRef(segments=["typing", "Union"], args=[type_ref_from_object(a) for a in args])
        # Optional[Union[A, B]] is flattened to Union[A, B, None] at runtime
        if len(members) == 1:
            inner = type_ref_from_object(members[0])
        else:
            inner = TypeRef(segments=["typing", "Union"], args=[type_ref_from_object(a) for a in members])
        return TypeRef(segments=["typing", "Optional"], args=[inner])

    if type(annotation).__name__ == "UnionType":
        # PEP 604 `X | Y` keeps its syntax and is never treated as optional
        return TypeRef(raw=" | ".join(type_ref_from_object(a).render() for a in args))

    return TypeRef(
        segments=_origin_segments(annotation, origin),
        args=[type_ref_from_object(a) for a in args],
    )
