from __future__ import annotations

import logging
import types
from typing import Any, Dict, Optional, TypeVar

from stagebuilder.core.config import GenerationConfig
from stagebuilder.core.derive.engine import derive
from stagebuilder.core.derive.models import Derivation
from stagebuilder.core.frontend.reflect import reflect_record

from .python_gen import render_python_module

log = logging.getLogger("stagebuilder.materialize")

C = TypeVar("C", bound=type)


def materialize(cls: type, derivation: Derivation, config: Optional[GenerationConfig] = None) -> types.ModuleType:
    """Execute the generated stages for `cls` and install `cls.builder`.

    The stages live in a fresh module named ``<cls module>._builders_<Name>``
    whose namespace binds the record class itself. The rendered source is the
    same text the CLI writes to disk; it is compiled and executed here so the
    decorator path and the generated-file path share one emitter, the way
    ``dataclasses`` builds its ``__init__``.
    """
    cfg = config or GenerationConfig()
    code = render_python_module(
        [derivation],
        import_records=False,
        attach_entry=False,
        config=cfg,
    )

    module = types.ModuleType(f"{cls.__module__}._builders_{cls.__name__}")
    namespace: Dict[str, Any] = module.__dict__
    namespace[cls.__name__] = cls
    exec(compile(code, module.__name__, "exec"), namespace)

    if "builder" in cls.__dict__:
        log.warning("%s already defines builder(); replacing it with the derived factory", cls.__name__)

    factory = namespace[f"_{cls.__name__}_{derivation.entry.name}"]
    setattr(cls, derivation.entry.name, staticmethod(factory))
    log.debug("materialized %s stages=%s", cls.__name__, len(derivation.stages))
    return module


def derive_builder(cls: Optional[C] = None, *, config: Optional[GenerationConfig] = None) -> Any:
    """Class decorator: derive and install a typestate builder.

        @derive_builder
        @dataclass
        class Cart:
            owner: str
            num_seats: Optional[int] = None

        Cart.builder().owner("Alice").build()

    Raises InputShapeError when the class is not a struct with named fields.
    """
    def wrap(klass: C) -> C:
        derivation = derive(reflect_record(klass), config)
        materialize(klass, derivation, config)
        return klass

    if cls is None:
        return wrap
    return wrap(cls)
