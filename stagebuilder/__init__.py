"""Typestate builder generation for Python record classes."""
from stagebuilder.core.config import GenerationConfig
from stagebuilder.core.derive import derive, derive_many, diagnose
from stagebuilder.core.errors import (
    BuilderConsumedError,
    DeclarationError,
    InputShapeError,
    NameOverflowError,
    StageBuilderError,
)
from stagebuilder.core.generators import derive_builder, materialize, render_python_module

__version__ = "0.1.0"

__all__ = [
    "BuilderConsumedError",
    "DeclarationError",
    "GenerationConfig",
    "InputShapeError",
    "NameOverflowError",
    "StageBuilderError",
    "derive",
    "derive_builder",
    "derive_many",
    "diagnose",
    "materialize",
    "render_python_module",
]
