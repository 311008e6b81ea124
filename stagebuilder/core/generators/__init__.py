from .materialize import derive_builder, materialize
from .python_gen import render_files, render_python_module

__all__ = [
    "derive_builder",
    "materialize",
    "render_files",
    "render_python_module",
]
