from .declaration_loader import load_declarations, parse_declarations
from .python_source import SourceModule, parse_file, parse_source
from .reflect import reflect_record
from .type_parser import parse_annotation, type_ref_from_object

__all__ = [
    "SourceModule",
    "load_declarations",
    "parse_annotation",
    "parse_declarations",
    "parse_file",
    "parse_source",
    "reflect_record",
    "type_ref_from_object",
]
