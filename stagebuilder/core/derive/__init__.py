from .classifier import classify_fields, is_optional_type, split_fields
from .engine import DerivationReport, DerivationResult, derive, derive_many, diagnose
from .models import Derivation, FieldDescriptor, OperationDecl, StageDecl
from .naming import NameRegistry, StageNameTable, resolve_stage_name, resolve_stage_names

__all__ = [
    "Derivation",
    "DerivationReport",
    "DerivationResult",
    "FieldDescriptor",
    "NameRegistry",
    "OperationDecl",
    "StageDecl",
    "StageNameTable",
    "classify_fields",
    "derive",
    "derive_many",
    "diagnose",
    "is_optional_type",
    "resolve_stage_name",
    "resolve_stage_names",
    "split_fields",
]
