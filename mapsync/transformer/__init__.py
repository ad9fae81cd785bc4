"""
Transformer Module

Per-field transformation pipelines:
- Tagged step variants (constant, uppercase, ..., to_date)
- Deterministic sequential evaluator
"""

from .steps import (
    TransformationStep,
    ReplaceMode,
    new_step,
    step_from_dict,
    STEP_TYPES,
)
from .registry import TransformerRegistry, apply_pipeline

__all__ = [
    "TransformationStep",
    "ReplaceMode",
    "new_step",
    "step_from_dict",
    "STEP_TYPES",
    "TransformerRegistry",
    "apply_pipeline",
]
