"""
Introspection Module

Looks at raw source columns and infers their semantic type
(boolean / numeric / timestamp / text).
"""

from .type_inferencer import TypeInferencer

__all__ = ["TypeInferencer"]
