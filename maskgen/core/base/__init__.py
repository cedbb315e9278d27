"""maskgen.core.base: IR（中間表現）とエラー定義

純粋なデータ定義（最下層）
"""

from .errors import (
    BitOverflow,
    DuplicateVariant,
    MalformedSpec,
    MaskGenError,
    NonIntegerUnderlyingType,
)
from .int_types import INTEGER_TYPES, lookup_int_type
from .ir import (
    IntType,
    MaskFileIR,
    MaskSpec,
    MetaSpec,
    ResolvedMask,
    ResolvedVariant,
    Span,
    VariantSpec,
)

__all__ = [
    # IR data classes
    "IntType",
    "MaskFileIR",
    "MaskSpec",
    "MetaSpec",
    "ResolvedMask",
    "ResolvedVariant",
    "Span",
    "VariantSpec",
    # Errors
    "BitOverflow",
    "DuplicateVariant",
    "MalformedSpec",
    "MaskGenError",
    "NonIntegerUnderlyingType",
    # Integer types
    "INTEGER_TYPES",
    "lookup_int_type",
]
