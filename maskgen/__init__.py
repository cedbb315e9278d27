"""maskgen - 宣言からビットマスク型を生成するジェネレータ"""

__version__ = "1.0.0"

from maskgen.core.base.errors import (  # noqa: E402
    BitOverflow,
    DuplicateVariant,
    MalformedSpec,
    MaskGenError,
    NonIntegerUnderlyingType,
)
from maskgen.core.engine.loader import load_spec  # noqa: E402
from maskgen.core.engine.parser import parse_declaration, parse_declarations  # noqa: E402
from maskgen.core.engine.pipeline import compile_ir, compile_mask, define_bitmask  # noqa: E402

__all__ = [
    "BitOverflow",
    "DuplicateVariant",
    "MalformedSpec",
    "MaskGenError",
    "NonIntegerUnderlyingType",
    "compile_ir",
    "compile_mask",
    "define_bitmask",
    "load_spec",
    "parse_declaration",
    "parse_declarations",
]
