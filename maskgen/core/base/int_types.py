"""基底整数型テーブル

usize/isize はジェネレータを実行するインタプリタのポインタ幅を採用する。
"""

from __future__ import annotations

import struct

from maskgen.core.base.errors import NonIntegerUnderlyingType
from maskgen.core.base.ir import IntType, Span

NATIVE_TYPE_NAMES = {"usize", "isize"}

_FIXED_WIDTHS = (8, 16, 32, 64, 128)

INTEGER_TYPES: dict[str, IntType] = {}
for _width in _FIXED_WIDTHS:
    INTEGER_TYPES[f"u{_width}"] = IntType(name=f"u{_width}", width=_width, signed=False)
    INTEGER_TYPES[f"i{_width}"] = IntType(name=f"i{_width}", width=_width, signed=True)

VALID_NATIVE_WIDTHS = (32, 64)


def native_word_width() -> int:
    """実行環境のポインタ幅（ビット）"""
    return struct.calcsize("P") * 8


def is_integer_type_name(name: str) -> bool:
    return name in INTEGER_TYPES or name in NATIVE_TYPE_NAMES


def lookup_int_type(name: str, native_width: int | None = None, span: Span | None = None) -> IntType:
    """型名からIntTypeを解決

    Args:
        name: 基底型名
        native_width: usize/isize の幅（未指定時は実行環境の値）
        span: エラー報告用の位置

    Returns:
        IntType

    Raises:
        NonIntegerUnderlyingType: 整数型ではない
    """
    if name in INTEGER_TYPES:
        return INTEGER_TYPES[name]
    if name in NATIVE_TYPE_NAMES:
        width = native_width or native_word_width()
        return IntType(name=name, width=width, signed=name == "isize")
    valid = ", ".join([*INTEGER_TYPES, *sorted(NATIVE_TYPE_NAMES)])
    raise NonIntegerUnderlyingType(
        f"underlying type '{name}' is not an integer type. Valid types: {valid}",
        span=span,
    )
