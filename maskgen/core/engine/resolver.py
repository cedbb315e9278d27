"""Resolver: フラグ値の解決

暗黙フラグには宣言順に 1, 2, 4, ... を割り当てる。
カウンタは畳み込みで受け渡し、暗黙フラグを処理したときだけ進める
（明示フラグは枠を消費しない）。
明示値の式は評価せず、テキストのまま後段に渡す。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import reduce

from maskgen.core.base.errors import BitOverflow
from maskgen.core.base.int_types import lookup_int_type
from maskgen.core.base.ir import IntType, MaskSpec, ResolvedMask, ResolvedVariant, VariantSpec

logger = logging.getLogger(__name__)

__all__ = ["implicit_bit_value", "lookup_int_type", "resolve_mask"]


def implicit_bit_value(bit_index: int, int_type: IntType) -> int:
    """ビット位置に対応する値を返す

    符号付き型の最上位ビットは2の補数表現の値（負数）になる。
    """
    value = 1 << bit_index
    if int_type.signed and bit_index == int_type.width - 1:
        return value - (1 << int_type.width)
    return value


_State = tuple[int, tuple[ResolvedVariant, ...]]


def _resolve_step(int_type: IntType, mask_id: str) -> Callable[[_State, VariantSpec], _State]:
    """(次のビット位置, 解決済みフラグ) を受け渡す畳み込み関数を作る"""

    def step(state: _State, variant: VariantSpec) -> _State:
        next_index, resolved = state
        if not variant.is_implicit:
            item = ResolvedVariant(
                name=variant.name,
                bit_pattern=None,
                source_expression=variant.explicit_value,
                implicit=False,
            )
            return next_index, (*resolved, item)

        if next_index >= int_type.width:
            raise BitOverflow(
                f"bitmask '{mask_id}': variant '{variant.name}' needs bit {next_index}, "
                f"but {int_type.describe()} has only {int_type.width} bits",
                span=variant.span,
                variant=variant.name,
            )
        item = ResolvedVariant(
            name=variant.name,
            bit_pattern=implicit_bit_value(next_index, int_type),
            source_expression=None,
            implicit=True,
            bit_index=next_index,
        )
        return next_index + 1, (*resolved, item)

    return step


def resolve_mask(mask: MaskSpec, native_width: int | None = None) -> ResolvedMask:
    """宣言の全フラグに値を割り当てる

    Args:
        mask: 検証済みの宣言
        native_width: usize/isize の幅（未指定時は実行環境の値）

    Returns:
        ResolvedMask

    Raises:
        NonIntegerUnderlyingType: 基底型が整数型ではない
        BitOverflow: 暗黙割当が基底型の幅を超えた
    """
    int_type = lookup_int_type(mask.type_name, native_width, span=mask.type_span or mask.span)
    used, variants = reduce(_resolve_step(int_type, mask.id), mask.variants, (0, ()))
    logger.debug("resolved bitmask %s: %d implicit bit(s) of %d", mask.id, used, int_type.width)
    return ResolvedMask(spec=mask, int_type=int_type, variants=variants)
