"""Resolverのテスト"""

import pytest

from maskgen.core.base.errors import BitOverflow, NonIntegerUnderlyingType
from maskgen.core.base.ir import IntType, MaskSpec, Span, VariantSpec
from maskgen.core.engine.parser import parse_declaration
from maskgen.core.engine.resolver import implicit_bit_value, lookup_int_type, resolve_mask


def _implicit_mask(count: int, type_name: str = "u8") -> MaskSpec:
    variants = tuple(VariantSpec(name=f"V{i}") for i in range(count))
    return MaskSpec(id="M", type_name=type_name, variants=variants)


@pytest.mark.parametrize("count", [0, 1, 3, 8])
def test_implicit_variants_get_successive_powers_of_two(count):
    """暗黙フラグは宣言順に 1, 2, 4, ... を受け取ること"""
    resolved = resolve_mask(_implicit_mask(count))
    assert [v.bit_pattern for v in resolved.variants] == [1 << i for i in range(count)]
    assert [v.bit_index for v in resolved.variants] == list(range(count))


def test_scenario_three_flags_u8():
    """u8 の Flag1..Flag3 は 0b001, 0b010, 0b100"""
    resolved = resolve_mask(parse_declaration("M(u8) { Flag1, Flag2, Flag3 }"))
    assert [v.bit_pattern for v in resolved.variants] == [0b001, 0b010, 0b100]


def test_explicit_variant_does_not_consume_slot():
    """明示フラグは暗黙割当の枠を消費しないこと"""
    resolved = resolve_mask(parse_declaration("M(u8) { A, X = 0x80, B, Y = A | B, C }"))
    by_name = {v.name: v for v in resolved.variants}

    assert by_name["A"].bit_pattern == 1
    assert by_name["B"].bit_pattern == 2
    assert by_name["C"].bit_pattern == 4


def test_explicit_value_is_not_evaluated():
    """明示値は評価せず式テキストを保持すること"""
    resolved = resolve_mask(parse_declaration("M(u8) { A, X = A.bits | 0b100 }"))
    explicit = resolved.variants[1]

    assert explicit.implicit is False
    assert explicit.bit_pattern is None
    assert explicit.bit_index is None
    assert explicit.source_expression == "A.bits | 0b100"


def test_declaration_order_is_preserved():
    """解決結果は宣言順を維持すること"""
    resolved = resolve_mask(parse_declaration("M(u8) { Z, A = Z, Y }"))
    assert [v.name for v in resolved.variants] == ["Z", "A", "Y"]


def test_bit_overflow_u8(fixtures_dir):
    """u8 で9個目の暗黙フラグはBitOverflow"""
    from maskgen.core.engine.loader import load_spec

    mask = load_spec(fixtures_dir / "overflow.mask").masks[0]
    with pytest.raises(BitOverflow) as exc_info:
        resolve_mask(mask)

    assert exc_info.value.variant == "B8"
    assert exc_info.value.span == Span(line=3, column=5)
    assert "bit 8" in str(exc_info.value)


def test_explicit_variants_do_not_trigger_overflow():
    """明示フラグは幅の計算に含めないこと"""
    names = ", ".join(f"V{i}" for i in range(8))
    resolved = resolve_mask(parse_declaration(f"M(u8) {{ {names}, EXTRA = V0 | V7 }}"))
    assert len(resolved.variants) == 9


def test_signed_sign_bit_is_negative():
    """符号付き型の最上位ビットは2の補数の値"""
    resolved = resolve_mask(_implicit_mask(8, "i8"))
    assert resolved.variants[-1].bit_pattern == -128
    assert resolved.variants[-2].bit_pattern == 64


def test_native_width_override():
    """usize の幅を指定できること"""
    resolved = resolve_mask(_implicit_mask(1, "usize"), native_width=32)
    assert resolved.int_type == IntType(name="usize", width=32, signed=False)

    with pytest.raises(BitOverflow):
        resolve_mask(_implicit_mask(33, "usize"), native_width=32)


def test_resolution_is_deterministic():
    """同じ入力からは同じ結果"""
    mask = parse_declaration("M(u16) { A, B = A | A, C }")
    assert resolve_mask(mask) == resolve_mask(mask)


def test_lookup_int_type():
    """基底型名の解決"""
    assert lookup_int_type("u128").width == 128
    assert lookup_int_type("i16").signed is True
    assert lookup_int_type("isize", native_width=64) == IntType(name="isize", width=64, signed=True)

    with pytest.raises(NonIntegerUnderlyingType):
        lookup_int_type("f32")


def test_resolve_non_integer_type():
    """整数以外の基底型はNonIntegerUnderlyingType"""
    with pytest.raises(NonIntegerUnderlyingType):
        resolve_mask(MaskSpec(id="M", type_name="bool", variants=(VariantSpec(name="A"),)))


def test_int_type_ranges():
    """IntTypeの範囲"""
    u8 = lookup_int_type("u8")
    i8 = lookup_int_type("i8")
    assert (u8.min_value, u8.max_value, u8.mask) == (0, 255, 0xFF)
    assert (i8.min_value, i8.max_value, i8.mask) == (-128, 127, 0xFF)
    assert implicit_bit_value(7, i8) == -128
    assert implicit_bit_value(7, u8) == 128
