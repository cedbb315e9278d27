"""Validatorのテスト"""

import logging
from pathlib import Path

import pytest

from maskgen.core.base.errors import DuplicateVariant, MalformedSpec, NonIntegerUnderlyingType
from maskgen.core.base.ir import MaskFileIR, MaskSpec, MetaSpec, Span, VariantSpec
from maskgen.core.engine.loader import load_spec
from maskgen.core.engine.parser import parse_declaration
from maskgen.core.engine.validate import (
    find_expression_hazards,
    raise_for_errors,
    validate_ir,
    validate_mask,
)


def test_validate_valid_spec(fixtures_dir: Path):
    """正常なspecのバリデーションが通るテスト"""
    ir = load_spec(fixtures_dir / "sample_spec.yaml")
    errors = validate_ir(ir)
    assert errors == [], f"Expected no errors, but got: {errors}"


def test_validate_non_integer_type(fixtures_dir: Path):
    """整数以外の基底型はNonIntegerUnderlyingType"""
    ir = load_spec(fixtures_dir / "invalid_type.yaml")
    errors = validate_ir(ir)

    assert len(errors) == 1
    assert isinstance(errors[0], NonIntegerUnderlyingType)
    assert "f32" in str(errors[0])


def test_validate_non_integer_type_span():
    """型エラーは型パラメータの位置で報告すること"""
    errors = validate_mask(parse_declaration("Ratio(f64) { A }"))
    assert isinstance(errors[0], NonIntegerUnderlyingType)
    assert errors[0].span == Span(line=1, column=7)


def test_validate_duplicate_variant(fixtures_dir: Path):
    """重複フラグ名のエラー検出テスト"""
    ir = load_spec(fixtures_dir / "invalid_duplicate.yaml")
    errors = validate_ir(ir)

    assert len(errors) == 1
    assert isinstance(errors[0], DuplicateVariant)
    assert errors[0].variant == "A"


def test_validate_duplicate_variant_reports_second_occurrence():
    """重複は2件目の位置を報告すること"""
    errors = validate_mask(parse_declaration("M(u8) {\n    A,\n    B,\n    A,\n}"))
    assert isinstance(errors[0], DuplicateVariant)
    assert errors[0].span == Span(line=4, column=5)


@pytest.mark.parametrize("name", ["all", "bits", "contains", "not_", "from_bits", "Self", "_hidden", "class"])
def test_validate_rejects_invalid_variant_names(name):
    """生成メソッドと衝突する名前・不正な識別子はMalformedSpec"""
    mask = MaskSpec(id="M", type_name="u8", variants=(VariantSpec(name=name),))
    errors = validate_mask(mask)
    assert len(errors) == 1
    assert isinstance(errors[0], MalformedSpec)
    assert errors[0].variant == name


def test_validate_rejects_variant_named_like_type():
    """型名と同名のフラグはMalformedSpec"""
    errors = validate_mask(parse_declaration("M(u8) { M }"))
    assert isinstance(errors[0], MalformedSpec)


def test_validate_rejects_invalid_mask_name():
    """型名が識別子でなければMalformedSpec"""
    errors = validate_mask(MaskSpec(id="my-mask", type_name="u8"))
    assert isinstance(errors[0], MalformedSpec)


def test_validate_duplicate_mask_ids():
    """同一ファイル内の型名の重複を検出"""
    ir = MaskFileIR(
        meta=MetaSpec(name="dup"),
        masks=(MaskSpec(id="M", type_name="u8"), MaskSpec(id="M", type_name="u16")),
    )
    errors = validate_ir(ir)
    assert any("duplicate bitmask id" in str(e) for e in errors)


def test_raise_for_errors():
    """エラーがあれば最初の1件を送出すること"""
    raise_for_errors([])
    with pytest.raises(DuplicateVariant):
        raise_for_errors([DuplicateVariant("first"), MalformedSpec("second")])


def test_hazard_later_reference(fixtures_dir: Path):
    """後で宣言されるフラグの参照を警告"""
    ir = load_spec(fixtures_dir / "forward_ref.mask")
    hazards = find_expression_hazards(ir.masks[0])
    assert len(hazards) == 1
    assert "later variant(s) A, LATE" in hazards[0]


def test_hazard_self_reference():
    """自分自身の参照を警告"""
    hazards = find_expression_hazards(parse_declaration("M(u8) { A, B = B | A }"))
    assert any("references the variant itself" in h for h in hazards)


def test_hazard_all_of_type_being_defined():
    """定義中の型の all() 呼び出しを警告"""
    hazards = find_expression_hazards(parse_declaration("M(u8) { A, B = Self.all().bits }"))
    assert any("all()" in h for h in hazards)


def test_hazard_ignores_block_locals():
    """ブロック内のローカル名は参照として扱わないこと"""
    mask = parse_declaration("M(u8) { A, B = { C = A.bits; C << 1 }, C }")
    assert find_expression_hazards(mask) == []


def test_hazards_are_logged_not_fatal(caplog):
    """警告はログ出力のみで、エラーにはならないこと"""
    mask = parse_declaration("M(u8) { A = B, B }")
    with caplog.at_level(logging.WARNING, logger="maskgen.core.engine.validate"):
        errors = validate_mask(mask)

    assert errors == []
    assert "later variant(s) B" in caplog.text


def test_hazard_self_reference_through_alias():
    """Self 経由の自己参照も警告"""
    hazards = find_expression_hazards(parse_declaration("M(u8) { A, B = Self.B | Self.A }"))
    assert any("references the variant itself" in h for h in hazards)
    assert not any("later variant" in h for h in hazards)


def test_hazard_later_reference_through_type_name():
    """型名・Self 経由の後方フラグ参照も警告"""
    via_self = find_expression_hazards(parse_declaration("M(u8) { A, B = Self.C, C }"))
    via_type = find_expression_hazards(parse_declaration("M(u8) { A, B = M.C | A, C }"))
    assert via_self == ["bitmask 'M', variant 'B': expression references later variant(s) C"]
    assert via_type == ["bitmask 'M', variant 'B': expression references later variant(s) C"]


@pytest.mark.parametrize("name", ["int", "isinstance", "OverflowError", "_private"])
def test_validate_rejects_mask_names_shadowing_module_globals(name):
    """組み込み名・_ で始まる型名はMalformedSpec"""
    errors = validate_mask(MaskSpec(id=name, type_name="u8", variants=(VariantSpec(name="A"),)))
    assert len(errors) == 1
    assert isinstance(errors[0], MalformedSpec)
    assert name in str(errors[0])
