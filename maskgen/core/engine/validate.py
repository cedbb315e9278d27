"""Validator: 宣言の検証

Resolver実行前にParser/Loaderの出力を検査する。
主な検証項目:
1. 基底型が整数型か
2. フラグ名の重複
3. フラグ名がPython識別子として有効で、生成メソッド名と衝突しないか
4. 明示値の式の自己参照・前方参照（警告のみ、処理は継続）
"""

from __future__ import annotations

import ast
import builtins
import keyword
import logging
from collections.abc import Sequence

from maskgen.backends.py_bitmask_rules import RESERVED_NAMES
from maskgen.core.base.errors import (
    DuplicateVariant,
    MalformedSpec,
    MaskGenError,
    NonIntegerUnderlyingType,
)
from maskgen.core.base.int_types import is_integer_type_name
from maskgen.core.base.ir import MaskFileIR, MaskSpec
from maskgen.core.engine.parser import split_block

logger = logging.getLogger(__name__)

# 定義中の型に対して呼ぶと全フラグの評価が必要になるメソッド
_WHOLE_TYPE_METHODS = {"all", "is_all"}


def validate_ir(ir: MaskFileIR) -> list[MaskGenError]:
    """ファイル内の全宣言を検証

    Args:
        ir: 検証対象のIR

    Returns:
        エラーのリスト（空の場合はエラーなし）
    """
    errors: list[MaskGenError] = []

    seen: set[str] = set()
    for mask in ir.masks:
        if mask.id in seen:
            errors.append(MalformedSpec(f"duplicate bitmask id '{mask.id}'", span=mask.span))
        seen.add(mask.id)
        errors.extend(validate_mask(mask))

    return errors


def validate_mask(mask: MaskSpec) -> list[MaskGenError]:
    """宣言1件の検証

    Args:
        mask: 検証対象の宣言

    Returns:
        エラーのリスト
    """
    errors: list[MaskGenError] = []
    errors.extend(_validate_mask_name(mask))
    errors.extend(_validate_underlying_type(mask))
    errors.extend(_validate_variant_names(mask))
    errors.extend(_validate_duplicates(mask))

    for hazard in find_expression_hazards(mask):
        logger.warning(hazard)

    return errors


def raise_for_errors(errors: Sequence[MaskGenError]) -> None:
    """エラーがあれば最初の1件を送出"""
    if errors:
        raise errors[0]


def _validate_mask_name(mask: MaskSpec) -> list[MaskGenError]:
    """型名の妥当性チェック

    型名は生成モジュールのグローバル名になるため、組み込み名や
    _ で始まる名前（生成コードの内部名）は使えない。
    """
    if not mask.id.isidentifier() or keyword.iskeyword(mask.id):
        reason = "is not a valid identifier"
    elif mask.id.startswith("_"):
        reason = "must not start with '_'"
    elif hasattr(builtins, mask.id):
        reason = "shadows a builtin used by the generated module"
    else:
        return []
    return [MalformedSpec(f"bitmask name '{mask.id}' {reason}", span=mask.span)]


def _validate_underlying_type(mask: MaskSpec) -> list[MaskGenError]:
    """基底型が整数型かチェック"""
    if is_integer_type_name(mask.type_name):
        return []
    return [
        NonIntegerUnderlyingType(
            f"bitmask '{mask.id}': underlying type '{mask.type_name}' is not an integer type",
            span=mask.type_span or mask.span,
        )
    ]


def _validate_variant_names(mask: MaskSpec) -> list[MaskGenError]:
    """フラグ名の妥当性チェック"""
    errors: list[MaskGenError] = []
    for variant in mask.variants:
        name = variant.name
        if not name.isidentifier() or keyword.iskeyword(name):
            reason = "is not a valid identifier"
        elif name.startswith("_"):
            reason = "must not start with '_'"
        elif name in RESERVED_NAMES:
            reason = "collides with a generated method"
        elif name == mask.id or name == "Self":
            reason = "collides with the type name"
        else:
            continue
        errors.append(
            MalformedSpec(f"bitmask '{mask.id}': variant name '{name}' {reason}", span=variant.span, variant=name)
        )
    return errors


def _validate_duplicates(mask: MaskSpec) -> list[MaskGenError]:
    """重複フラグ名をチェック（2件目以降の位置を報告）"""
    errors: list[MaskGenError] = []
    seen: set[str] = set()
    for variant in mask.variants:
        if variant.name in seen:
            errors.append(
                DuplicateVariant(
                    f"bitmask '{mask.id}': duplicate variant name '{variant.name}'",
                    span=variant.span,
                    variant=variant.name,
                )
            )
        seen.add(variant.name)
    return errors


def _referenced_names(expression: str, type_names: set[str]) -> tuple[set[str], set[str]]:
    """式が参照する名前と、呼び出している属性名を収集

    ブロック内で代入されたローカル名は参照から除く。
    `Self.X` のように定義中の型を経由した属性参照も参照名に含める。

    Args:
        expression: 明示値の式
        type_names: 定義中の型を指す名前（型名と Self）

    Returns:
        (参照名, 属性名)
    """
    statements, final = split_block(expression)
    source = "\n".join([*statements, f"({final})"])
    try:
        tree = ast.parse(source)
    except SyntaxError:
        # 構文エラーはParser/Loaderで報告済み
        return set(), set()

    loaded: set[str] = set()
    stored: set[str] = set()
    qualified: set[str] = set()
    attributes: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, ast.Store):
                stored.add(node.id)
            else:
                loaded.add(node.id)
        elif isinstance(node, ast.Attribute):
            attributes.add(node.attr)
            if isinstance(node.value, ast.Name) and node.value.id in type_names:
                qualified.add(node.attr)
    return (loaded - stored) | qualified, attributes


def find_expression_hazards(mask: MaskSpec) -> list[str]:
    """明示値の式の構造的な問題を検出（致命的ではない）

    検出項目:
    - 自分自身の参照
    - 後で宣言されるフラグの参照（ホスト評価時に未定義）
    - 定義中の型の all()/is_all() 呼び出し（全フラグに依存するため循環）

    Args:
        mask: 検査対象の宣言

    Returns:
        警告メッセージのリスト
    """
    hazards: list[str] = []
    names = [v.name for v in mask.variants]
    type_names = {"Self", mask.id}

    for position, variant in enumerate(mask.variants):
        if variant.explicit_value is None:
            continue
        loaded, attributes = _referenced_names(variant.explicit_value, type_names)
        prefix = f"bitmask '{mask.id}', variant '{variant.name}'"

        if variant.name in loaded:
            hazards.append(f"{prefix}: expression references the variant itself")

        later = sorted(n for n in set(names[position + 1 :]) & loaded if n != variant.name)
        if later:
            hazards.append(f"{prefix}: expression references later variant(s) {', '.join(later)}")

        if attributes & _WHOLE_TYPE_METHODS and loaded & type_names:
            hazards.append(f"{prefix}: expression depends on all() of the type being defined")

    return hazards
