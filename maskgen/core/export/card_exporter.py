"""Card Exporter - 解決済みIRを表示用のJSONカードに変換

設計原則:
- IRの構造を直接反映（asdict()による変換）
- 各カードに操作テーブルを添付し、生成型の契約を出力方式と独立に確認できるようにする
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Sequence

from maskgen.backends.py_bitmask_rules import operation_table
from maskgen.core.base.ir import ResolvedMask, ResolvedVariant


def _variant_card(variant: ResolvedVariant) -> dict[str, Any]:
    """フラグ1件のカード"""
    card = asdict(variant)
    card["kind"] = "implicit" if variant.implicit else "explicit"
    if variant.bit_pattern is not None:
        card["bits"] = bin(variant.bit_pattern)
    return card


def export_mask_card(mask: ResolvedMask) -> dict[str, Any]:
    """ビットマスク1件のカード"""
    return {
        "id": mask.name,
        "name": mask.name,
        "category": "bitmask",
        "description": mask.spec.description,
        "underlying_type": asdict(mask.int_type),
        "variants": [_variant_card(v) for v in mask.variants],
        "operations": operation_table(),
    }


def export_mask_cards(masks: Sequence[ResolvedMask]) -> list[dict[str, Any]]:
    """解決済みの宣言群をカードリストに変換

    Args:
        masks: 解決済みの宣言リスト

    Returns:
        カードのリスト
    """
    return [export_mask_card(mask) for mask in masks]


def write_cards(masks: Sequence[ResolvedMask], output_path: Path) -> None:
    """カードをJSONファイルに書き出す"""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(export_mask_cards(masks), ensure_ascii=False, indent=2), encoding="utf-8")
