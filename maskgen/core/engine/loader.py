"""Loader: YAML/JSON/.mask→IR変換

仕様ファイルを読み込み、MaskFileIRに変換する。
YAMLでは各フラグを名前のみ、または {name, value} 形式で記述する::

    version: "1"
    meta:
      name: demo
    bitmasks:
      - id: Permissions
        type: u8
        variants:
          - READ
          - WRITE
          - name: RW
            value: READ | WRITE
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from maskgen.core.base.errors import MalformedSpec
from maskgen.core.base.ir import MaskFileIR, MaskSpec, MetaSpec, VariantSpec
from maskgen.core.engine.parser import DEFAULT_TYPE_NAME, check_expression_syntax, parse_declarations


def load_spec(spec_path: str | Path, default_type: str = DEFAULT_TYPE_NAME) -> MaskFileIR:
    """YAML/JSON/.mask仕様を読み込み、IRに変換

    Args:
        spec_path: 仕様ファイルのパス
        default_type: type省略時の基底型

    Returns:
        MaskFileIR: 統合IR

    Raises:
        ValueError: 未対応のファイル形式
        MalformedSpec: 構造・構文エラー
    """
    spec_path = Path(spec_path)
    with open(spec_path, encoding="utf-8") as f:
        if spec_path.suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        elif spec_path.suffix == ".json":
            data = json.load(f)
        elif spec_path.suffix == ".mask":
            masks = parse_declarations(f.read(), default_type)
            return MaskFileIR(meta=MetaSpec(name=spec_path.stem), masks=tuple(masks))
        else:
            raise ValueError(f"未対応のファイル形式: {spec_path.suffix}")

    return load_spec_data(data or {}, default_name=spec_path.stem, default_type=default_type)


def load_spec_data(
    data: dict[str, Any], default_name: str = "unknown", default_type: str = DEFAULT_TYPE_NAME
) -> MaskFileIR:
    """辞書形式の仕様をIRに変換

    Args:
        data: yaml.safe_load / json.load の結果
        default_name: meta.name 省略時のプロジェクト名
        default_type: type省略時の基底型

    Returns:
        MaskFileIR
    """
    if not isinstance(data, dict):
        raise MalformedSpec("spec root must be a mapping")

    meta = _load_meta(data.get("meta") or {}, str(data.get("version", "1.0")), default_name)
    masks = _load_mask_specs(data.get("bitmasks", []), default_type)
    return MaskFileIR(meta=meta, masks=masks)


def _load_meta(meta_data: dict[str, Any], version: str, default_name: str) -> MetaSpec:
    """メタデータを読み込み"""
    if not isinstance(meta_data, dict):
        raise MalformedSpec("'meta' must be a mapping")
    return MetaSpec(
        name=meta_data.get("name", default_name),
        description=meta_data.get("description", ""),
        version=version,
    )


def _load_mask_specs(masks_data: list[dict[str, Any]], default_type: str) -> tuple[MaskSpec, ...]:
    """bitmasks セクションをMaskSpecに変換"""
    if not isinstance(masks_data, list):
        raise MalformedSpec("'bitmasks' must be a list")

    masks = []
    for index, mask_data in enumerate(masks_data):
        if not isinstance(mask_data, dict) or not mask_data.get("id"):
            raise MalformedSpec(f"bitmask #{index + 1}: 'id' is required")

        mask_id = str(mask_data["id"])
        # 型名は数値などもそのまま文字列化し、整数型かどうかはValidatorで判定
        type_name = str(mask_data.get("type") or default_type)
        mask = MaskSpec(
            id=mask_id,
            type_name=type_name,
            variants=_load_variants(mask_id, mask_data.get("variants", [])),
            description=mask_data.get("description", ""),
        )
        masks.append(mask)
    return tuple(masks)


def _load_variants(mask_id: str, variants_data: list[Any]) -> tuple[VariantSpec, ...]:
    """フラグ定義をVariantSpecに変換"""
    if not isinstance(variants_data, list):
        raise MalformedSpec(f"bitmask '{mask_id}': 'variants' must be a list")

    variants = []
    for variant_data in variants_data:
        if isinstance(variant_data, str):
            variants.append(VariantSpec(name=variant_data))
            continue

        if not isinstance(variant_data, dict) or not variant_data.get("name"):
            raise MalformedSpec(f"bitmask '{mask_id}': variant entry {variant_data!r} has no name")

        name = str(variant_data["name"])
        value = variant_data.get("value")
        if value is None:
            variants.append(VariantSpec(name=name))
            continue

        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise MalformedSpec(f"bitmask '{mask_id}', variant '{name}': value must be an expression string")
        expression = str(value).strip()
        try:
            check_expression_syntax(expression)
        except MalformedSpec as exc:
            raise MalformedSpec(f"bitmask '{mask_id}', variant '{name}': {exc.message}", variant=name) from exc
        variants.append(VariantSpec(name=name, explicit_value=expression))
    return tuple(variants)
