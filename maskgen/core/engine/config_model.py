"""ジェネレータ設定のモデル定義とロード機能"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from maskgen.backends.py_bitmask import DEFAULT_MODULE_DOCSTRING
from maskgen.core.base.int_types import VALID_NATIVE_WIDTHS


class GeneratorConfig(BaseModel):
    """ジェネレータ設定

    Attributes:
        default_type: type省略時の基底型
        native_width: usize/isize の幅（未指定時は実行環境のポインタ幅）
        module_docstring: 生成モジュールのdocstring
        emit_descriptions: 宣言の説明を生成クラスのdocstringに使うか
    """

    default_type: str = "usize"
    native_width: int | None = None
    module_docstring: str = DEFAULT_MODULE_DOCSTRING
    emit_descriptions: bool = True
    output_suffix: str = Field(default="_masks.py", description="gen の既定出力ファイル名の接尾辞")

    @field_validator("native_width")
    @classmethod
    def _check_native_width(cls, value: int | None) -> int | None:
        if value is not None and value not in VALID_NATIVE_WIDTHS:
            raise ValueError(f"native_width must be one of {VALID_NATIVE_WIDTHS}, got {value}")
        return value


def load_config(config_path: str | Path) -> GeneratorConfig:
    """設定YAMLをロードして検証

    Args:
        config_path: 設定YAMLのパス

    Returns:
        GeneratorConfig: 検証済み設定

    Raises:
        FileNotFoundError: ファイルが存在しない
        yaml.YAMLError: YAML形式エラー
        pydantic.ValidationError: Pydantic検証エラー
    """
    config_path_obj = Path(config_path)

    if not config_path_obj.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path_obj) as f:
        data = yaml.safe_load(f)

    return GeneratorConfig.model_validate(data or {})
