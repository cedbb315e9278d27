"""Pipeline: Validator→Resolver→Synthesizer

宣言ごとに独立して処理し、いずれかの段階で失敗したら何も出力しない。
"""

from __future__ import annotations

import importlib.util
import logging
import tempfile
from pathlib import Path

from maskgen.backends.py_bitmask import render_mask, render_module
from maskgen.core.base.ir import MaskFileIR, MaskSpec, ResolvedMask
from maskgen.core.engine.config_model import GeneratorConfig
from maskgen.core.engine.parser import parse_declaration
from maskgen.core.engine.resolver import resolve_mask
from maskgen.core.engine.validate import raise_for_errors, validate_ir, validate_mask

logger = logging.getLogger(__name__)


def resolve_ir(ir: MaskFileIR, config: GeneratorConfig | None = None) -> list[ResolvedMask]:
    """ファイル内の全宣言を検証・解決

    Raises:
        MaskGenError: 最初に検出したエラー
    """
    config = config or GeneratorConfig()
    raise_for_errors(validate_ir(ir))
    return [resolve_mask(mask, config.native_width) for mask in ir.masks]


def compile_mask(mask: MaskSpec, config: GeneratorConfig | None = None) -> str:
    """宣言1件からモジュールソースを生成

    Args:
        mask: 宣言
        config: ジェネレータ設定

    Returns:
        生成モジュールのソース

    Raises:
        MaskGenError: 検証・解決エラー
    """
    config = config or GeneratorConfig()
    raise_for_errors(validate_mask(mask))
    resolved = resolve_mask(mask, config.native_width)
    section = render_mask(resolved, config.emit_descriptions)
    return render_module([section], [mask.id], config.module_docstring)


def compile_ir(ir: MaskFileIR, config: GeneratorConfig | None = None) -> str:
    """ファイル内の全宣言から1つのモジュールソースを生成"""
    config = config or GeneratorConfig()
    resolved = resolve_ir(ir, config)
    sections = [render_mask(mask, config.emit_descriptions) for mask in resolved]
    logger.info("compiled %d bitmask(s) for %s", len(resolved), ir.meta.name)
    return render_module(sections, [mask.name for mask in resolved], config.module_docstring)


def define_bitmask(text: str, config: GeneratorConfig | None = None) -> type:
    """宣言テキストから型を生成して返す

    生成ソースを一時ファイルに書き出してimportする。
    明示値の式の評価エラーはここで送出される。

    Args:
        text: 宣言1件を含む .mask 形式のテキスト
        config: ジェネレータ設定

    Returns:
        生成されたビットマスク型
    """
    config = config or GeneratorConfig()
    mask = parse_declaration(text, default_type=config.default_type)
    source = compile_mask(mask, config)
    module_name = f"maskgen_generated_{mask.id}"

    with tempfile.TemporaryDirectory() as temp_dir:
        module_path = Path(temp_dir) / f"{module_name}.py"
        module_path.write_text(source, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(module_name, module_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load generated module: {module_path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

    logger.debug("defined bitmask %s from %s", mask.id, module_path)
    return getattr(module, mask.id)
