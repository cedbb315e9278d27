"""ビットマスク型生成バックエンド

解決済みIRからPythonのビットマスク型を生成する。
生成コードは maskgen に依存せず、モジュールのimport時に明示値の式が評価される。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from maskgen.backends.py_bitmask_rules import OPERATIONS
from maskgen.core.base.ir import ResolvedMask, ResolvedVariant
from maskgen.core.engine.parser import split_block

logger = logging.getLogger(__name__)

DEFAULT_MODULE_DOCSTRING = "生成されたビットマスク型\n\nこのファイルは maskgen が宣言から自動生成します。"


def _docstring(text: str) -> str:
    """三重引用符の docstring として安全な形にエスケープ

    末尾の " は閉じ引用符と連結してしまうためエスケープする。
    """
    escaped = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if escaped.endswith('"'):
        head = escaped[:-1]
        # 元の \ は倍にしてあるので、奇数個なら既にエスケープ済み
        if (len(head) - len(head.rstrip("\\"))) % 2 == 0:
            escaped = head + '\\"'
    return escaped


def _initializer_name(mask: ResolvedMask, variant: ResolvedVariant) -> str:
    return f"_{mask.name}_{variant.name}_init"


def _render_class_header(mask: ResolvedMask, emit_description: bool) -> list[str]:
    """クラス宣言と定数属性を生成"""
    int_type = mask.int_type
    summary = mask.spec.description if emit_description and mask.spec.description else f"Bitmask {mask.name}."
    names = ", ".join(f'"{v.name}"' for v in mask.variants)
    if len(mask.variants) == 1:
        names += ","

    return [
        f"class {mask.name}:",
        f'    """{_docstring(summary)}',
        "",
        f"    Underlying type: {int_type.describe()}.",
        '    """',
        "",
        '    __slots__ = ("_bits",)',
        "",
        f'    _TYPE = "{int_type.name}"',
        f"    _WIDTH = {int_type.width}",
        f"    _SIGNED = {int_type.signed}",
        f"    _MIN = {int_type.min_value}",
        f"    _MAX = {int_type.max_value}",
        f"    _VARIANTS = ({names})",
    ]


def _render_methods(mask: ResolvedMask) -> list[str]:
    """操作テーブルを展開してメソッドを生成"""
    context = {
        "cls": mask.name,
        "type_name": mask.int_type.describe(),
        "mask_literal": hex(mask.int_type.mask),
    }
    lines: list[str] = []
    for rule in OPERATIONS:
        lines.append("")
        lines.append(rule.render(context, signed=mask.int_type.signed))
    return lines


def _render_initializer(mask: ResolvedMask, variant: ResolvedVariant, earlier: Sequence[str]) -> list[str]:
    """明示値の初期化関数を生成

    先に宣言されたフラグを素の名前で、定義中の型を Self で参照できる。
    """
    statements, final = split_block(variant.source_expression or "")
    lines = [f"def {_initializer_name(mask, variant)}():", f"    Self = {mask.name}"]
    lines.extend(f"    {name} = {mask.name}.{name}" for name in earlier)
    lines.extend(f"    {stmt}" for stmt in statements)
    lines.append(f"    return ({final})")
    return lines


def _render_constants(mask: ResolvedMask) -> list[str]:
    """フラグ定数を宣言順に生成"""
    lines: list[str] = []
    defined: list[str] = []
    for variant in mask.variants:
        if variant.implicit:
            lines.append(f"{mask.name}.{variant.name} = {mask.name}({bin(variant.bit_pattern or 0)})")
        else:
            lines.append("")
            lines.append("")
            lines.extend(_render_initializer(mask, variant, defined))
            lines.append("")
            lines.append("")
            lines.append(f"{mask.name}.{variant.name} = {mask.name}({_initializer_name(mask, variant)}())")
            lines.append(f"del {_initializer_name(mask, variant)}")
        defined.append(variant.name)

    if mask.variants:
        all_bits = " | ".join(f"{mask.name}.{v.name}._bits" for v in mask.variants)
    else:
        all_bits = "0"
    lines.append(f"{mask.name}._ALL = {all_bits}")
    return lines


def render_mask(mask: ResolvedMask, emit_description: bool = True) -> str:
    """ビットマスク型1件のソースを生成

    Args:
        mask: 解決済みの宣言
        emit_description: 宣言の説明をdocstringに使うか

    Returns:
        クラス定義とフラグ定数のソース
    """
    lines = _render_class_header(mask, emit_description)
    lines.extend(_render_methods(mask))
    lines.append("")
    lines.append("")
    lines.extend(_render_constants(mask))
    logger.debug("rendered bitmask %s (%d variants)", mask.name, len(mask.variants))
    return "\n".join(lines) + "\n"


def render_module(sections: Sequence[str], names: Sequence[str], module_docstring: str = DEFAULT_MODULE_DOCSTRING) -> str:
    """生成済みの型定義をモジュールにまとめる

    Args:
        sections: render_mask の結果
        names: __all__ に載せる型名
        module_docstring: モジュールdocstring

    Returns:
        モジュールのソース
    """
    header = [
        f'"""{_docstring(module_docstring)}"""',
        "",
        "from __future__ import annotations",
        "",
        "import operator as _operator",
        "",
        "",
    ]
    body: list[str] = []
    for section in sections:
        body.append("")
        body.append(section)
    exported = ", ".join(f'"{name}"' for name in names)
    footer = ["", f"__all__ = [{exported}]", ""]
    return "\n".join(header) + "\n".join(body) + "\n".join(footer)


def generate_bitmask_file(
    masks: Sequence[ResolvedMask],
    output_path: Path,
    module_docstring: str = DEFAULT_MODULE_DOCSTRING,
    emit_description: bool = True,
) -> None:
    """解決済みの宣言群からモジュールファイルを生成

    Args:
        masks: 解決済みの宣言リスト
        output_path: 出力ファイルパス
        module_docstring: モジュールdocstring
        emit_description: 宣言の説明をdocstringに使うか
    """
    sections = [render_mask(mask, emit_description) for mask in masks]
    content = render_module(sections, [mask.name for mask in masks], module_docstring)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
