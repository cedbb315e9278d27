"""バックエンド層 - 解決済みIR→成果物生成

解決済みIRからコード生成を行う純関数群。
"""

from . import py_bitmask, py_bitmask_rules

__all__ = ["py_bitmask", "py_bitmask_rules"]
