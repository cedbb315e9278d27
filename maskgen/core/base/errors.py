"""エラー定義

全てのエラーは出力前に検出され、その宣言の処理全体を中断する（部分出力なし）。
明示値の式の評価エラーはここでは扱わず、生成モジュールのimport時にホスト側で報告される。
"""

from __future__ import annotations

from maskgen.core.base.ir import Span


class MaskGenError(Exception):
    """maskgenの基底エラー

    Attributes:
        message: エラーメッセージ
        span: 問題箇所の位置
        variant: 問題のフラグ名
    """

    kind = "error"

    def __init__(self, message: str, span: Span | None = None, variant: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.span = span
        self.variant = variant

    def __str__(self) -> str:
        if self.span is not None:
            return f"{self.span}: {self.message}"
        return self.message


class MalformedSpec(MaskGenError):
    """宣言の構文エラー（フラグリスト・型パラメータ・式）"""

    kind = "malformed-spec"


class DuplicateVariant(MaskGenError):
    """同名のフラグが2つ以上ある"""

    kind = "duplicate-variant"


class NonIntegerUnderlyingType(MaskGenError):
    """基底型が整数型ではない"""

    kind = "non-integer-underlying-type"


class BitOverflow(MaskGenError):
    """デフォルトビット割当が基底型の幅を超えた"""

    kind = "bit-overflow"
