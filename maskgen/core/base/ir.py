"""中間表現（IR）データ構造定義

宣言テキスト→IR→バックエンドの一貫性を保つための中間表現。
パイプラインは純粋な変換であり、一度生成したIRは変更しない（frozen dataclass）。
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Span:
    """入力上の位置（1始まり）"""

    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class VariantSpec:
    """フラグ1件の宣言

    Attributes:
        name: フラグ名（宣言内で一意）
        explicit_value: 明示値の式テキスト（未指定ならNone＝デフォルト規則で割当）
        span: 宣言位置
    """

    name: str
    explicit_value: str | None = None
    span: Span | None = None

    @property
    def is_implicit(self) -> bool:
        return self.explicit_value is None


@dataclass(frozen=True)
class MaskSpec:
    """ビットマスク宣言全体

    Attributes:
        id: 生成する型の名前
        type_name: 基底整数型の宣言テキスト（"u8", "i32", "usize" など）
        variants: 宣言順のフラグ列（順序はデフォルトビット割当に影響する）
        description: 説明
        span: 宣言位置
        type_span: 型パラメータの位置
    """

    id: str
    type_name: str = "usize"
    variants: tuple[VariantSpec, ...] = ()
    description: str = ""
    span: Span | None = None
    type_span: Span | None = None


@dataclass(frozen=True)
class IntType:
    """固定幅整数型"""

    name: str
    width: int
    signed: bool

    @property
    def min_value(self) -> int:
        return -(1 << (self.width - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.width - 1)) - 1 if self.signed else (1 << self.width) - 1

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    def describe(self) -> str:
        kind = "signed" if self.signed else "unsigned"
        return f"{self.name} ({kind}, {self.width} bits)"


@dataclass(frozen=True)
class ResolvedVariant:
    """Resolverの出力

    Attributes:
        name: フラグ名
        bit_pattern: 暗黙割当の具体値（明示値の場合はNone＝ホスト評価に委譲）
        source_expression: 明示値の式テキスト（そのまま再出力する）
        implicit: デフォルト規則で割り当てたか
        bit_index: 暗黙割当のビット位置
    """

    name: str
    bit_pattern: int | None = None
    source_expression: str | None = None
    implicit: bool = True
    bit_index: int | None = None


@dataclass(frozen=True)
class ResolvedMask:
    """解決済みのビットマスク宣言"""

    spec: MaskSpec
    int_type: IntType
    variants: tuple[ResolvedVariant, ...] = ()

    @property
    def name(self) -> str:
        return self.spec.id


@dataclass(frozen=True)
class MetaSpec:
    """メタデータ"""

    name: str
    description: str = ""
    version: str = "1.0"


@dataclass(frozen=True)
class MaskFileIR:
    """ファイル単位の統合IR

    宣言ごとに独立して Validator→Resolver→Synthesizer を通す。

    Attributes:
        meta: メタデータ
        masks: ビットマスク宣言リスト
    """

    meta: MetaSpec
    masks: tuple[MaskSpec, ...] = field(default_factory=tuple)
