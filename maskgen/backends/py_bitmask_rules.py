"""生成型の操作テーブル

生成するビットマスク型のメソッド・演算子を (名前, 意味規則, テンプレート) の表として定義する。
Synthesizerはこの表を順に展開するだけで、個別の生成ロジックを持たない。

テンプレートのプレースホルダ:
    {cls}: 生成する型名
    {type_name}: 基底型の説明（例: "u8 (unsigned, 8 bits)"）
    {mask_literal}: 基底型の幅に対応する全ビットマスク（16進リテラル）
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass


@dataclass(frozen=True)
class OperationRule:
    """操作1件の定義

    Attributes:
        name: 生成されるメソッド名
        semantics: 意味規則（監査・ドキュメント用）
        template: メソッドのソーステンプレート
        signed_template: 符号付き基底型で使うテンプレート（未指定ならtemplateを共用）
    """

    name: str
    semantics: str
    template: str
    signed_template: str | None = None

    def render(self, context: dict[str, str], signed: bool = False) -> str:
        """クラス本体用にインデントしたソースを返す"""
        template = self.signed_template if signed and self.signed_template else self.template
        body = textwrap.dedent(template).strip("\n")
        return textwrap.indent(body, "    ").format(**context)


_BINARY_TEMPLATE = """
    def {name}(self, other: {{cls}}) -> {{cls}}:
        return {{cls}}(self._bits {op} other._bits)
"""

_OPERATOR_TEMPLATE = """
    def {name}(self, other: object) -> {{cls}}:
        if not isinstance(other, {{cls}}):
            return NotImplemented
        return {{cls}}(self._bits {op} other._bits)
"""

_COMPARE_TEMPLATE = """
    def {name}(self, other: object) -> bool:
        if not isinstance(other, {{cls}}):
            return NotImplemented
        return self._bits {op} other._bits
"""


def _binary(name: str, op: str, semantics: str) -> OperationRule:
    return OperationRule(name, semantics, _BINARY_TEMPLATE.format(name=name, op=op))


def _operator(name: str, op: str, semantics: str) -> OperationRule:
    return OperationRule(name, semantics, _OPERATOR_TEMPLATE.format(name=name, op=op))


def _compare(name: str, op: str) -> OperationRule:
    return OperationRule(name, f"self.bits {op} other.bits", _COMPARE_TEMPLATE.format(name=name, op=op))


OPERATIONS: tuple[OperationRule, ...] = (
    OperationRule(
        "__init__",
        "construct from the underlying integer; values outside the declared width raise OverflowError",
        """
        def __init__(self, bits: int = 0) -> None:
            bits = _operator.index(bits)
            if not {cls}._MIN <= bits <= {cls}._MAX:
                raise OverflowError(f"{{bits}} is out of range for {type_name}")
            self._bits = bits
        """,
    ),
    OperationRule(
        "from_bits",
        "lossless conversion from the underlying integer",
        """
        @classmethod
        def from_bits(cls, bits: int) -> {cls}:
            return cls(bits)
        """,
    ),
    OperationRule(
        "bits",
        "the underlying integer value, unchanged",
        """
        @property
        def bits(self) -> int:
            return self._bits
        """,
    ),
    OperationRule(
        "all",
        "bitwise OR of every declared variant's bit pattern",
        """
        @classmethod
        def all(cls) -> {cls}:
            return cls(cls._ALL)
        """,
    ),
    OperationRule(
        "is_all",
        "self.bits == all().bits",
        """
        def is_all(self) -> bool:
            return self._bits == {cls}._ALL
        """,
    ),
    OperationRule(
        "none",
        "the zero value of the underlying integer",
        """
        @classmethod
        def none(cls) -> {cls}:
            return cls(0)
        """,
    ),
    OperationRule(
        "is_none",
        "self.bits == 0",
        """
        def is_none(self) -> bool:
            return self._bits == 0
        """,
    ),
    OperationRule(
        "intersects",
        "(self.bits & other.bits) != 0 or other.bits == 0",
        """
        def intersects(self, other: {cls}) -> bool:
            return (self._bits & other._bits) != 0 or other._bits == 0
        """,
    ),
    OperationRule(
        "contains",
        "(self.bits & other.bits) == other.bits",
        """
        def contains(self, other: {cls}) -> bool:
            return (self._bits & other._bits) == other._bits
        """,
    ),
    OperationRule(
        "not_",
        "bitwise complement restricted to the declared width",
        """
        def not_(self) -> {cls}:
            return {cls}(~self._bits & {mask_literal})
        """,
        signed_template="""
        def not_(self) -> {cls}:
            return {cls}(~self._bits)
        """,
    ),
    _binary("and_", "&", "self.bits & other.bits"),
    _binary("or_", "|", "self.bits | other.bits"),
    _binary("xor", "^", "self.bits ^ other.bits"),
    OperationRule(
        "__invert__",
        "same as not_()",
        """
        def __invert__(self) -> {cls}:
            return self.not_()
        """,
    ),
    _operator("__and__", "&", "same as and_()"),
    _operator("__or__", "|", "same as or_()"),
    _operator("__xor__", "^", "same as xor()"),
    _operator("__iand__", "&", "in-place and; returns a new value"),
    _operator("__ior__", "|", "in-place or; returns a new value"),
    _operator("__ixor__", "^", "in-place xor; returns a new value"),
    OperationRule(
        "__contains__",
        "other in self is contains(other)",
        """
        def __contains__(self, other: {cls}) -> bool:
            return self.contains(other)
        """,
    ),
    OperationRule(
        "__eq__",
        "structural over the underlying integer; a raw int compares as self.bits == other",
        """
        def __eq__(self, other: object) -> bool:
            if isinstance(other, {cls}):
                return self._bits == other._bits
            if isinstance(other, int):
                return self._bits == other
            return NotImplemented
        """,
    ),
    _compare("__lt__", "<"),
    _compare("__le__", "<="),
    _compare("__gt__", ">"),
    _compare("__ge__", ">="),
    OperationRule(
        "__hash__",
        "hash of the underlying integer",
        """
        def __hash__(self) -> int:
            return hash(self._bits)
        """,
    ),
    OperationRule(
        "__int__",
        "lossless conversion to the underlying integer",
        """
        def __int__(self) -> int:
            return self._bits
        """,
    ),
    OperationRule(
        "__index__",
        "bin()/oct()/hex() and operator.index delegate to the underlying integer",
        """
        def __index__(self) -> int:
            return self._bits
        """,
    ),
    OperationRule(
        "__bool__",
        "not is_none()",
        """
        def __bool__(self) -> bool:
            return self._bits != 0
        """,
    ),
    OperationRule(
        "__format__",
        "binary/octal/lower-hex/upper-hex rendering delegates to the underlying integer",
        """
        def __format__(self, format_spec: str) -> str:
            return format(self._bits, format_spec)
        """,
    ),
    OperationRule(
        "__repr__",
        "type name and hexadecimal bits",
        """
        def __repr__(self) -> str:
            return f"{cls}({{self._bits:#x}})"
        """,
    ),
    OperationRule(
        "__copy__",
        "values are immutable; copy returns the same value",
        """
        def __copy__(self) -> {cls}:
            return self
        """,
    ),
    OperationRule(
        "__deepcopy__",
        "values are immutable; deepcopy returns the same value",
        """
        def __deepcopy__(self, memo: dict) -> {cls}:
            return self
        """,
    ),
)

# フラグ名として使えない名前（生成メソッドと衝突する）
RESERVED_NAMES: frozenset[str] = frozenset(rule.name for rule in OPERATIONS) | {"Self"}


def operation_table() -> list[dict[str, str]]:
    """操作テーブルを (name, semantics) の辞書リストで返す"""
    return [{"name": rule.name, "semantics": rule.semantics} for rule in OPERATIONS]
