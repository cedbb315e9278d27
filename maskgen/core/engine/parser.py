"""Parser: 宣言テキスト→MaskSpec変換

.mask 形式の宣言を読み込み、MaskSpecに変換する。
式は区切り記号の対応とPython構文チェック以外は解釈しない（評価はホスト側）。

宣言の書式::

    # コメント
    Permissions(u8) "File permissions" {
        READ,
        WRITE,
        RW = READ | WRITE,
        HIGH = {
            shift = 4
            READ.bits << shift
        },
    }
"""

from __future__ import annotations

import ast
import logging
import re

from maskgen.core.base.errors import MalformedSpec
from maskgen.core.base.ir import MaskSpec, Span, VariantSpec

logger = logging.getLogger(__name__)

DEFAULT_TYPE_NAME = "usize"

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ENTRY_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*(?:=(?!=)(.*))?\Z", re.DOTALL)


def _span_at(text: str, offset: int) -> Span:
    """オフセットを行・列に変換"""
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return Span(line=line, column=column)


def _skip_string(text: str, start: int) -> int:
    """文字列リテラルの終端の次の位置を返す

    Raises:
        MalformedSpec: 文字列が閉じていない
    """
    quote = text[start]
    triple = text.startswith(quote * 3, start)
    delimiter = quote * 3 if triple else quote
    i = start + len(delimiter)
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text.startswith(delimiter, i):
            return i + len(delimiter)
        if text[i] == "\n" and not triple:
            break
        i += 1
    raise MalformedSpec("unterminated string literal", span=_span_at(text, start))


def strip_comments(text: str) -> str:
    """コメントを空白に置き換える（位置は維持）"""
    chars = list(text)
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in "'\"":
            i = _skip_string(text, i)
        elif ch == "#":
            end = text.find("\n", i)
            end = len(text) if end == -1 else end
            for j in range(i, end):
                chars[j] = " "
            i = end
        else:
            i += 1
    return "".join(chars)


def _find_matching(text: str, open_index: int, origin: str | None = None, base: int = 0) -> int:
    """対応する閉じ記号の位置を返す

    Args:
        text: 走査対象（コメント除去済み）
        open_index: 開き記号の位置
        origin: エラー位置計算用の元テキスト
        base: textのorigin上のオフセット

    Raises:
        MalformedSpec: 対応が取れない
    """
    origin = text if origin is None else origin
    stack: list[tuple[str, int]] = []
    i = open_index
    while i < len(text):
        ch = text[i]
        if ch in "'\"":
            i = _skip_string(text, i)
            continue
        if ch in _OPENERS:
            stack.append((ch, i))
        elif ch in _CLOSERS:
            if not stack or stack[-1][0] != _CLOSERS[ch]:
                raise MalformedSpec(f"unbalanced '{ch}'", span=_span_at(origin, base + i))
            stack.pop()
            if not stack:
                return i
        i += 1
    opener, position = stack[-1]
    raise MalformedSpec(f"unclosed '{opener}'", span=_span_at(origin, base + position))


def _split_top_level(text: str, separators: str) -> list[tuple[str, int]]:
    """括弧・文字列の外側にある区切り文字で分割

    Returns:
        (セグメント, セグメント開始オフセット) のリスト
    """
    segments = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in "'\"":
            i = _skip_string(text, i)
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif depth == 0 and ch in separators:
            segments.append((text[start:i], start))
            start = i + 1
        i += 1
    segments.append((text[start:], start))
    return segments


def is_block(expression: str) -> bool:
    """式全体が { ... } で囲まれた文ブロックか"""
    stripped = expression.strip()
    if not stripped.startswith("{"):
        return False
    try:
        return _find_matching(stripped, 0) == len(stripped) - 1
    except MalformedSpec:
        return False


def split_block(expression: str) -> tuple[list[str], str]:
    """明示値を (前置文リスト, 最終式) に分解

    単一の式の場合は前置文なしで式そのものを返す。
    { ... } ブロックの場合、改行または ; で区切られた文の最後を最終式とする。

    Args:
        expression: 明示値の式テキスト

    Returns:
        (statements, final_expression)

    Raises:
        MalformedSpec: ブロックが空
    """
    stripped = expression.strip()
    if not is_block(stripped):
        return [], stripped

    body = stripped[1:-1]
    statements = [segment.strip() for segment, _ in _split_top_level(body, ";\n")]
    statements = [stmt for stmt in statements if stmt]
    if not statements:
        raise MalformedSpec("statement block must end in an expression")
    return statements[:-1], statements[-1]


def check_expression_syntax(expression: str, span: Span | None = None) -> None:
    """明示値がPythonの式（または式で終わる文ブロック）として構文的に正しいか検査

    Raises:
        MalformedSpec: 構文エラー
    """
    statements, final = split_block(expression)
    try:
        for stmt in statements:
            ast.parse(stmt, mode="exec")
        ast.parse(f"({final})", mode="eval")
    except SyntaxError as exc:
        raise MalformedSpec(f"invalid expression {expression.strip()!r}: {exc.msg}", span=span) from exc


def _parse_entry(segment: str, offset: int, origin: str) -> VariantSpec | None:
    """フラグリストの1エントリを解析"""
    stripped = segment.strip()
    if not stripped:
        return None
    start = offset + (len(segment) - len(segment.lstrip()))
    span = _span_at(origin, start)

    match = _ENTRY_RE.match(stripped)
    if match is None:
        raise MalformedSpec(f"invalid variant entry {stripped!r}", span=span)

    name, value = match.group(1), match.group(2)
    if value is None:
        return VariantSpec(name=name, explicit_value=None, span=span)

    value = value.strip()
    if not value:
        raise MalformedSpec(f"variant '{name}' has '=' but no value", span=span, variant=name)
    check_expression_syntax(value, span)
    return VariantSpec(name=name, explicit_value=value, span=span)


def _parse_variants(body: str, body_offset: int, origin: str) -> tuple[VariantSpec, ...]:
    """{ } 内のフラグリストを解析"""
    segments = _split_top_level(body, ",")
    variants = []
    for index, (segment, offset) in enumerate(segments):
        variant = _parse_entry(segment, body_offset + offset, origin)
        if variant is None:
            # 末尾カンマのみ許可
            if index != len(segments) - 1 and len(segments) > 1:
                raise MalformedSpec("empty variant entry", span=_span_at(origin, body_offset + offset))
            continue
        variants.append(variant)
    return tuple(variants)


def _skip_space(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def _parse_one(text: str, origin: str, i: int, default_type: str) -> tuple[MaskSpec, int]:
    """位置iから宣言を1つ解析し、(MaskSpec, 次の位置) を返す"""
    decl_start = i
    match = _IDENT_RE.match(text, i)
    if match is None:
        raise MalformedSpec("expected a bitmask name", span=_span_at(origin, i))
    name = match.group(0)
    i = _skip_space(text, match.end())

    type_name = default_type
    type_span = None
    if i < len(text) and text[i] == "(":
        close = _find_matching(text, i, origin)
        raw_type = text[i + 1 : close].strip()
        type_span = _span_at(origin, i + 1)
        if not _IDENT_RE.fullmatch(raw_type):
            raise MalformedSpec(f"invalid type parameter {raw_type!r}", span=type_span)
        type_name = raw_type
        i = _skip_space(text, close + 1)

    description = ""
    if i < len(text) and text[i] in "'\"":
        end = _skip_string(text, i)
        description = ast.literal_eval(text[i:end])
        i = _skip_space(text, end)

    if i >= len(text) or text[i] != "{":
        raise MalformedSpec(f"expected '{{' after bitmask '{name}'", span=_span_at(origin, min(i, len(origin))))
    close = _find_matching(text, i, origin)
    variants = _parse_variants(text[i + 1 : close], i + 1, origin)

    spec = MaskSpec(
        id=name,
        type_name=type_name,
        variants=variants,
        description=description,
        span=_span_at(origin, decl_start),
        type_span=type_span,
    )
    logger.debug("parsed bitmask %s(%s) with %d variants", name, type_name, len(variants))
    return spec, close + 1


def parse_declarations(text: str, default_type: str = DEFAULT_TYPE_NAME) -> list[MaskSpec]:
    """テキスト中の全宣言を解析

    Args:
        text: .mask 形式のテキスト
        default_type: 型パラメータ省略時の基底型

    Returns:
        MaskSpecのリスト（出現順）

    Raises:
        MalformedSpec: 構文エラー
    """
    cleaned = strip_comments(text)
    specs = []
    i = _skip_space(cleaned, 0)
    while i < len(cleaned):
        spec, i = _parse_one(cleaned, text, i, default_type)
        specs.append(spec)
        i = _skip_space(cleaned, i)
    return specs


def parse_declaration(text: str, default_type: str = DEFAULT_TYPE_NAME) -> MaskSpec:
    """宣言を1つだけ含むテキストを解析

    Raises:
        MalformedSpec: 宣言が0件または2件以上、あるいは構文エラー
    """
    specs = parse_declarations(text, default_type)
    if len(specs) != 1:
        raise MalformedSpec(f"expected exactly one bitmask declaration, found {len(specs)}")
    return specs[0]
