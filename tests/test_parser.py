"""Parserの単体テスト"""

import pytest

from maskgen.core.base.errors import MalformedSpec
from maskgen.core.base.ir import Span
from maskgen.core.engine.parser import (
    check_expression_syntax,
    is_block,
    parse_declaration,
    parse_declarations,
    split_block,
    strip_comments,
)


def test_parse_basic_declaration():
    """名前のみ・明示値付きのフラグを解析できること"""
    spec = parse_declaration("Permissions(u8) { READ, WRITE, RW = READ | WRITE }")

    assert spec.id == "Permissions"
    assert spec.type_name == "u8"
    assert [v.name for v in spec.variants] == ["READ", "WRITE", "RW"]
    assert spec.variants[0].explicit_value is None
    assert spec.variants[0].is_implicit
    assert spec.variants[2].explicit_value == "READ | WRITE"


def test_parse_default_type_is_usize():
    """型パラメータ省略時はusize"""
    spec = parse_declaration("Options { A, B }")
    assert spec.type_name == "usize"
    assert spec.type_span is None


def test_parse_trailing_comma_and_comments():
    """末尾カンマとコメントを許容すること"""
    text = """
    # header comment
    Options(u16) {
        CREATE,   # first
        APPEND = 0x100,  # explicit
    }
    """
    spec = parse_declaration(text)
    assert [v.name for v in spec.variants] == ["CREATE", "APPEND"]
    assert spec.variants[1].explicit_value == "0x100"


def test_parse_description():
    """型パラメータの後の文字列を説明として扱うこと"""
    spec = parse_declaration('Options(u8) "Open options" { A }')
    assert spec.description == "Open options"


def test_parse_empty_body():
    """フラグなしの宣言も解析できること"""
    spec = parse_declaration("Empty(u8) {}")
    assert spec.variants == ()


def test_parse_statement_block():
    """{ } で囲まれた明示値を文ブロックとして保持すること"""
    text = """Big(u16) {
    A,
    HIGH = {
        shift = 4
        A.bits << shift
    },
}"""
    spec = parse_declaration(text)
    high = spec.variants[1]
    assert high.explicit_value.startswith("{")
    assert high.explicit_value.endswith("}")

    statements, final = split_block(high.explicit_value)
    assert statements == ["shift = 4"]
    assert final == "A.bits << shift"


def test_parse_nested_delimiters_in_expression():
    """括弧内のカンマで分割しないこと"""
    spec = parse_declaration("M(u8) { A, B = max(A.bits, 2), C }")
    assert [v.name for v in spec.variants] == ["A", "B", "C"]
    assert spec.variants[1].explicit_value == "max(A.bits, 2)"


def test_parse_multiple_declarations():
    """複数宣言を出現順に解析すること"""
    specs = parse_declarations("A(u8) { X }\nB(i32) { Y, Z }")
    assert [s.id for s in specs] == ["A", "B"]
    assert specs[1].type_name == "i32"


def test_parse_records_spans():
    """フラグの位置を行・列で記録すること"""
    spec = parse_declaration("M(u8) {\n    A,\n    B,\n}")
    assert spec.span == Span(line=1, column=1)
    assert spec.variants[0].span == Span(line=2, column=5)
    assert spec.variants[1].span == Span(line=3, column=5)


def test_parse_invalid_expression_reports_span():
    """構文エラーの式はMalformedSpec（位置付き）"""
    with pytest.raises(MalformedSpec) as exc_info:
        parse_declaration("Bad(u8) { A = 1 + }")
    assert exc_info.value.span == Span(line=1, column=11)
    assert "line 1, column 11" in str(exc_info.value)


@pytest.mark.parametrize(
    "text",
    [
        "Bad(u8) { A = (1 | 2 }",
        "Bad(u8) { A = (1 | 2)",
        "Bad(u 8) { A }",
        "Bad(u8) A, B",
        "Bad { A,, B }",
        "Bad { A == B }",
        "Bad { A = }",
        "Bad { 1A }",
        "(u8) { A }",
        "Bad { A = 'unterminated }",
    ],
)
def test_parse_malformed(text):
    """不正な宣言はMalformedSpec"""
    with pytest.raises(MalformedSpec):
        parse_declaration(text)


def test_parse_declaration_requires_exactly_one():
    """parse_declarationは宣言1件のみ受け付けること"""
    with pytest.raises(MalformedSpec):
        parse_declaration("A { X } B { Y }")
    with pytest.raises(MalformedSpec):
        parse_declaration("# nothing here")


def test_split_block_with_semicolons():
    """; 区切りの文ブロックを分解できること"""
    statements, final = split_block("{ x = 1; y = x + 1; y }")
    assert statements == ["x = 1", "y = x + 1"]
    assert final == "y"


def test_split_block_plain_expression():
    """単一の式はそのまま返すこと"""
    assert split_block("  A | B ") == ([], "A | B")


def test_split_block_empty_block():
    """空ブロックはMalformedSpec"""
    with pytest.raises(MalformedSpec):
        split_block("{ }")


def test_is_block():
    assert is_block("{ 1 }")
    assert not is_block("{1} | {2}")
    assert not is_block("A | B")


def test_check_expression_syntax_block_must_end_in_expression():
    """文ブロックの最後が代入ならエラー"""
    with pytest.raises(MalformedSpec):
        check_expression_syntax("{ x = 1 }")


def test_strip_comments_keeps_strings():
    """文字列内の # はコメントとして扱わないこと"""
    text = 'A = "#not" # comment'
    cleaned = strip_comments(text)
    assert cleaned.startswith('A = "#not" ')
    assert "comment" not in cleaned
    assert len(cleaned) == len(text)


def test_parse_custom_default_type():
    """型パラメータ省略時の既定型を指定できること"""
    specs = parse_declarations("A { X }\nB(i16) { Y }", default_type="u32")
    assert [s.type_name for s in specs] == ["u32", "i16"]
    assert parse_declaration("C { Z }", default_type="u8").type_name == "u8"
