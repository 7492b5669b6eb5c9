import pytest

from listscript import (
    Token, Tokenizer, tokenize, parse, display, evaluate, standard_env,
    Symbol, ParamList, Definition, Sequence, DataBlock, Call, Conditional,
)


def test_tokenize_shapes():
    assert tokenize('f(1 "a b") ; trailing comment') == [
        Token("atom", "f"),
        Token("(", "("),
        Token("atom", "1"),
        Token("str", "a b"),
        Token(")", ")"),
    ]


def test_tokenize_comment_only_line():
    assert tokenize("   ; nothing here") == []


def test_unterminated_string_runs_to_end():
    assert tokenize('"abc def') == [Token("str", "abc def")]


def test_empty_string_token():
    assert tokenize('""') == [Token("str", "")]


def test_commas_separate_arguments():
    assert tokenize("eq?(n, 0)") == tokenize("eq?(n 0)")


def test_peek_char_does_not_consume():
    t = Tokenizer("f  (x)")
    assert t.next() == Token("atom", "f")
    assert t.peek_char() == "("
    assert t.next() == Token("(", "(")


def test_peek_char_skips_comments():
    t = Tokenizer("f ; (not a call)")
    t.next()
    assert t.peek_char() == ""
    assert t.next() is None


def test_overlong_token_is_an_error():
    with pytest.raises(SyntaxError):
        Tokenizer("a" * 10, max_length=5).next()


def test_parse_atoms():
    assert parse("42") == 42
    assert parse("-7") == -7
    assert parse('"hi there"') == "hi there"
    assert parse("foo") == Symbol("foo")
    assert parse("-") == Symbol("-")
    assert parse("eq?") == Symbol("eq?")


def test_quoted_integer_reads_as_number():
    assert parse('"42"') == 42


def test_blank_lines_parse_to_nothing():
    assert parse("") is None
    assert parse("   ; comment") is None


def test_parse_call():
    assert parse("+(1 2)") == Call([Symbol("+"), 1, 2])
    assert parse("f ()") == Call([Symbol("f")])


def test_parse_nested_call():
    assert parse("*(n fact(-(n 1)))") == Call([
        Symbol("*"),
        Symbol("n"),
        Call([Symbol("fact"), Call([Symbol("-"), Symbol("n"), 1])]),
    ])


def test_parse_list_data_and_group():
    assert parse("list(1 2)") == Sequence([1, 2])
    assert parse("data(a b)") == DataBlock([Symbol("a"), Symbol("b")])
    assert parse("(+ 1 2)") == Sequence([Symbol("+"), 1, 2])
    assert parse("list()") == Sequence([])


def test_parse_variable_definition():
    assert parse("def x 5") == Definition("x", None, 5)
    assert parse("def xs list(1 2)") == Definition("xs", None, Sequence([1, 2]))


def test_parse_function_definition():
    expr = parse("def add args(a b) +(a b)")
    assert expr == Definition(
        "add",
        ParamList([Symbol("a"), Symbol("b")]),
        Call([Symbol("+"), Symbol("a"), Symbol("b")]),
    )
    assert expr.is_function
    assert expr.params.names == ("a", "b")


def test_parse_function_without_parameters():
    assert parse("def g args() 1") == Definition("g", ParamList([]), 1)


def test_parse_if_forms():
    bare = parse("if true 1 2")
    assert bare == Conditional(Symbol("true"), 1, 2)
    assert parse("if(true 1 2)") == bare


def test_parse_if_with_spaced_group_condition():
    assert parse("if (x) 1 2") == Conditional(Sequence([Symbol("x")]), 1, 2)


def test_parse_if_with_touching_group_condition():
    cond = Sequence([Symbol("eq?"), 1, 1])
    assert parse("if(eq? 1 1) 10 20") == Conditional(cond, 10, 20)


def test_parse_function_body_with_group_condition():
    expr = parse("def f args(n) if(eq? n 0) 1 2")
    assert expr.body == Conditional(Sequence([Symbol("eq?"), Symbol("n"), 0]), 1, 2)


def test_parse_wrapped_if_as_call_argument():
    assert parse("f(if(c t e))") == Call([
        Symbol("f"),
        Conditional(Symbol("c"), Symbol("t"), Symbol("e")),
    ])


@pytest.mark.parametrize("source", [
    "if true 1",
    "if(true 1 2",
    "if(true 1)",
    "f(if(a b))",
    "list(1 2",
    "list 1",
    "data",
    "(",
    ")",
    "1 2",
    "def",
    "def x",
    "def f args x",
    "def f args(a (b)) a",
    "def f args(a)",
    "99999999999999999999",
])
def test_malformed_input_raises(source):
    with pytest.raises(SyntaxError):
        parse(source)


@pytest.mark.parametrize("source, column", [
    ("1 2", 3),
    (")", 1),
    ("list 1", 6),
    ("def f args(a (b)) a", 14),
])
def test_parse_errors_report_columns(source, column):
    with pytest.raises(SyntaxError) as excinfo:
        parse(source)
    assert f"column {column}" in excinfo.value.msg


def test_display_parsed_forms():
    assert display(parse("+(1 2)")) == "func_call(+ 1 2)"
    assert display(parse('list(1 "a" data(b))')) == 'list(1 "a" data(b))'
    assert display(parse("def f args(a b) +(a b)")) == "def(f args(a b) func_call(+ a b))"
    assert display(parse("def x 5")) == "def(x 5)"
    assert display(parse("if(true 1 2)")) == "if(true 1 2)"


@pytest.mark.parametrize("source, expected", [
    ("42", 42),
    ("-7", -7),
    ('"hi there"', "hi there"),
    ("list()", Sequence([])),
    ("list(1 2)", Sequence([1, 2])),
    ('list(1 list(2 "x") list())', Sequence([1, Sequence([2, "x"]), Sequence([])])),
    ("data(1 2)", DataBlock([1, 2])),
    ("data(list(1) 3)", DataBlock([Sequence([1]), 3])),
])
def test_rendered_literals_read_back(source, expected):
    env = standard_env()
    value = evaluate(parse(source), env)
    assert value == expected
    assert evaluate(parse(display(value)), env) == expected
