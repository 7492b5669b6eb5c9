import re

from .value import (
    Symbol, ParamList, Definition, Sequence, DataBlock, Call, Conditional,
    INT_MIN, INT_MAX
)

__all__ = ["Token", "Tokenizer", "Parser", "tokenize", "parse"]

TOKEN_MAX = 255

SKIP = re.compile(r"(?:[ \t\r\n,]+|;[^\n]*)*")
TOKEN = re.compile(r"""
    "(?P<str>[^"]*)"?|
    (?P<punc>[()])|
    (?P<atom>[^ \t\r\n,()]+)
""", re.X)
INT = re.compile(r"[-+]?\d+")

class Token:
    def __init__(self, type, value, pos):
        self.type = type
        self.value = value
        self.pos = pos

    def __repr__(self):
        return f"Token({self.type!r}, {self.value!r})"

    def __eq__(self, other):
        return (
            isinstance(other, Token) and
            self.type == other.type and
            self.value == other.value
        )

class Tokenizer:
    def __init__(self, s, max_length=TOKEN_MAX):
        self.s = s
        self.pos = 0
        self.max_length = max_length

    def skip(self):
        '''Move past whitespace, separators and comments.'''
        self.pos = SKIP.match(self.s, self.pos).end()

    def peek_char(self):
        '''Next significant character without consuming it, "" at end of input.'''
        pos = SKIP.match(self.s, self.pos).end()
        return self.s[pos:pos + 1]

    def adjacent(self):
        '''Whether "(" follows the last token with nothing in between.'''
        return self.s[self.pos:self.pos + 1] == "("

    def next(self):
        self.skip()
        if self.pos >= len(self.s):
            return None

        t = TOKEN.match(self.s, self.pos)
        start, self.pos = self.pos, t.end()

        if (m := t['punc']) is not None:
            return Token(m, m, start)

        kind = t.lastgroup
        if len(t[kind]) > self.max_length:
            raise SyntaxError(
                f"Token too long at column {start + 1} (max {self.max_length} characters)"
            )
        return Token(kind, t[kind], start)

    def run(self):
        while (tok := self.next()) is not None:
            yield tok

def tokenize(s):
    return list(Tokenizer(s).run())

class Parser:
    def __init__(self, code):
        self.tokenizer = Tokenizer(code)
        self.cur = None

    def advance(self):
        '''Fetch the next token into `cur`, returning it (None at end of input).'''
        self.cur = self.tokenizer.next()
        return self.cur

    def need(self, what):
        '''Advance, raising if the input ends first.'''
        if (tok := self.advance()) is None:
            raise SyntaxError(f"Unexpected end of input, expected {what}")
        return tok

    def expect(self, tt):
        tok = self.need(repr(tt))
        if tok.type != tt:
            raise SyntaxError(f"Expected {tt!r}, got {tok.value!r} at column {tok.pos + 1}")
        return tok

    def name(self, what):
        tok = self.need(what)
        if tok.type != 'atom':
            raise SyntaxError(f"Expected {what}, got {tok.value!r} at column {tok.pos + 1}")
        return tok.value

    def read_list(self):
        '''Read expressions up to the matching ")"; `cur` must be the "(".'''
        ls = []
        while self.need("')'").type != ")":
            ls.append(self.read())
        return ls

    def read_def(self):
        name = self.name("a name after 'def'")
        tok = self.need("a value or 'args' after the name")

        if tok.type == 'atom' and tok.value == "args":
            self.expect("(")
            params = []
            while self.need("')'").type != ")":
                if self.cur.type != 'atom':
                    raise SyntaxError(f"Parameter names must be symbols, got {self.cur.value!r} at column {self.cur.pos + 1}")
                params.append(Symbol(self.cur.value))

            self.need("a function body")
            return Definition(name, ParamList(params), self.read())

        return Definition(name, None, self.read())

    def read_branches(self, parts):
        branches = []
        for part in parts:
            self.need(f"an 'if' {part}")
            branches.append(self.read())
        return branches

    def read_if(self):
        if not self.tokenizer.adjacent():
            return Conditional(*self.read_branches(("condition", "then-branch", "else-branch")))

        # if(...) is the whole form when nothing follows it in the enclosing
        # list or line, otherwise the group is the condition of `if c t e`
        start = self.advance()
        group = self.read_list()
        if self.tokenizer.peek_char() not in ("", ")"):
            return Conditional(Sequence(group), *self.read_branches(("then-branch", "else-branch")))

        if len(group) != 3:
            raise SyntaxError(
                f"'if(' at column {start.pos + 1} expects condition, then and else, got {len(group)} item(s)"
            )
        return Conditional(*group)

    def read_atom(self, tok):
        if INT.fullmatch(tok.value):
            n = int(tok.value)
            if not INT_MIN <= n <= INT_MAX:
                raise SyntaxError(f"Integer literal out of range: {tok.value}")
            return n
        elif tok.type == 'str':
            return tok.value
        return Symbol(tok.value)

    def read(self):
        '''Parse one expression starting at `cur`, leaving `cur` on its last token.'''
        tok = self.cur
        if tok is None:
            raise SyntaxError("Unexpected end of input")

        if tok.type == 'atom':
            match tok.value:
                case "def": return self.read_def()
                case "if": return self.read_if()
                case "list":
                    self.expect("(")
                    return Sequence(self.read_list())
                case "data":
                    self.expect("(")
                    return DataBlock(self.read_list())

            if self.tokenizer.peek_char() == "(":
                self.advance()
                return Call([Symbol(tok.value), *self.read_list()])

        elif tok.type == "(":
            return Sequence(self.read_list())
        elif tok.type == ")":
            raise SyntaxError(f"Unexpected ')' at column {tok.pos + 1}")

        return self.read_atom(tok)

    def finish(self):
        if (tok := self.advance()) is not None:
            raise SyntaxError(f"Unexpected {tok.value!r} at column {tok.pos + 1} after expression")

    def parse(self):
        '''Parse the whole line as one expression; None if it holds no tokens.'''
        if self.advance() is None:
            return None
        expr = self.read()
        self.finish()
        return expr

def parse(s):
    return Parser(s).parse()
