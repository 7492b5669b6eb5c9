from typing import Any, Iterable, Optional

__all__ = (
    "display",
    "fixnum",
    "same",
    "Symbol",
    "PrimitiveOperator",
    "ErrorValue",
    "ParamList",
    "Definition",
    "Sequence",
    "DataBlock",
    "Call",
    "Conditional",
    "Binding",
    "Environment",
)

INT_BITS = 64
INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1

def fixnum(n: int) -> int:
    '''Wrap an arbitrary int into the signed 64-bit range.'''
    return ((n - INT_MIN) % (1 << INT_BITS)) + INT_MIN

def display(v):
    match v:
        case None: return "nil"
        case True: return "true"
        case False: return "false"
        case str(s): return f'"{s}"'

    return repr(v)

def same(a, b):
    '''Type-sensitive equality so true and 1 stay distinct inside compounds.'''
    return type(a) is type(b) and a == b

class Symbol:
    __match_args__ = ("name",)

    interns = {}

    def __new__(cls, name):
        if name in cls.interns:
            return cls.interns[name]
        self = super().__new__(cls)
        cls.interns[name] = self
        return self

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"{self.name}"

    def __eq__(self, other):
        return isinstance(other, Symbol) and self.name == other.name

    def __hash__(self):
        return hash(self.name)

class PrimitiveOperator:
    __match_args__ = ("name",)

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name

    def __eq__(self, other):
        return isinstance(other, PrimitiveOperator) and self.name == other.name

    def __hash__(self):
        return hash(("primitive", self.name))

class ErrorValue:
    '''Evaluates to itself; once produced it is returned by every enclosing form.'''
    __match_args__ = ("message",)

    def __init__(self, message):
        self.message = message

    def __repr__(self):
        return f"Error: {self.message}"

    def __eq__(self, other):
        return isinstance(other, ErrorValue) and self.message == other.message

    def __hash__(self):
        return hash(("error", self.message))

class Compound:
    '''Fixed tuple of child nodes rendered as `tag(child child ...)`.'''
    __match_args__ = ("items",)

    tag = "?"

    def __init__(self, items: Iterable[Any] = ()):
        self.items = tuple(items)

    def __repr__(self) -> str:
        return f"{self.tag}({' '.join(map(display, self.items))})"

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, x):
        return self.items[x]

    def __eq__(self, other):
        if type(other) is not type(self): return False
        if len(self) != len(other): return False
        return all(map(same, self.items, other.items))

    __hash__ = None

class Sequence(Compound):
    tag = "list"

class DataBlock(Compound):
    tag = "data"

class Call(Compound):
    tag = "func_call"

class ParamList(Compound):
    tag = "args"

    @property
    def names(self):
        return tuple(sym.name for sym in self.items)

class Definition:
    '''
    A `def` form. Functions carry a ParamList and a body; variables have
    params None and carry their value expression as the body.
    '''
    __match_args__ = ("name", "params", "body")

    def __init__(self, name: str, params: Optional[ParamList], body):
        self.name = name
        self.params = params
        self.body = body

    @property
    def is_function(self):
        return self.params is not None

    def __repr__(self):
        if self.params is None:
            return f"def({self.name} {display(self.body)})"
        return f"def({self.name} {self.params!r} {display(self.body)})"

    def __eq__(self, other):
        return (
            isinstance(other, Definition) and
            self.name == other.name and
            self.params == other.params and
            same(self.body, other.body)
        )

    __hash__ = None

class Conditional:
    __match_args__ = ("test", "then", "orelse")

    def __init__(self, test, then, orelse):
        self.test = test
        self.then = then
        self.orelse = orelse

    def __repr__(self):
        return f"if({display(self.test)} {display(self.then)} {display(self.orelse)})"

    def __eq__(self, other):
        return (
            isinstance(other, Conditional) and
            same(self.test, other.test) and
            same(self.then, other.then) and
            same(self.orelse, other.orelse)
        )

    __hash__ = None

class Binding:
    '''One immutable cell of an environment chain.'''

    def __init__(self, name: str, value, tail: Optional['Binding']=None):
        self.name = name
        self.value = value
        self.tail = tail

    def pairs(self):
        cur = self
        while cur is not None:
            yield cur
            cur = cur.tail

MISSING = object()
class Environment:
    '''
    Handle onto a prepend-only chain of bindings, newest first. Extending
    shares the existing chain, so a callee's bindings vanish with its handle.
    `echo` is the line sink that `write` prints to.
    '''

    def __init__(self, head: Optional[Binding]=None, echo=print):
        self.head = head
        self.echo = echo

    def cells(self):
        if self.head is not None:
            yield from self.head.pairs()

    def get(self, key, default=None):
        if isinstance(key, Symbol):
            key = key.name

        for p in self.cells():
            if p.name == key:
                return p.value
        return default

    def __getitem__(self, key: str|Symbol):
        val = self.get(key, MISSING)
        if val is MISSING:
            raise KeyError(key)
        return val

    def __contains__(self, key):
        return self.get(key, MISSING) is not MISSING

    def define(self, name: str, value):
        self.head = Binding(name, value, self.head)

    def extend(self, pairs: Iterable[tuple[str, Any]]) -> 'Environment':
        head = self.head
        for name, value in pairs:
            head = Binding(name, value, head)
        return Environment(head, self.echo)

    def keys(self):
        seen = []
        for p in self.cells():
            if p.name not in seen:
                seen.append(p.name)
        return seen

    def __repr__(self) -> str:
        s = [f"{p.name}={display(p.value)}" for p in self.cells()]
        return f"Environment({' ~ '.join(s)})"
