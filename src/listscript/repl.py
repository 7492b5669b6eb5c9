import os
import readline
import logging
import operator
import inspect
import traceback as tb
from functools import wraps

from .parser import Parser
from .value import (
    Symbol, PrimitiveOperator, ErrorValue, ParamList, Definition, Sequence,
    DataBlock, Call, Conditional, Environment, display, fixnum
)

log = logging.getLogger(__name__)

PRIMITIVES = {}

def primitive(*names, arity_error):
    '''
    Register a primitive under each of `names`. The arity is read off the
    function signature (the first two parameters receive the calling
    environment and the operator name).
    '''
    def register(fn):
        count = len(inspect.signature(fn).parameters) - 2

        @wraps(fn)
        def checked(env, name, args):
            if len(args) != count:
                return ErrorValue(arity_error.format(name=name))
            return fn(env, name, *args)

        for k in names:
            PRIMITIVES[k] = checked
        return checked
    return register

def is_number(x):
    return isinstance(x, int) and not isinstance(x, bool)

def truncdiv(a, b):
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q

ARITHMETIC = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": truncdiv,
}

COMPARISONS = {
    "<": operator.lt,
    ">": operator.gt,
    "eq?": operator.eq,
}

@primitive(*ARITHMETIC, arity_error="Arity mismatch: Expected 2 arguments for arithmetic operator")
def arithmetic(env, op, a, b):
    if not (is_number(a) and is_number(b)):
        return ErrorValue("Type error: Arguments must be numbers")
    if op == "/" and b == 0:
        return ErrorValue("Division by zero")
    return fixnum(ARITHMETIC[op](a, b))

@primitive(*COMPARISONS, arity_error="Arity mismatch: Expected 2 arguments for comparison operator")
def compare(env, op, a, b):
    if not (is_number(a) and is_number(b)):
        return ErrorValue("Type error: Arguments must be numbers")
    return COMPARISONS[op](a, b)

@primitive("first", "rest", arity_error="Arity mismatch: '{name}' expects 1 argument")
def head_tail(env, op, ls):
    if not isinstance(ls, Sequence):
        return ErrorValue(f"Type error: '{op}' expects a list")
    if len(ls) == 0:
        return ErrorValue(f"'{op}' called on empty list")
    if op == "first":
        return ls[0]
    return Sequence(ls[1:])

@primitive("cons", arity_error="Arity mismatch: 'cons' expects 2 arguments")
def cons(env, op, x, ls):
    if not isinstance(ls, Sequence):
        return ErrorValue("Type error: 'cons' second argument must be a list")
    return Sequence((x, *ls))

@primitive("write", arity_error="Arity mismatch: 'write' expects 1 argument")
def write(env, op, x):
    env.echo(display(x))
    return True

def apply_primitive(env, name, args):
    if (fn := PRIMITIVES.get(name)) is None:
        return ErrorValue(f"Unknown primitive operator '{name}'")
    return fn(env, name, args)

def standard_env():
    env = Environment()
    for name in PRIMITIVES:
        env.define(name, PrimitiveOperator(name))
    env.define("true", True)
    env.define("false", False)
    return env

def eval(expr, env):
    match expr:
        case None: return None

        # Symbol lookup
        case Symbol(name):
            try:
                return env[name]
            except KeyError:
                return ErrorValue(f"Undefined symbol '{name}'")

        case bool() | int() | str() | PrimitiveOperator() | ErrorValue() | DataBlock():
            return expr

        # A group is a call when it leads with something nameable, data otherwise
        case Sequence(items):
            if items and isinstance(items[0], (Symbol, PrimitiveOperator)):
                return eval(Call(items), env)

            ls = []
            for item in items:
                val = eval(item, env)
                if isinstance(val, ErrorValue):
                    return val
                ls.append(val)
            return Sequence(ls)

        case Call(()):
            return Sequence()

        case Call((car, *cdr)):
            oper = eval(car, env)
            if isinstance(oper, ErrorValue):
                return oper

            args = []
            for x in cdr:
                val = eval(x, env)
                if isinstance(val, ErrorValue):
                    return val
                args.append(val)

            match oper:
                case PrimitiveOperator(name):
                    return apply_primitive(env, name, args)

                case Definition(name, ParamList() as params, body):
                    names = params.names
                    if len(args) != len(names):
                        return ErrorValue(
                            f"Arity mismatch in user-defined function '{name}': "
                            f"expected {len(names)}, got {len(args)}"
                        )
                    log.debug("Calling %s with %s", name, list(map(display, args)))
                    # Dynamic scope: the callee sees the caller's bindings
                    lenv = env.extend([(name, oper), *zip(names, args)])
                    return eval(body, lenv)

                case _:
                    return ErrorValue("Cannot apply a non-function or undefined operator")

        case Definition(name, None, value):
            result = eval(value, env)
            if not isinstance(result, ErrorValue):
                env.define(name, result)
            return result

        case Definition(name):
            env.define(name, expr)
            return True

        case Conditional(test, then, orelse):
            cond = eval(test, env)
            if isinstance(cond, ErrorValue):
                return cond
            if not isinstance(cond, bool):
                return ErrorValue("'if' condition must be a boolean")
            return eval(then if cond else orelse, env)

        case _:
            return ErrorValue("Cannot evaluate expression of this type")

def evaluate(expr, env):
    '''Evaluate `expr`, reporting stack exhaustion as an error value.'''
    try:
        return eval(expr, env)
    except RecursionError:
        return ErrorValue("Recursion depth exceeded")

def rep(line, env):
    '''Read, evaluate and display one line. Returns None for a blank line.'''
    parsed = Parser(line).parse()
    if parsed is None:
        return None
    log.debug("Parsed %s", display(parsed))

    result = evaluate(parsed, env)
    log.debug("Result %s", display(result))
    return display(result)

def is_bye(line):
    try:
        tok = Parser(line).advance()
    except SyntaxError:
        return False
    return tok is not None and tok.type == 'atom' and tok.value == "bye"

BANNER = "ListScript ready."
FAREWELL = "Bye!"

def session(lines, env, echo=print, source=None):
    '''
    Run each line against `env`, echoing results, errors and `write` output.
    Returns True if the lines ended with `bye`.
    '''
    env.echo = echo
    for lineno, line in enumerate(lines, 1):
        if is_bye(line):
            echo(FAREWELL)
            return True
        try:
            out = rep(line, env)
        except SyntaxError as e:
            where = f"{source}:{lineno}: " if source else ""
            out = f"{where}Parse error: {e.msg}"
        except Exception:
            tb.print_exc()
            continue

        if out is not None:
            echo(out)
    return False

class REPL:
    HISTORY = os.path.expanduser("~/.listscript_history")
    PROMPT = "-> "

    def __init__(self, env, history=HISTORY):
        self.env = env
        self.history = history
        self.hlen = 0

    def complete(self, text, state):
        m = [k for k in self.env.keys() if k.startswith(text)]
        try:
            return m[state]
        except IndexError:
            return None

    def register(self):
        readline.set_history_length(1000)
        readline.set_completer(self.complete)
        readline.set_completer_delims(" ()\t,;\"")
        readline.parse_and_bind("tab: complete")

    def start(self):
        readline.set_startup_hook(self.register)
        if self.history is None:
            return

        try:
            readline.read_history_file(self.history)
            self.hlen = readline.get_current_history_length()
        except FileNotFoundError:
            try:
                open(self.history, 'wb').close()
            except OSError as e:
                log.warning("Cannot create history file %s: %s", self.history, e)
                self.history = None
            self.hlen = 0
        except OSError as e:
            log.warning("Cannot read history file %s: %s", self.history, e)
            self.history = None

    def input(self):
        line = input(self.PROMPT)
        if self.history is None:
            return line

        nhlen = readline.get_current_history_length()
        try:
            readline.append_history_file(nhlen - self.hlen, self.history)
        except OSError as e:
            log.warning("Cannot write history file %s: %s", self.history, e)
        self.hlen = nhlen

        return line

    def lines(self):
        try:
            while True:
                yield self.input()
        except EOFError:
            return

def repl(env=None, history=REPL.HISTORY):
    if env is None:
        env = standard_env()

    ctrl = REPL(env, history)
    ctrl.start()

    print(BANNER)
    try:
        session(ctrl.lines(), env)
    except KeyboardInterrupt:
        print()
