from .repl import repl, session, rep, eval, evaluate, standard_env, PRIMITIVES
from .parser import Token, Tokenizer, Parser, tokenize, parse
from .value import (
    Symbol, PrimitiveOperator, ErrorValue, ParamList, Definition, Sequence,
    DataBlock, Call, Conditional, Environment, display
)
