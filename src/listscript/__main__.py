import os
import sys
import logging
import argparse

from .repl import REPL, repl, session, standard_env

log = logging.getLogger(__name__)

def _get_log_level():
    '''Log level from the LOGLEVEL environment variable, WARNING if unset.'''
    loglevel_env = os.getenv("LOGLEVEL", "").upper()
    if loglevel_env:
        level = getattr(logging, loglevel_env, None)
        if isinstance(level, int):
            return level
    return logging.WARNING

def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="listscript",
        description="Interactive interpreter for the ListScript language"
    )
    parser.add_argument(
        "files", nargs="*",
        help="Source files to run line by line before (or instead of) the REPL"
    )
    parser.add_argument(
        "-i", "--interactive", action="store_true",
        help="Start the REPL after running the given files"
    )
    history = parser.add_mutually_exclusive_group()
    history.add_argument(
        "--history", default=REPL.HISTORY,
        help=f"Readline history file (default: {REPL.HISTORY})"
    )
    history.add_argument(
        "--no-history", action="store_const", const=None, dest="history",
        help="Do not read or write a history file"
    )
    parser.add_argument(
        "--recursion-limit", type=int, default=10000,
        help="Maximum Python stack depth for evaluation (default: 10000)"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_get_log_level(),
        format='%(message)s',
        stream=sys.stderr
    )
    sys.setrecursionlimit(args.recursion_limit)

    env = standard_env()
    for path in args.files:
        try:
            with open(path) as f:
                session(f, env, source=path)
        except OSError as e:
            log.error("Error reading %s: %s", path, e)
            sys.exit(1)

    if not args.files or args.interactive:
        repl(env, history=args.history)

if __name__ == '__main__':
    main()
