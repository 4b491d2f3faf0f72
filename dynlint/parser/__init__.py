"""
dynlint.parser: lark-based parser for the Rust-like surface subset.

`parse_program(source)` returns an AST `Program` or raises `ParseError`.
"""

from . import ast
from .parser import LINT_LEVELS, ParseError, parse_program

__all__ = ["ast", "LINT_LEVELS", "ParseError", "parse_program"]
