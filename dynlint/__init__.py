# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
dynlint: late lint passes over a typed Rust-like program.

Stages:
  parser:  source text -> AST (lark)
  stage1:  AST -> HIR with stable NodeIds
  checker: HIR -> TypedFn side tables (declared and adjusted types)
  lints:   late lint passes run once per expression node

The CLI entrypoint is `dynlint.cli:main`.
"""

__version__ = "0.1.0"

__all__ = ["core", "parser", "stage1", "checker", "lints"]
