# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
High-level Intermediate Representation (HIR).

Pipeline placement:
  AST (dynlint/parser/ast.py) -> HIR (this file) -> typed side tables -> lints

The HIR is a *sugar-free* tree that sits between the parsed AST and the
checker. Parentheses are gone (a parenthesized expression keeps the span of
its parentheses), `&&x` is two borrows, and every node carries a Span.

Guiding rules:
- Nodes are purely syntactic; no type or symbol resolution is embedded here.
- Types live in side tables keyed by NodeId (see node_ids.assign_node_ids).
- Blocks are explicit statements (`HBlock`) with an optional tail expression.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from dynlint.core.span import Span

# Stable identifiers for bindings (locals/params). Populated by the typed
# checker.
BindingId = int
# Stable identifiers for HIR nodes (used by typed side tables).
NodeId = int


# Base node kinds

class HNode:
	"""Base class for all HIR nodes."""
	node_id: NodeId = 0


class HExpr(HNode):
	"""Base class for all HIR expressions."""
	pass


class HStmt(HNode):
	"""Base class for all HIR statements."""
	pass


class UnaryOp(Enum):
	"""Unary operators preserved in HIR."""
	DEREF = auto()    # dereference: *p


# Expressions

@dataclass
class HVar(HExpr):
	"""Reference to a local/binding (resolved by the checker)."""
	name: str
	binding_id: Optional[BindingId] = None
	loc: Span = field(default_factory=Span)


@dataclass
class HPath(HExpr):
	"""Multi-segment path, e.g. `Box::new`."""
	segments: List[str]
	loc: Span = field(default_factory=Span)

	@property
	def text(self) -> str:
		return "::".join(self.segments)


@dataclass
class HLiteralInt(HExpr):
	"""Integer literal (as parsed, with optional type suffix)."""
	value: int
	suffix: Optional[str] = None
	loc: Span = field(default_factory=Span)


@dataclass
class HLiteralBool(HExpr):
	"""Boolean literal."""
	value: bool
	loc: Span = field(default_factory=Span)


@dataclass
class HLiteralString(HExpr):
	"""String literal; typed as `&str`."""
	value: str
	loc: Span = field(default_factory=Span)


@dataclass
class HUnit(HExpr):
	"""The unit value `()`."""
	loc: Span = field(default_factory=Span)


@dataclass
class HCall(HExpr):
	"""Plain function call: fn(args...)."""
	fn: HExpr
	args: List[HExpr]
	loc: Span = field(default_factory=Span)


@dataclass
class HBorrow(HExpr):
	"""Address-of: &subject or &mut subject."""
	subject: HExpr
	is_mut: bool = False
	loc: Span = field(default_factory=Span)


@dataclass
class HUnary(HExpr):
	"""Unary operation."""
	op: UnaryOp
	expr: HExpr
	loc: Span = field(default_factory=Span)


# Statements

@dataclass
class HBlock(HStmt):
	"""Ordered list of statements plus the optional value expression."""
	statements: List[HStmt]
	tail: Optional[HExpr] = None
	loc: Span = field(default_factory=Span)


@dataclass
class HExprStmt(HStmt):
	"""Expression used as a statement (value discarded)."""
	expr: HExpr
	loc: Span = field(default_factory=Span)


@dataclass
class HLet(HStmt):
	"""
	Binding introduction (`let` / `let mut`).

	`declared_type_expr` is the surface annotation, if any; an annotated
	initializer is a coercion site.
	"""
	name: str
	value: Optional[HExpr]
	declared_type_expr: Optional[object] = None
	binding_id: Optional[BindingId] = None
	is_mutable: bool = False
	loc: Span = field(default_factory=Span)


@dataclass
class HReturn(HStmt):
	value: Optional[HExpr]
	loc: Span = field(default_factory=Span)


__all__ = [
	"BindingId", "NodeId",
	"HNode", "HExpr", "HStmt",
	"UnaryOp",
	"HVar", "HPath", "HLiteralInt", "HLiteralBool", "HLiteralString", "HUnit",
	"HCall", "HBorrow", "HUnary",
	"HBlock", "HExprStmt", "HLet", "HReturn",
]
