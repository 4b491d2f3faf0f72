# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST -> HIR lowering (sugar removal entry point).

Pipeline placement:
  AST (dynlint/parser/ast.py) -> HIR (dynlint/stage1/hir_nodes.py) -> checker

Sugar removed here:
  - parentheses (the inner node takes the parenthesized span),
  - single-segment paths become HVar, multi-segment paths HPath.

Entry points (stage API):
  - lower_expr: lower a single expression to HIR
  - lower_stmt: lower a single statement to HIR
  - lower_block: lower a block into an HBlock
  - lower_function: lower a function body and assign NodeIds
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from dynlint.parser import ast
from dynlint.core.span import Span
from . import hir_nodes as H
from .node_ids import assign_node_ids


class AstToHIR:
	"""
	AST -> HIR lowering.

	Helper visitors are prefixed with an underscore; anything without a
	leading underscore is intended for callers of this stage.
	"""

	def __init__(self, file: Optional[str] = None):
		# Source file recorded in every Span this pass produces.
		self._file = file

	def _span(self, loc: Optional[ast.Located]) -> Span:
		return Span.from_loc(loc, file=self._file)

	def lower_function(self, fn: ast.FunctionDef) -> H.HBlock:
		"""Lower `fn`'s body and number its nodes from 1."""
		body = self.lower_block(fn.body)
		assign_node_ids(body)
		return body

	def lower_expr(self, expr: ast.Expr) -> H.HExpr:
		"""
		Dispatch an AST expression to a per-type visitor.

		New AST node types must add a visitor rather than being silently
		ignored.
		"""
		method = getattr(self, f"_visit_expr_{type(expr).__name__}", None)
		if method is None:
			raise NotImplementedError(f"No HIR lowering for expr type {type(expr).__name__}")
		return method(expr)

	def lower_stmt(self, stmt: ast.Stmt) -> H.HStmt:
		"""Dispatch an AST statement to a per-type visitor."""
		method = getattr(self, f"_visit_stmt_{type(stmt).__name__}", None)
		if method is None:
			raise NotImplementedError(f"No HIR lowering for stmt type {type(stmt).__name__}")
		return method(stmt)

	def lower_block(self, block: ast.Block) -> H.HBlock:
		statements = [self.lower_stmt(s) for s in block.statements]
		tail = self.lower_expr(block.tail) if block.tail is not None else None
		return H.HBlock(statements=statements, tail=tail, loc=self._span(block.loc))

	# Expressions ----------------------------------------------------------

	def _visit_expr_Name(self, expr: ast.Name) -> H.HExpr:
		return H.HVar(name=expr.ident, loc=self._span(expr.loc))

	def _visit_expr_Path(self, expr: ast.Path) -> H.HExpr:
		return H.HPath(segments=list(expr.segments), loc=self._span(expr.loc))

	def _visit_expr_Literal(self, expr: ast.Literal) -> H.HExpr:
		loc = self._span(expr.loc)
		# bool is an int subclass; check it first.
		if isinstance(expr.value, bool):
			return H.HLiteralBool(value=expr.value, loc=loc)
		if isinstance(expr.value, int):
			return H.HLiteralInt(value=expr.value, suffix=expr.suffix, loc=loc)
		if isinstance(expr.value, str):
			return H.HLiteralString(value=expr.value, loc=loc)
		raise NotImplementedError(f"Literal of unsupported type: {type(expr.value).__name__}")

	def _visit_expr_UnitLit(self, expr: ast.UnitLit) -> H.HExpr:
		return H.HUnit(loc=self._span(expr.loc))

	def _visit_expr_Call(self, expr: ast.Call) -> H.HExpr:
		fn = self.lower_expr(expr.func)
		args = [self.lower_expr(a) for a in expr.args]
		return H.HCall(fn=fn, args=args, loc=self._span(expr.loc))

	def _visit_expr_Borrow(self, expr: ast.Borrow) -> H.HExpr:
		subject = self.lower_expr(expr.operand)
		return H.HBorrow(subject=subject, is_mut=expr.mutable, loc=self._span(expr.loc))

	def _visit_expr_Deref(self, expr: ast.Deref) -> H.HExpr:
		inner = self.lower_expr(expr.operand)
		return H.HUnary(op=H.UnaryOp.DEREF, expr=inner, loc=self._span(expr.loc))

	def _visit_expr_Paren(self, expr: ast.Paren) -> H.HExpr:
		inner = self.lower_expr(expr.inner)
		return replace(inner, loc=self._span(expr.loc))

	# Statements -----------------------------------------------------------

	def _visit_stmt_LetStmt(self, stmt: ast.LetStmt) -> H.HStmt:
		value = self.lower_expr(stmt.value) if stmt.value is not None else None
		return H.HLet(
			name=stmt.name,
			value=value,
			declared_type_expr=stmt.type_expr,
			is_mutable=stmt.mutable,
			loc=self._span(stmt.loc),
		)

	def _visit_stmt_ExprStmt(self, stmt: ast.ExprStmt) -> H.HStmt:
		return H.HExprStmt(expr=self.lower_expr(stmt.value), loc=self._span(stmt.loc))

	def _visit_stmt_ReturnStmt(self, stmt: ast.ReturnStmt) -> H.HStmt:
		value = self.lower_expr(stmt.value) if stmt.value is not None else None
		return H.HReturn(value=value, loc=self._span(stmt.loc))


__all__ = ["AstToHIR"]
