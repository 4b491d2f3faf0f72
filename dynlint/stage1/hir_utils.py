# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
HIR walking helpers shared by the checker tests and the lint driver.
"""

from __future__ import annotations

from typing import Iterator, List

from dynlint.stage1 import hir_nodes as H


def expr_children(e: H.HExpr) -> List[H.HExpr]:
	"""Direct sub-expressions of `e`, in source order."""
	if isinstance(e, H.HCall):
		return [e.fn, *e.args]
	if isinstance(e, H.HBorrow):
		return [e.subject]
	if isinstance(e, H.HUnary):
		return [e.expr]
	return []


def iter_exprs(node: H.HNode) -> Iterator[H.HExpr]:
	"""
	Yield every expression reachable from `node`, parents before children.

	Statements are walked in order; a block's tail comes after its
	statements.
	"""
	if isinstance(node, H.HExpr):
		yield node
		for child in expr_children(node):
			yield from iter_exprs(child)
		return
	if isinstance(node, H.HBlock):
		for stmt in node.statements:
			yield from iter_exprs(stmt)
		if node.tail is not None:
			yield from iter_exprs(node.tail)
		return
	if isinstance(node, H.HLet):
		if node.value is not None:
			yield from iter_exprs(node.value)
		return
	if isinstance(node, H.HExprStmt):
		yield from iter_exprs(node.expr)
		return
	if isinstance(node, H.HReturn):
		if node.value is not None:
			yield from iter_exprs(node.value)
		return
	# Other statements do not contain expressions.


__all__ = ["expr_children", "iter_exprs"]
