# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Stage1: HIR definitions, AST->HIR lowering and NodeId assignment.

Re-exports the HIR node classes so callers can write `H.HBorrow(...)`.
"""

from .hir_nodes import *  # noqa: F401,F403
from .hir_nodes import __all__ as _hir_all
from .ast_to_hir import AstToHIR
from .hir_utils import expr_children, iter_exprs
from .node_ids import assign_node_ids

__all__ = [*_hir_all, "AstToHIR", "expr_children", "iter_exprs", "assign_node_ids"]
