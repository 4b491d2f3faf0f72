# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
NodeId assignment for HIR nodes.

This pass assigns stable, per-function NodeIds so typed side tables can key
off HIR nodes without relying on Python object identity.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass

from dynlint.core.span import Span
from dynlint.stage1 import hir_nodes as H


def assign_node_ids(root: H.HNode, *, start: int = 1) -> int:
	"""
	Assign NodeIds to all HIR nodes reachable from `root`.

	Returns the next available NodeId after traversal.
	"""
	next_id = start
	seen: set[int] = set()

	def walk(obj: object) -> None:
		nonlocal next_id
		obj_id = id(obj)
		if obj_id in seen:
			return
		seen.add(obj_id)

		if isinstance(obj, H.HNode):
			obj.node_id = next_id
			next_id += 1

		if not (isinstance(obj, H.HNode) and is_dataclass(obj)):
			return
		for f in fields(obj):
			walk_value(getattr(obj, f.name))

	def walk_value(val: object) -> None:
		if val is None or isinstance(val, Span):
			return
		if isinstance(val, (list, tuple)):
			for item in val:
				walk_value(item)
			return
		walk(val)

	walk(root)
	return next_id


__all__ = ["assign_node_ids"]
