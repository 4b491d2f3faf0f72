# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Trait identities, impls and diagnostic items.

Traits are named by opaque TraitIds. Two traits with the same spelling are
different traits when declared separately (a user `trait Any {}` is not the
builtin `Any`), so lints never match on names: they match on the TraitId the
diagnostic-item registry hands out for a well-known name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from dynlint.core.types_core import TraitId, TypeId, TypeKind, TypeTable

# Builtin traits implemented by every sized type in the surface language
# (there are no lifetimes or thread-affine types to exclude anything).
AUTO_TRAITS = ("Any", "Send", "Sync")


class DiagnosticItems:
	"""Registry mapping well-known names to the TraitIds that carry them."""

	def __init__(self) -> None:
		self._items: Dict[str, TraitId] = {}

	def register(self, name: str, trait_id: TraitId) -> None:
		if name in self._items and self._items[name] != trait_id:
			raise ValueError(f"diagnostic item '{name}' already registered")
		self._items[name] = trait_id

	def resolve(self, name: str) -> Optional[TraitId]:
		"""Return the TraitId registered for `name`, or None."""
		return self._items.get(name)

	def is_diagnostic_item(self, name: str, trait_id: TraitId) -> bool:
		return self._items.get(name) == trait_id


@dataclass
class TraitInfo:
	trait_id: TraitId
	name: str
	builtin: bool = False


@dataclass
class TraitTable:
	"""
	Owns TraitIds and impl facts.

	`impls` records `impl Trait for Type {}` as (trait_id, type_id) pairs.
	Auto traits are implemented by every sized type; a trait object
	implements each trait in its bound set.
	"""

	traits: Dict[TraitId, TraitInfo] = field(default_factory=dict)
	impls: Set[Tuple[TraitId, TypeId]] = field(default_factory=set)
	diagnostic_items: DiagnosticItems = field(default_factory=DiagnosticItems)
	_next_id: TraitId = 1
	_builtins: Dict[str, TraitId] = field(default_factory=dict)

	@classmethod
	def with_builtins(cls) -> "TraitTable":
		"""Create a table seeded with the builtin auto traits and their diagnostic items."""
		table = cls()
		for name in AUTO_TRAITS:
			tid = table.new_trait(name, builtin=True)
			table._builtins[name] = tid
			table.diagnostic_items.register(name, tid)
		return table

	def new_trait(self, name: str, *, builtin: bool = False) -> TraitId:
		tid = self._next_id
		self._next_id += 1
		self.traits[tid] = TraitInfo(trait_id=tid, name=name, builtin=builtin)
		return tid

	def builtin(self, name: str) -> Optional[TraitId]:
		return self._builtins.get(name)

	def name_of(self, trait_id: TraitId) -> str:
		return self.traits[trait_id].name

	def add_impl(self, trait_id: TraitId, ty: TypeId) -> None:
		self.impls.add((trait_id, ty))

	def implements(self, type_table: TypeTable, ty: TypeId, trait_id: TraitId) -> bool:
		"""Does `ty` implement `trait_id`?"""
		td = type_table.lookup(ty)
		if td is None or td.kind is TypeKind.UNKNOWN:
			return False
		if td.kind is TypeKind.DYNAMIC:
			return any(p.trait_id == trait_id and p.no_bound_vars() for p in td.predicates)
		info = self.traits.get(trait_id)
		if info is not None and info.builtin:
			return True
		return (trait_id, ty) in self.impls


__all__ = ["AUTO_TRAITS", "DiagnosticItems", "TraitInfo", "TraitTable"]
