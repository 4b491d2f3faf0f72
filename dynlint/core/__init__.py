"""
dynlint.core: shared core types/diagnostics used across stages.

Modules:
  - span: source spans with offsets for snippet recovery
  - diagnostics: Diagnostic, Suggestion and Applicability
  - types_core: TypeId/TypeTable primitives
  - traits: TraitTable and the diagnostic-item registry
  - deref: lazy deref chains
"""

__all__ = [
	"span",
	"diagnostics",
	"types_core",
	"traits",
	"deref",
]
