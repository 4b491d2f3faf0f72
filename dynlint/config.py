# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lint level configuration.

Levels come from two places outside the source file:
- a project config file (`./dynlint.json` by default, or `--config PATH`),
- command-line flags (`-W`, `-A`, `-D`, `-F`), which win over the file.

Attributes in the source file are applied later by the driver and win over
both.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Optional, Tuple

from dynlint.lints import LintLevel

CONFIG_FORMAT = "dynlint-config"
CONFIG_VERSION = 0
DEFAULT_CONFIG_NAME = "dynlint.json"


@dataclass(frozen=True)
class LintConfig:
	"""
	Resolved level overrides, keyed by lint name as written by the user.

	`file_levels` came from a config file (`path`); `cli_levels` from the
	command line. Names are normalized to lower case without a `clippy::`
	prefix; the driver reports names it does not know.
	"""

	file_levels: dict[str, LintLevel] = field(default_factory=dict)
	cli_levels: dict[str, LintLevel] = field(default_factory=dict)
	path: Optional[Path] = None

	def with_cli_levels(self, pairs: Iterable[Tuple[str, LintLevel]]) -> "LintConfig":
		"""Return a copy with command-line overrides applied in order (last one wins)."""
		levels = dict(self.cli_levels)
		for name, level in pairs:
			levels[normalize_lint_name(name)] = level
		return replace(self, cli_levels=levels)


def normalize_lint_name(name: str) -> str:
	key = name.strip().lower().replace("-", "_")
	if key.startswith("clippy::"):
		key = key[len("clippy::"):]
	return key


def load_config_json(path: Path) -> LintConfig:
	"""
	Load a lint config file.

	Format (JSON):
	{
	  "format": "dynlint-config",
	  "version": 0,
	  "lints": {
	    "coerce_any_ref_to_any": "warn"
	  }
	}
	"""
	try:
		obj = json.loads(path.read_text(encoding="utf-8"))
	except json.JSONDecodeError as err:
		raise ValueError(f"invalid JSON in lint config: {err}") from err
	if not isinstance(obj, dict):
		raise ValueError("lint config must be a JSON object")
	if obj.get("format") != CONFIG_FORMAT or obj.get("version") != CONFIG_VERSION:
		raise ValueError("unsupported lint config format/version")

	lints_obj = obj.get("lints") or {}
	if not isinstance(lints_obj, dict):
		raise ValueError("lint config lints must be a JSON object")
	levels: dict[str, LintLevel] = {}
	for name, level in lints_obj.items():
		if not isinstance(level, str):
			raise ValueError(f"lint level for '{name}' must be a string")
		levels[normalize_lint_name(name)] = LintLevel.parse(level)

	return LintConfig(file_levels=levels, path=path)


def discover_config(explicit: Optional[Path], cwd: Optional[Path] = None) -> Optional[Path]:
	"""Config path to load: the explicit one, else `dynlint.json` in `cwd` when present."""
	if explicit is not None:
		return explicit
	candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
	return candidate if candidate.is_file() else None


__all__ = [
	"CONFIG_FORMAT",
	"CONFIG_VERSION",
	"LintConfig",
	"normalize_lint_name",
	"load_config_json",
	"discover_config",
]
