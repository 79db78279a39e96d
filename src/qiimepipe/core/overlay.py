"""Parameter overlay: extra command-line options per external tool.

The overlay file uses the QIIME parameter-file layout, one directive per line::

    pick_otus:similarity 0.97
    beta_diversity:metrics bray_curtis,unweighted_unifrac

Every matching directive becomes ``--option value`` on that tool's command, in
file order. The expansion must stay deterministic: the overlaid command is
what gets journaled and later matched again.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from qiimepipe.core.identity import tool_of
from qiimepipe.exceptions import ConfigurationError
from qiimepipe.utils.logging import get_logger

SCRIPT_SUFFIXES = (".py", ".rb")

logger = get_logger("overlay")


def base_name(tool: str) -> str:
    """Strip directories and a script suffix: /opt/bin/pick_otus.py -> pick_otus."""
    name = tool.rsplit("/", 1)[-1]
    for suffix in SCRIPT_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


class ParameterOverlay:
    """Immutable mapping of tool base name to (option, value) pairs."""

    def __init__(self, params: Optional[Mapping[str, Tuple[Tuple[str, str], ...]]] = None):
        self._params = MappingProxyType(dict(params or {}))

    @classmethod
    def empty(cls) -> "ParameterOverlay":
        return cls()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ParameterOverlay":
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"No such parameter file: {path}")

        collected: Dict[str, List[Tuple[str, str]]] = {}
        with open(path, "r", encoding="utf-8") as handle:
            for lineno, raw in enumerate(handle, 1):
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                script, sep, leftover = line.partition(":")
                fields = leftover.split(None, 1)
                if not sep or not script.strip() or not fields:
                    raise ConfigurationError(
                        f"{path}:{lineno}: expected 'tool_name:option value', got {line!r}"
                    )
                option = fields[0].lstrip("-")
                value = fields[1].strip() if len(fields) > 1 else ""
                collected.setdefault(base_name(script.strip()), []).append((option, value))

        logger.debug(f"Loaded parameter overlay for {len(collected)} tool(s) from {path}")
        return cls({tool: tuple(pairs) for tool, pairs in collected.items()})

    def __len__(self) -> int:
        return len(self._params)

    def options_for(self, tool_name: str) -> Tuple[Tuple[str, str], ...]:
        return self._params.get(base_name(tool_name), ())

    def expand(self, tool_name: str) -> str:
        """Return the extra CLI fragment for a tool ('' when there is none)."""
        fragments = []
        for option, value in self.options_for(tool_name):
            fragments.append(f"--{option} {value}" if value else f"--{option}")
        return " ".join(fragments)

    def apply(self, command: str) -> str:
        """Append the tool's overlay fragment to a rendered command."""
        command = command.strip()
        fragment = self.expand(tool_of(command))
        if not fragment:
            return command
        return f"{command} {fragment}"
