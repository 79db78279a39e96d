"""Step identity resolution.

A step is recognised across invocations by an identity derived from its
rendered command. Usually the tool name is enough, since arguments (paths,
CPU counts) change from run to run. Tools that are called several times per
run with different meaning need the whole command as identity instead.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Iterable, Tuple

STRATEGY_TOOL = "tool"
STRATEGY_COMMAND = "command"

_STRATEGIES = (STRATEGY_TOOL, STRATEGY_COMMAND)


@dataclass(frozen=True)
class IdentityRule:
    """Maps a tool name to the way its identity is derived.

    The rule applies to any command whose program name starts with ``tool``,
    so installed paths (``/opt/bin/usearch``) and versioned binaries
    (``usearch7``) are covered too.
    """

    tool: str
    strategy: str = STRATEGY_COMMAND

    def __post_init__(self) -> None:
        if self.strategy not in _STRATEGIES:
            raise ValueError(f"Unknown identity strategy: {self.strategy!r}")

    def matches(self, tool: str) -> bool:
        return bool(tool) and posixpath.basename(tool).startswith(self.tool)


DEFAULT_IDENTITY_RULES: Tuple[IdentityRule, ...] = (
    # sffinfo writes flowgrams, sequences or qualities depending on its flag
    IdentityRule("sffinfo"),
    # usearch bundles unrelated subcommands (uchime, derep, cluster)
    IdentityRule("usearch"),
)


def tool_of(command: str) -> str:
    """Return the first whitespace-delimited token of a command."""
    parts = command.split(None, 1)
    return parts[0] if parts else ""


class IdentityResolver:
    """Derives step identities from rendered command strings."""

    def __init__(self, rules: Iterable[IdentityRule] = DEFAULT_IDENTITY_RULES):
        self.rules: Tuple[IdentityRule, ...] = tuple(rules)

    def with_rules(self, *rules: IdentityRule) -> "IdentityResolver":
        """Return a resolver with extra rules taking precedence."""
        return IdentityResolver(tuple(rules) + self.rules)

    def strategy_for(self, tool: str) -> str:
        for rule in self.rules:
            if rule.matches(tool):
                return rule.strategy
        return STRATEGY_TOOL

    def identity_of(self, command: str) -> str:
        command = command.strip()
        tool = tool_of(command)
        if self.strategy_for(tool) == STRATEGY_COMMAND:
            return command
        return tool
