"""Port for evaluating extracted deobfuscation snippets."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ScriptRunnerPort(Protocol):
    """Evaluates a small self-contained JavaScript unit.

    Only snippets extracted from the player script are ever passed in,
    never the whole player.
    """

    def call(self, code: str, function_name: str, argument: str) -> str:
        """Evaluate ``code`` then return ``function_name(argument)`` as a string."""
        ...
