"""Ordered store of the shell's environment variables."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Environment:
    """Variables kept in insertion order; replacing a value keeps its place."""

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] | None = None):
        self._vars: dict[str, str] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self.set(key, value)

    @classmethod
    def from_strings(cls, entries: Iterable[str]) -> "Environment":
        """Build from ``KEY=VALUE`` strings, splitting at the first ``=``."""
        env = cls()
        for entry in entries:
            key, sep, value = entry.partition("=")
            if not sep:
                raise ValueError(f"environment entry without '=': {entry!r}")
            env.set(key, value)
        return env

    def get(self, key: str) -> str:
        """Value of ``key``, or the empty string when it is not set."""
        return self._vars.get(key, "")

    def set(self, key: str, value: str) -> None:
        """Set ``key``; a new key goes to the end."""
        self._vars[key] = value

    def unset(self, key: str) -> None:
        """Remove ``key`` if present."""
        self._vars.pop(key, None)

    def copy(self) -> "Environment":
        """An independent copy with the same order."""
        return Environment(self._vars)

    def sorted_items(self) -> list[tuple[str, str]]:
        """All variables ordered by key."""
        return sorted(self._vars.items())

    def to_strings(self) -> list[str]:
        """``KEY=VALUE`` strings in order, as handed to a new program."""
        return [f"{key}={value}" for key, value in self._vars.items()]

    def items(self) -> list[tuple[str, str]]:
        """All variables in order."""
        return list(self._vars.items())

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._vars))

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment({self._vars!r})"