"""
Formats PropertyTrees back into property-script text.
"""
from typing import List

from mjss.mjss_datatypes import PropertyTree


class Printer:
    """Formats a PropertyTree as valid property-script source."""

    def pformat(self, tree: PropertyTree) -> str:
        """Public entry point. One assignment per leaf, in iteration order."""
        lines: List[str] = []
        for key, value in tree.items():
            self._emit(key, value, lines)
        return "\n".join(lines)

    def _emit(self, path: str, value, lines: List[str]):
        if isinstance(value, PropertyTree):
            for nested_key, nested_value in value.items():
                self._emit(f"{path}.{nested_key}", nested_value, lines)
            return
        lines.append(self._pformat_assignment(path, value))

    def _pformat_assignment(self, path: str, value: str) -> str:
        # Embedded quotes are not escaped
        return f'{path} = "{value}"'


def serialize(tree: PropertyTree) -> str:
    return Printer().pformat(tree)


__all__ = ["Printer", "serialize"]
