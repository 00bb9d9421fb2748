"""
Parser for property scripts.

A property script is a list of assignments, one per line:

    buttonID = "myButton1"
    text = "Hello"
    animation.type = "fade"
    animation.duration = "2s"

Dotted keys create nested trees. Lines starting with '#' are comments.
"""

from typing import Optional, Tuple

from mjss.mjss_datatypes import PropertyTree, ParseAnomaly

# Matching (open, close) quote pairs that may surround a value.
QUOTE_PAIRS = (
    ('"', '"'),
    ("'", "'"),
    ("“", "”"),
    ("‘", "’"),
)


def strip_quotes(raw: str) -> str:
    """Removes one matching pair of surrounding quotes, then trims."""
    value = raw.strip()
    if len(value) >= 2:
        for open_q, close_q in QUOTE_PAIRS:
            if value.startswith(open_q) and value.endswith(close_q):
                return value[len(open_q):-len(close_q)].strip()
    return value


class PropertyParser:
    """Turns property-script text into a PropertyTree.

    By default the parser is lenient: a malformed line is skipped and the
    rest of the script still applies. With strict=True the first malformed
    line raises ParseAnomaly instead.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def parse(self, script: str) -> PropertyTree:
        props = PropertyTree()
        for line_no, raw_line in enumerate(script.split("\n"), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            parsed, reason = self._split_assignment(line)
            if parsed is None:
                if self.strict:
                    raise ParseAnomaly(line_no, line, reason)
                continue
            path, value = parsed

            current = props
            for part in path[:-1]:
                current = current.subtree(part)
            current[path[-1]] = value
        return props

    def _split_assignment(self, line: str) -> Tuple[Optional[tuple], str]:
        raw_key, sep, raw_value = line.partition("=")
        if not sep:
            return None, "missing '='"
        raw_key = raw_key.strip()
        if not raw_key:
            return None, "missing key"
        path = [part.strip() for part in raw_key.split(".")]
        if any(not part for part in path):
            return None, "empty key segment"
        if any(ch.isspace() for part in path for ch in part):
            return None, "whitespace in key"
        return (path, strip_quotes(raw_value)), ""


def parse(script: str, strict: bool = False) -> PropertyTree:
    return PropertyParser(strict=strict).parse(script)


__all__ = ["PropertyParser", "parse", "strip_quotes"]
