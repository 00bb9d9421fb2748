from __future__ import annotations

import json
from typing import Any, Optional
import collections.abc

import yaml
import xmltodict

from mjss.mjss_datatypes import PropertyTree

FORMATS = ('json', 'yaml', 'xml')


# --------------------------
# Helpers
# --------------------------

def _to_builtin(obj: Any) -> Any:
    # xmltodict returns OrderedDict (Mapping); PropertyTree is a Mapping too
    if isinstance(obj, collections.abc.Mapping):
        return {str(k): _to_builtin(v) for k, v in obj.items()}
    return obj


def _normalize_fmt(fmt: Optional[str]) -> str:
    f = (fmt or '').strip().lower()
    if f == 'yml':
        f = 'yaml'
    if f not in FORMATS:
        raise ValueError(f"Unsupported serialization format: {fmt!r}")
    return f


# --------------------------
# Public API
# --------------------------

def export_tree(tree: PropertyTree, fmt: str, *, pretty: bool = True, xml_root: str = "mjss") -> str:
    """
    Render a PropertyTree as json, yaml or xml text.
    - For XML the tree is wrapped under a single {xml_root: ...} element.
    """
    f = _normalize_fmt(fmt)
    built = _to_builtin(tree)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False, allow_unicode=True)
    return xmltodict.unparse({xml_root: built}, pretty=pretty)


def import_tree(text: str, fmt: str, *, xml_root: str = "mjss") -> PropertyTree:
    """
    Parse json, yaml or xml text back into a PropertyTree.
    Leaves are coerced to strings; the result must be a mapping.
    """
    f = _normalize_fmt(fmt)
    if f == 'json':
        data = json.loads(text)
    elif f == 'yaml':
        data = yaml.safe_load(text)
    else:
        data = _to_builtin(xmltodict.parse(text))
        if isinstance(data, dict) and list(data) == [xml_root]:
            data = data[xml_root]
    if data is None:
        return PropertyTree()
    if not isinstance(data, collections.abc.Mapping):
        raise ValueError(f"Expected a mapping at the top level of {f} input, got {type(data).__name__}")
    return PropertyTree.from_dict(data)


__all__ = [
    "export_tree",
    "import_tree",
    "FORMATS",
]
