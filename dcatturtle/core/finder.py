from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Optional

from jsonpath_ng.ext import parse as _parse_jsonpath

from dcatturtle.errors import MappingError

ROOT_ESCAPE = "$$"

_MISSING = object()


@lru_cache(maxsize=1024)
def compile_path(path: str):
    try:
        return _parse_jsonpath(path)
    except Exception as exc:  # jsonpath-ng raises plain Exception subclasses
        raise MappingError(f"Invalid JSONPath {path!r}: {exc}") from exc


def as_text(value: Any) -> Optional[str]:
    """
    Render a JSON value the way it reads in the document:
    strings as-is, scalars in JSON text form ("false", "4"), containers compact.
    JSON null has no text.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class JsonFinder:
    """
    JSONPath lookups against a current scope node, with the original
    document root reachable through the "$$" escape.
    """

    def __init__(self, document: Any, scope: Any = _MISSING):
        if document is None:
            raise MappingError("No JSON document to map")
        self.root = document
        self.scope = document if scope is _MISSING else scope

    def at(self, node: Any) -> "JsonFinder":
        return JsonFinder(self.root, node)

    def _target(self, path: str):
        if path.startswith(ROOT_ESCAPE):
            return self.root, path[1:]
        return self.scope, path

    def nodes(self, path: str) -> List[Any]:
        data, expr = self._target(path)
        return [m.value for m in compile_path(expr).find(data)]

    def values(self, path: Optional[str]) -> List[str]:
        if path is None or not path.strip():
            return []
        out = []
        for v in self.nodes(path.strip()):
            text = as_text(v)
            if text is not None:
                out.append(text)
        return out

    def first(self, path: Optional[str], default: Optional[str] = None) -> Optional[str]:
        vals = self.values(path)
        return vals[0] if vals else default
