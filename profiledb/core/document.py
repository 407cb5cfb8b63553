"""Navigable JSON document over search results.

Backends return search results as a JSON string; :class:`JsonDocument` parses
it once and answers JSONPath queries against the parsed value::

    doc = handler.get_data_as_json_document("users", "SELECT * FROM users")
    doc.read("$[*].email")          # -> ["a@example.com", "b@example.com"]
    doc.read_one("$[0].id")         # -> 1
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

from jsonpath_ng.ext import parse as parse_jsonpath

from profiledb.core.exceptions import JsonDocumentError

logger = logging.getLogger("profiledb.core.document")

_MISSING = object()


@lru_cache(maxsize=256)
def _compile(path: str) -> Any:
    try:
        return parse_jsonpath(path)
    except Exception as exc:
        raise JsonDocumentError(f"Invalid JSONPath expression {path!r}: {exc}") from exc


class JsonDocument:
    """Parsed JSON value with JSONPath lookups."""

    def __init__(self, json_string: str) -> None:
        self._json_string = json_string
        try:
            self._data = json.loads(json_string)
        except (TypeError, ValueError) as exc:
            raise JsonDocumentError(f"Search result is not valid JSON: {exc}") from exc

    @property
    def json_string(self) -> str:
        return self._json_string

    @property
    def data(self) -> Any:
        return self._data

    def read(self, path: str) -> list[Any]:
        """Return every value matched by *path* (possibly empty)."""
        matches = [m.value for m in _compile(path).find(self._data)]
        logger.debug("JSONPath %s matched %d value(s)", path, len(matches))
        return matches

    def read_one(self, path: str, default: Any = _MISSING) -> Any:
        """Return the single value matched by *path*.

        Raises :class:`JsonDocumentError` when nothing matches and no
        *default* is given, or when more than one value matches.
        """
        matches = self.read(path)
        if not matches:
            if default is _MISSING:
                raise JsonDocumentError(f"JSONPath {path!r} matched nothing")
            return default
        if len(matches) > 1:
            raise JsonDocumentError(f"JSONPath {path!r} matched {len(matches)} values, expected 1")
        return matches[0]

    def __len__(self) -> int:
        if isinstance(self._data, (list, dict)):
            return len(self._data)
        return 1

    def __repr__(self) -> str:
        return f"JsonDocument({self._json_string[:60]!r})"
