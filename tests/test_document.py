"""Tests for JSON documents over search results."""

import pytest

from profiledb.core.document import JsonDocument
from profiledb.core.exceptions import JsonDocumentError

ROWS = '[{"id": 1, "name": "Ada", "active": true}, {"id": 2, "name": "Lin", "active": false}]'


class TestJsonDocument:
    """Test cases for JsonDocument."""

    def test_parsed_data(self):
        doc = JsonDocument(ROWS)

        assert doc.data[0]["name"] == "Ada"
        assert doc.json_string == ROWS
        assert len(doc) == 2

    def test_read_all_matches(self):
        assert JsonDocument(ROWS).read("$[*].id") == [1, 2]

    def test_read_with_filter(self):
        assert JsonDocument(ROWS).read("$[?(@.id > 1)].name") == ["Lin"]

    def test_read_no_match(self):
        assert JsonDocument(ROWS).read("$[*].missing") == []

    def test_read_one(self):
        assert JsonDocument(ROWS).read_one("$[1].name") == "Lin"

    def test_read_one_default(self):
        assert JsonDocument(ROWS).read_one("$[5].name", default=None) is None

    def test_read_one_nothing(self):
        with pytest.raises(JsonDocumentError, match="matched nothing"):
            JsonDocument(ROWS).read_one("$[5].name")

    def test_read_one_ambiguous(self):
        with pytest.raises(JsonDocumentError, match="matched 2 values"):
            JsonDocument(ROWS).read_one("$[*].name")

    def test_invalid_json(self):
        with pytest.raises(JsonDocumentError, match="not valid JSON"):
            JsonDocument("{not json")

    def test_invalid_path(self):
        with pytest.raises(JsonDocumentError, match="Invalid JSONPath"):
            JsonDocument(ROWS).read("$[?(")

    def test_scalar_document(self):
        doc = JsonDocument("42")

        assert doc.read_one("$") == 42
        assert len(doc) == 1
