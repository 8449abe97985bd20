"""Tests for content conversion to JSON text."""

import pytest

from auditrecord.audit import ContentConversionError
from auditrecord.audit.content import convert_map_to_json, convert_to_json


class TestConvertToJson:
    """Tests for media type conversion."""

    def test_json_compacted(self):
        """Test that JSON is re-emitted without whitespace."""
        content = b'{\n  "name": "alice",\n  "roles": ["admin"]\n}'
        assert convert_to_json(content, "application/json") == '{"name":"alice","roles":["admin"]}'

    def test_media_type_parameters_ignored(self):
        """Test that charset parameters do not affect detection."""
        assert convert_to_json(b'{"a": 1}', "Application/JSON; charset=UTF-8") == '{"a":1}'

    def test_json_suffix(self):
        """Test structured +json media types."""
        assert convert_to_json(b'{"a": 1}', "application/vnd.api+json") == '{"a":1}'

    def test_text_input(self):
        """Test already decoded content."""
        assert convert_to_json('{"a": "é"}', "application/json") == '{"a":"é"}'

    def test_yaml(self):
        """Test YAML content conversion."""
        content = b"admin:\n  hash: abc\n  reserved: true\n"
        assert convert_to_json(content, "application/yaml") == '{"admin":{"hash":"abc","reserved":true}}'

    def test_ndjson(self):
        """Test newline-delimited JSON is converted per line."""
        content = b'{"index": {"_id": "1"}}\n\n{"field": 1}\n'
        assert convert_to_json(content, "application/x-ndjson") == '{"index":{"_id":"1"}}\n{"field":1}'

    def test_invalid_json(self):
        """Test error for malformed JSON."""
        with pytest.raises(ContentConversionError) as exc_info:
            convert_to_json(b'{"a":', "application/json")
        assert exc_info.value.media_type == "application/json"
        assert "Invalid JSON" in str(exc_info.value)

    def test_yaml_not_json_compatible(self):
        """Test error for YAML values JSON cannot represent."""
        with pytest.raises(ContentConversionError, match="not JSON compatible"):
            convert_to_json(b"released: 2024-01-01\n", "application/yaml")

    def test_invalid_utf8(self):
        """Test error for undecodable bytes."""
        with pytest.raises(ContentConversionError, match="UTF-8"):
            convert_to_json(b"\xff\xfe", "application/json")

    def test_content_not_bytes(self):
        """Test error for content that is neither bytes nor text."""
        with pytest.raises(ContentConversionError, match="not bytes or text"):
            convert_to_json(None, "application/json")

    def test_nesting_too_deep(self):
        """Test error for JSON nested beyond the parser's limit."""
        with pytest.raises(ContentConversionError, match="Invalid JSON"):
            convert_to_json(b"[" * 100000 + b"]" * 100000, "application/json")

    @pytest.mark.parametrize("media_type", ["text/plain", "application/octet-stream", ""])
    def test_unsupported_media_type(self, media_type):
        """Test error for media types without a converter."""
        with pytest.raises(ContentConversionError, match="Unsupported media type"):
            convert_to_json(b"hello", media_type)


class TestConvertMapToJson:
    """Tests for mapping conversion."""

    def test_mapping(self):
        """Test compact JSON from a mapping, keeping key order."""
        assert convert_map_to_json({"b": 1, "a": [True, None]}) == '{"b":1,"a":[true,null]}'

    def test_not_serializable(self):
        """Test error for values JSON cannot represent."""
        with pytest.raises(ContentConversionError) as exc_info:
            convert_map_to_json({"when": object()})
        assert exc_info.value.media_type is None
