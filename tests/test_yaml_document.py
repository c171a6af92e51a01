# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the YAML document query and mutation API
"""

import pytest

from acp.core.errors import MissingKeyError, ParseError
from acp.yaml import YamlDocument, init_document, parse_path


PACKAGE_YAML = """\
name: demo
version: 1.0.0  # released
tags:
  - agents
  - patterns
  - "quoted: tag"
contents:
  commands:
    - name: deploy.md
      description: Deploy the service
    - name: test.md
  patterns:
    - name: only.md
  designs: []
after: value
"""


@pytest.fixture
def document():
    return YamlDocument.from_text(PACKAGE_YAML)


class TestQueries:
    """Test suite for read, get_array and get_nested"""

    def test_read_scalar(self, document):
        """Test reading top-level and nested scalars"""
        assert document.read("name") == "demo"
        assert document.read("version") == "1.0.0"

    def test_read_plain_scalar_with_apostrophe(self):
        """Test an apostrophe inside a plain value"""
        document = YamlDocument.from_text("name: demo\ndescription: Rock 'n roll patterns\n")

        assert document.read("description") == "Rock 'n roll patterns"

    def test_read_missing_key(self, document):
        """Test absent keys read as None"""
        assert document.read("missing") is None
        assert document.read("contents.missing") is None

    def test_read_non_scalar(self, document):
        """Test reading a mapping yields None"""
        assert document.read("contents") is None

    def test_get_array_scalar_values_in_order(self, document):
        """Test scalar arrays return their values in document order"""
        assert document.get_array("tags") == ["agents", "patterns", "quoted: tag"]

    def test_get_array_object_count_within_span(self, document):
        """Test object arrays report only the entries inside their own span"""
        assert document.get_array("contents.commands") == 2
        assert document.get_array("contents.patterns") == 1

    def test_get_array_empty_and_missing(self, document):
        """Test empty and absent arrays"""
        assert document.get_array("contents.designs") == []
        assert document.get_array("missing") == []
        assert document.get_array("name") == []

    def test_get_nested_indexed(self, document):
        """Test indexed paths into object arrays"""
        assert document.get_nested("contents.commands[0].name") == "deploy.md"
        assert document.get_nested("contents.commands[0].description") == "Deploy the service"
        assert document.get_nested("contents.commands[1].name") == "test.md"

    def test_get_nested_out_of_range(self, document):
        """Test out-of-range indexes and missing fields"""
        assert document.get_nested("contents.commands[5].name") is None
        assert document.get_nested("contents.commands[1].description") is None

    def test_get_objects(self, document):
        """Test object entries are returned as mappings"""
        objects = document.get_objects("contents.commands")

        assert [item.get("name").value for item in objects] == ["deploy.md", "test.md"]

    def test_has_key(self, document):
        """Test key presence"""
        assert document.has_key("contents.patterns")
        assert not document.has_key("contents.nothing")

    def test_parse_path(self):
        """Test dotted path parsing"""
        assert parse_path("a.b[2].c") == [("a", None), ("b", 2), ("c", None)]
        with pytest.raises(ValueError):
            parse_path("a..b")


class TestMutation:
    """Test suite for write, remove and save"""

    def test_write_replaces_value_keeps_comment(self, document):
        """Test write keeps the inline comment and everything else"""
        document.write("version", "1.1.0")
        text = document.to_text()

        assert "version: 1.1.0 # released" in text
        assert document.read("name") == "demo"
        assert text.count("\n") == PACKAGE_YAML.count("\n")

    def test_write_quoted_value(self, document):
        """Test a quoted argument is written quoted"""
        document.write("name", '"demo: two"')

        assert document.read("name") == "demo: two"
        assert 'name: "demo: two"' in document.to_text()

    def test_write_indexed(self, document):
        """Test writing into an object array entry"""
        document.write("contents.commands[1].name", "renamed.md")

        assert document.get_nested("contents.commands[1].name") == "renamed.md"

    def test_write_missing_key(self, document):
        """Test writing an absent key fails"""
        with pytest.raises(MissingKeyError, match="Key does not exist: nope"):
            document.write("nope", "x")

    def test_write_non_scalar(self, document):
        """Test writing over a mapping fails"""
        with pytest.raises(ParseError):
            document.write("contents", "x")

    def test_remove(self, document):
        """Test removing a top-level key"""
        assert document.remove("after")
        assert "after" not in document.to_text()
        assert not document.remove("after")

    def test_save_and_load(self, temp_dir, document):
        """Test documents survive a save and reload"""
        path = temp_dir / "package.yaml"
        document.save(path)

        reloaded = YamlDocument.load(path)
        assert reloaded.to_text() == document.to_text()
        assert reloaded.get_array("contents.commands") == 2

    def test_save_without_path(self, document):
        """Test saving a document that has no path"""
        with pytest.raises(ValueError, match="No path"):
            document.save()

    def test_load_not_utf8(self, temp_dir):
        """Test undecodable bytes are a ParseError"""
        path = temp_dir / "package.yaml"
        path.write_bytes(b"name: caf\xe9\n")

        with pytest.raises(ParseError, match="not valid UTF-8"):
            YamlDocument.load(path)

    def test_init_document(self, temp_dir):
        """Test creating an empty document with a header"""
        path = temp_dir / "new.yaml"
        init_document(path, "Test file")

        assert path.read_text() == "# Test file\n"
        assert len(YamlDocument.load(path).root) == 0
