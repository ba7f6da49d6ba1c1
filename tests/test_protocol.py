"""Tests for outbound command builders."""

from __future__ import annotations

from focusrite_control.protocol import (
    build_client_details,
    build_device_subscribe,
    build_keep_alive,
    build_set,
    format_value,
)
from focusrite_control.xmldoc import parse_document


class TestFormatValue:
    """Tests for format_value()."""

    def test_booleans(self):
        assert format_value(True) == "true"
        assert format_value(False) == "false"

    def test_numbers_and_strings_pass_through(self):
        assert format_value(-6) == "-6"
        assert format_value(32768) == "32768"
        assert format_value("Line") == "Line"


class TestBuilders:
    """Tests for message builders."""

    def test_client_details(self):
        """Test handshake carries host label and client key."""
        body = build_client_details(hostname="studio-pc", client_key="abc-123")
        assert body == '<client-details hostname="studio-pc" client-key="abc-123"/>'

    def test_keep_alive(self):
        assert build_keep_alive() == "<keep-alive/>"

    def test_device_subscribe(self):
        assert build_device_subscribe(device_id="1") == '<device-subscribe devid="1"/>'

    def test_set(self):
        """Test set command holds exactly one item."""
        body = build_set(device_id="1", item_id="5", value=True)
        assert body == '<set devid="1"><item id="5" value="true"/></set>'

    def test_attribute_escaping(self):
        """Test attribute values are escaped and survive a parse."""
        body = build_client_details(hostname='Bob\'s "Mac" <&>', client_key="k")
        root = parse_document(body)
        assert root.get("hostname") == 'Bob\'s "Mac" <&>'
