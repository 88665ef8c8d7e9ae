"""Tests for device URL helpers and grouping by server."""

import logging

import pytest

from barkpush.models.push import Authorization, Device
from barkpush.services.device_grouping import (
    device_from_api_url,
    format_api_url,
    get_origin,
    group_by_server,
    parse_api_url,
    validate_api_url,
)


class TestApiUrls:
    def test_format_adds_scheme_and_slash(self):
        assert format_api_url("api.day.app/KEY") == "https://api.day.app/KEY/"
        assert format_api_url("http://bark.local/KEY/") == "http://bark.local/KEY/"

    @pytest.mark.parametrize(
        ("url", "valid"),
        [
            ("https://api.day.app/KEY/", True),
            ("api.day.app/KEY", True),
            ("http://10.0.0.2:8080/KEY", True),
            ("https://api.day.app/", False),
            ("https://api.day.app", False),
            ("ftp://api.day.app/KEY/", False),
        ],
    )
    def test_validate(self, url, valid):
        assert validate_api_url(url) is valid

    def test_get_origin(self):
        assert get_origin("https://bark.example.com:8443/KEY/") == "https://bark.example.com:8443"

    def test_get_origin_requires_scheme(self):
        with pytest.raises(ValueError, match="no origin"):
            get_origin("KEY/")

    def test_parse_api_url(self):
        assert parse_api_url("https://api.day.app/KEY123/") == ("https://api.day.app", "KEY123")

    def test_parse_api_url_keeps_sub_path(self):
        server, key = parse_api_url("https://example.com/bark/KEY123")
        assert server == "https://example.com/bark"
        assert key == "KEY123"

    def test_parse_api_url_without_path(self):
        assert parse_api_url("https://api.day.app/") == (None, None)

    def test_device_from_api_url(self):
        auth = Authorization.basic("user", "pwd")
        device = device_from_api_url("api.day.app/KEY123", authorization=auth, alias="phone")

        assert device.api_url == "https://api.day.app/KEY123/"
        assert device.server == "https://api.day.app"
        assert device.device_key == "KEY123"
        assert device.authorization == auth
        assert device.alias == "phone"


class TestGroupByServer:
    def test_groups_in_first_seen_order(self):
        a1 = Device(api_url="https://a.test/K1/", server="https://a.test", device_key="K1")
        b1 = Device(api_url="https://b.test/K2/", server="https://b.test", device_key="K2")
        a2 = Device(api_url="https://a.test/K3/", server="https://a.test", device_key="K3")

        groups = group_by_server([a1, b1, a2])

        assert list(groups) == ["https://a.test", "https://b.test"]
        assert groups["https://a.test"] == [a1, a2]
        assert groups["https://b.test"] == [b1]

    def test_servers_compared_as_exact_strings(self):
        d1 = Device(api_url="https://a.test/K1/", server="https://a.test")
        d2 = Device(api_url="https://a.test/K2/", server="https://a.test/")

        assert len(group_by_server([d1, d2])) == 2

    def test_every_device_appears_exactly_once(self):
        devices = [
            Device(api_url=f"https://s{i % 3}.test/K{i}/", server=f"https://s{i % 3}.test")
            for i in range(10)
        ]

        groups = group_by_server(devices)

        grouped = [device for members in groups.values() for device in members]
        assert sorted(d.api_url for d in grouped) == sorted(d.api_url for d in devices)

    def test_serverless_devices_are_skipped(self, caplog):
        good = Device(api_url="https://a.test/K1/", server="https://a.test")
        orphan = Device(id="dev-2", alias="old phone", api_url="https://a.test/K2/")

        with caplog.at_level(logging.WARNING):
            groups = group_by_server([good, orphan])

        assert groups == {"https://a.test": [good]}
        assert "Skipping device without server address" in caplog.text

    def test_empty(self):
        assert group_by_server([]) == {}
