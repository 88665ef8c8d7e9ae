"""Tests for push model validation."""

import pytest
from pydantic import ValidationError

from barkpush.models.push import Device, PushRequest

API_URL = "https://x.test/KEY123/"


class TestApiUrl:
    @pytest.mark.parametrize("url", ["x.test/KEY123/", "ftp://x.test/KEY123/", "https:///KEY/"])
    def test_request_rejects_url_without_http_origin(self, url):
        with pytest.raises(ValidationError, match="api_url"):
            PushRequest(message="hi", api_url=url)

    def test_request_accepts_http_and_https(self):
        assert PushRequest(message="hi", api_url="http://x.test/K/").api_url == "http://x.test/K/"
        assert PushRequest(message="hi", api_url="HTTPS://x.test/K/").api_url == "HTTPS://x.test/K/"

    def test_device_rejects_url_without_scheme(self):
        with pytest.raises(ValidationError, match="api_url"):
            Device(api_url="a.test/K1/", server="https://a.test", device_key="K1")

    def test_device_rejects_server_without_scheme(self):
        with pytest.raises(ValidationError, match="server"):
            Device(api_url="https://b.test/K2/", server="b.test", device_key="K2")

    @pytest.mark.parametrize("server", [None, ""])
    def test_device_server_may_be_absent(self, server):
        assert Device(api_url="https://b.test/K2/", server=server).server == server

    def test_device_server_may_keep_sub_path(self):
        device = Device(api_url="https://b.test/bark/K2/", server="https://b.test/bark")
        assert device.server == "https://b.test/bark"


class TestVolume:
    @pytest.mark.parametrize("volume", [0, 5, 10, "7", " 3 "])
    def test_accepts_zero_to_ten(self, volume):
        request = PushRequest(message="hi", api_url=API_URL, volume=volume)
        assert request.volume is not None

    def test_numeric_string_is_stripped(self):
        assert PushRequest(message="hi", api_url=API_URL, volume=" 3 ").volume == "3"

    @pytest.mark.parametrize("volume", [-1, 11, 99, "11", "loud", "-1", ""])
    def test_rejects_out_of_range_or_non_numeric(self, volume):
        with pytest.raises(ValidationError, match="volume"):
            PushRequest(message="hi", api_url=API_URL, volume=volume)

    def test_absent_volume(self):
        assert PushRequest(message="hi", api_url=API_URL).volume is None
