# tests/application/services/test_request_builder.py
import pytest

from application.services.request_builder import RequestTemplate, parse_header, parse_url
from domain.exceptions import ValidationError


class TestParseUrl:
    def test_defaults_to_https(self):
        assert parse_url("example.com/path?q=1") == "https://example.com/path?q=1"

    def test_port_80_defaults_to_http(self):
        assert parse_url("example.com:80/") == "http://example.com:80/"

    def test_explicit_scheme_kept(self):
        assert parse_url("http://example.com") == "http://example.com"

    def test_scheme_relative(self):
        assert parse_url("//example.com/x") == "https://example.com/x"

    def test_unsupported_scheme(self):
        with pytest.raises(ValidationError):
            parse_url("ftp://example.com/")

    def test_bad_port(self):
        with pytest.raises(ValidationError):
            parse_url("example.com:notaport/")


class TestParseHeader:
    def test_splits_and_trims(self):
        assert parse_header("Accept :  text/html") == ("Accept", "text/html")

    def test_value_may_contain_colon(self):
        assert parse_header("Referer: http://a/b") == ("Referer", "http://a/b")

    def test_missing_colon(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_header("Accept text/html")

        assert exc_info.value.message == "Header 'Accept text/html' has invalid format, missing ':'"


class TestRequestTemplate:
    def test_host_header_becomes_override(self):
        template = RequestTemplate.from_arguments("get", ["Host: internal.example", "Accept: */*"])

        request = template.build("https://10.0.0.1/")

        assert request.method == "GET"
        assert request.host_override == "internal.example"
        assert "Host" not in request.headers
        assert request.headers.get("Accept") == "*/*"

    def test_repeated_headers_accumulate(self):
        template = RequestTemplate.from_arguments("GET", ["Range: bytes=0-1", "range: bytes=4-5"])

        assert template.headers.get_all("Range") == ["bytes=0-1", "bytes=4-5"]

    def test_build_gives_fresh_request_per_url(self):
        template = RequestTemplate.from_arguments("POST", [], data="x=1")

        first, second = template.build("https://a/"), template.build("https://b/")

        assert first.url != second.url
        assert first.body == second.body
