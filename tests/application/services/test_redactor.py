# tests/application/services/test_redactor.py
from application.services.redactor import mask_headers, mask_pairs, mask_value
from domain.exchange import HeaderMap


class TestMaskValue:
    def test_mask_authorization(self):
        assert mask_value("authorization", "Bearer token123") == "********"

    def test_mask_proxy_authorization(self):
        assert mask_value("Proxy-Authorization", "Basic abc") == "********"

    def test_mask_cookie(self):
        assert mask_value("cookie", "session=abc123") == "********"

    def test_mask_set_cookie(self):
        assert mask_value("set-cookie", "session=xyz789") == "********"

    def test_mask_case_insensitive(self):
        assert mask_value("X-API-KEY", "k") == "********"
        assert mask_value("COOKIE", "data") == "********"

    def test_no_mask_regular_key(self):
        assert mask_value("accept", "text/html") == "text/html"

    def test_mask_none_value(self):
        assert mask_value("authorization", None) is None


class TestMaskPairs:
    def test_mask_pairs_with_sensitive_data(self):
        pairs = [("Server", ["nginx"]), ("Set-Cookie", ["a=1", "b=2"])]

        assert mask_pairs(pairs) == [("Server", ["nginx"]), ("Set-Cookie", "********")]

    def test_mask_pairs_empty_list(self):
        assert mask_pairs([]) == []


def test_mask_headers():
    headers = HeaderMap().add("Authorization", "Bearer t").add("Accept", "*/*")

    assert mask_headers(headers) == {"Authorization": "********", "Accept": ["*/*"]}
