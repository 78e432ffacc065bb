"""Tests for client address resolution and normalization."""

from __future__ import annotations

from starlette.requests import Request

from ipfilter.addresses import get_client_ips, normalize_ip, resolve_client_ips


class TestNormalizeIp:
    def test_plain_ipv4_unchanged(self):
        assert normalize_ip("10.0.0.1") == "10.0.0.1"

    def test_plain_ipv6_unchanged(self):
        assert normalize_ip("::1") == "::1"
        assert normalize_ip("2001:db8::1") == "2001:db8::1"

    def test_ipv4_mapped_ipv6(self):
        assert normalize_ip("::ffff:127.0.0.1") == "127.0.0.1"
        assert normalize_ip("::FFFF:8.8.8.8") == "8.8.8.8"

    def test_expanded_ipv4_mapped_ipv6(self):
        assert normalize_ip("0:0:0:0:0:ffff:7f00:1") == "127.0.0.1"

    def test_compressed_hex_ipv4_mapped_ipv6(self):
        assert normalize_ip("::ffff:7f00:1") == "127.0.0.1"
        assert normalize_ip("::FFFF:0808:0808") == "8.8.8.8"

    def test_ipv4_with_port(self):
        assert normalize_ip("127.0.0.1:54321") == "127.0.0.1"

    def test_garbage_unchanged(self):
        assert normalize_ip("not-an-ip") == "not-an-ip"
        assert normalize_ip("") == ""


class TestResolveClientIps:
    def test_falls_back_to_remote_addr(self):
        assert resolve_client_ips({}, "10.0.0.1", ["x-forwarded-for"]) == ["10.0.0.1"]

    def test_headers_ignored_unless_allowed(self):
        headers = {"x-forwarded-for": "8.8.8.8"}
        assert resolve_client_ips(headers, "10.0.0.1") == ["10.0.0.1"]

    def test_splits_header_on_comma(self):
        headers = {"x-forwarded-for": "127.0.0.1,8.8.8.8"}
        assert resolve_client_ips(headers, "10.0.0.1", ["x-forwarded-for"]) == ["127.0.0.1", "8.8.8.8"]

    def test_split_does_not_trim(self):
        headers = {"x-forwarded-for": "127.0.0.1, 8.8.8.8"}
        assert resolve_client_ips(headers, None, ["x-forwarded-for"]) == ["127.0.0.1", " 8.8.8.8"]

    def test_first_non_empty_header_wins(self):
        headers = {"x-real-ip": "", "x-forwarded-for": "1.1.1.1", "x-client-ip": "2.2.2.2"}
        allowed = ["x-real-ip", "x-forwarded-for", "x-client-ip"]
        assert resolve_client_ips(headers, "10.0.0.1", allowed) == ["1.1.1.1"]

    def test_empty_headers_fall_back(self):
        headers = {"x-forwarded-for": ""}
        assert resolve_client_ips(headers, "10.0.0.1", ["x-forwarded-for"]) == ["10.0.0.1"]

    def test_no_address_at_all(self):
        assert resolve_client_ips({}, None, ["x-forwarded-for"]) == []

    def test_normalizes_each_candidate_in_order(self):
        headers = {"x-forwarded-for": "::ffff:127.0.0.1,10.0.0.2:8080,10.0.0.2"}
        assert resolve_client_ips(headers, None, ["x-forwarded-for"]) == [
            "127.0.0.1",
            "10.0.0.2",
            "10.0.0.2",
        ]


class TestGetClientIps:
    def _request(self, headers=None, client=("::ffff:10.1.2.3", 5000)):
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": client,
        }
        return Request(scope)

    def test_peer_address(self):
        assert get_client_ips(self._request()) == ["10.1.2.3"]

    def test_header_lookup_is_case_insensitive(self):
        request = self._request(headers={"X-Forwarded-For": "8.8.8.8"})
        assert get_client_ips(request, ["X-FORWARDED-FOR"]) == ["8.8.8.8"]

    def test_no_client(self):
        assert get_client_ips(self._request(client=None)) == []
