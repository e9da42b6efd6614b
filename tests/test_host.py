"""
Unit tests for host sanitization and classification in social.graze.webfinger.host

Tests cover path/query stripping, private IPv4 and IPv6 ranges, host:port
versus IPv6 disambiguation and fail-closed handling of malformed hosts.
"""

import ipaddress

import pytest

from social.graze.webfinger.errors import ValidationException
from social.graze.webfinger.host import (
    HostParts,
    is_localhost,
    is_private_address,
    is_private_ip,
    parse_ip_literal,
    sanitize_host,
    split_host,
)


class TestSanitizeHost:
    """Test suite for sanitize_host."""

    def test_strips_path_query_and_fragment(self):
        assert sanitize_host("host/evil?x#y") == "host"

    def test_keeps_port(self):
        assert sanitize_host("localhost:7000/admin/restricted") == "localhost:7000"

    def test_plain_host_unchanged(self):
        assert sanitize_host("example.com") == "example.com"

    def test_rejects_space(self):
        with pytest.raises(ValidationException, match="invalid characters in host"):
            sanitize_host("host with space")

    @pytest.mark.parametrize(
        "raw", ["example.com?x", "example.com#fragment", "evil@10.0.0.1", "a\\b", "a\tb"]
    )
    def test_rejects_invalid_characters(self, raw):
        with pytest.raises(ValidationException, match="invalid characters in host"):
            sanitize_host(raw)

    def test_rejects_empty(self):
        with pytest.raises(ValidationException, match="invalid host format"):
            sanitize_host("/admin")

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("127\u30020\u30020\u30021", "127.0.0.1"),
            ("127\uff0e0\uff0e0\uff0e1:8080", "127.0.0.1:8080"),
            ("b\u00fccher.example", "xn--bcher-kva.example"),
            ("B\u00dcCHER.example/path", "xn--bcher-kva.example"),
        ],
    )
    def test_internationalized_names_converted(self, raw, expected):
        assert sanitize_host(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "b\u00fccher..example",
            "example.com:\uff18\uff10",
            "[\u00fc::1]",
            "bad_host!",
            "exa%mple.com",
        ],
    )
    def test_malformed_names_rejected(self, raw):
        with pytest.raises(ValidationException, match="invalid host format"):
            sanitize_host(raw)


class TestSplitHost:
    """Test suite for host:port and IPv6 disambiguation."""

    def test_bare_hostname(self):
        assert split_host("example.com") == HostParts("example.com", None, False)

    def test_hostname_with_port(self):
        assert split_host("example.com:8080") == HostParts("example.com", 8080, False)

    def test_ipv4_with_port(self):
        assert split_host("127.0.0.1:3000") == HostParts("127.0.0.1", 3000, False)

    def test_bracketed_ipv6(self):
        assert split_host("[::1]") == HostParts("::1", None, True)

    def test_bracketed_ipv6_with_port(self):
        assert split_host("[::1]:8080") == HostParts("::1", 8080, True)

    def test_bare_ipv6(self):
        assert split_host("fe80::1") == HostParts("fe80::1", None, True)

    @pytest.mark.parametrize(
        "host",
        [
            "example.com:abc",
            "example.com:99999x",
            "localhost:notaport",
            "example.com:",
            "example.com:70000",
            "example.com:0",
            "[::1]8080",
            "[::1",
            "[]",
            "bad_host!:80",
            "bad_host!",
        ],
    )
    def test_malformed_hosts_fail_closed(self, host):
        with pytest.raises(ValidationException, match="invalid host format"):
            split_host(host)


class TestParseIpLiteral:
    """Test suite for strict IP literal parsing."""

    def test_hostname_is_not_literal(self):
        assert parse_ip_literal("example.com") is None

    def test_ipv4_literal(self):
        assert parse_ip_literal("8.8.8.8:53") == ipaddress.IPv4Address("8.8.8.8")

    def test_ipv6_literal(self):
        assert parse_ip_literal("[2001:db8::1]") == ipaddress.IPv6Address("2001:db8::1")

    @pytest.mark.parametrize(
        "host",
        [
            "256.256.256.256",
            "192.168.1.300",
            "192.168.999.1",
            "999.168.1.1",
            "1000.1.1.1",
            "127.1",
            "127.1:8080",
            "010.0.0.1",
            "gggg::1",
        ],
    )
    def test_invalid_literals_fail_closed(self, host):
        with pytest.raises(ValidationException, match="invalid host format"):
            parse_ip_literal(host)


class TestIsPrivateAddress:
    """Test suite for is_private_address."""

    @pytest.mark.parametrize(
        "host",
        [
            "localhost",
            "LOCALHOST",
            "localhost:8080",
            "localhost.",
            "localhost.localdomain",
            "localhost.localdomain:3000",
            "127.0.0.1",
            "127.0.0.2",
            "127.255.255.255",
            "127.0.0.1:3000",
            "::1",
            "[::1]",
            "[::1]:8080",
            "10.0.0.1",
            "10.255.255.255",
            "172.16.0.1",
            "172.31.255.255",
            "192.168.0.1",
            "192.168.255.255",
            "169.254.0.1",
            "169.254.169.254",
            "224.0.0.1",
            "239.255.255.255",
            "240.0.0.1",
            "255.255.255.255",
            "0.0.0.0",
            "fc00::1",
            "fd00::1",
            "[fd12:3456:789a::1]",
            "fe80::1",
            "[fe80::1]",
            "ff02::1",
            "::ffff:127.0.0.1",
            "::",
        ],
    )
    def test_private_hosts(self, host):
        assert is_private_address(host) is True

    def test_internationalized_loopback_is_private(self):
        assert is_private_address(sanitize_host("127\u30020\u30020\u30021")) is True

    @pytest.mark.parametrize(
        "host",
        [
            "8.8.8.8",
            "example.com",
            "github.com",
            "example.com:443",
            "172.15.255.255",
            "172.32.0.1",
            "192.169.0.1",
            "223.255.255.255",
            "2001:4860:4860::8888",
            "[2606:4700::1111]:443",
        ],
    )
    def test_public_hosts(self, host):
        assert is_private_address(host) is False

    def test_non_numeric_port_raises(self):
        """A malformed port must never be silently approved."""
        with pytest.raises(ValidationException, match="invalid host format"):
            is_private_address("example.com:abc")


class TestIsPrivateIp:
    def test_ipv4_mapped_public(self):
        assert is_private_ip(ipaddress.IPv6Address("::ffff:8.8.8.8")) is False

    def test_ipv4_mapped_private(self):
        assert is_private_ip(ipaddress.IPv6Address("::ffff:10.0.0.1")) is True


class TestIsLocalhost:
    def test_localhost_forms(self):
        assert is_localhost("localhost") is True
        assert is_localhost("localhost:8001") is True
        assert is_localhost("localhost.localdomain") is True

    def test_other_hosts(self):
        assert is_localhost("127.0.0.1") is False
        assert is_localhost("localhost.example.com") is False
        assert is_localhost("notlocalhost") is False
