"""
Unit Tests for Proxy List Support

Tests for parse_proxy line formats and ProxyPool selection.
"""

import random

import pytest

from services.browser.proxies import ProxyPool, ProxySettings, parse_proxy


# =============================================================================
# Line Parsing
# =============================================================================

class TestParseProxy:
    """Tests for the accepted proxy list formats."""

    def test_host_port_defaults_to_http(self):
        assert parse_proxy("10.0.0.1:8080") == ProxySettings(server="http://10.0.0.1:8080")

    def test_scheme_host_port(self):
        proxy = parse_proxy("socks5:10.0.0.1:1080")

        assert proxy == ProxySettings(server="socks5://10.0.0.1:1080")
        assert proxy.to_dict() == {"server": "socks5://10.0.0.1:1080"}

    def test_with_credentials(self):
        proxy = parse_proxy("http:proxy.local:3128:alice:s3cret\n")

        assert proxy.to_dict() == {
            "server": "http://proxy.local:3128",
            "username": "alice",
            "password": "s3cret",
        }

    @pytest.mark.parametrize("line", [
        "",
        "just-a-host",
        "http:host:80:user",
        "a:b:c:d:e:f",
        "http::8080",
        "host:",
    ])
    def test_malformed_lines_are_rejected(self, line):
        assert parse_proxy(line) is None


# =============================================================================
# ProxyPool
# =============================================================================

class TestProxyPool:
    """Tests for picking a proxy per task."""

    async def test_missing_file_means_no_proxy(self, tmp_path):
        pool = ProxyPool(tmp_path / "missing.txt")

        assert await pool.load() == []
        assert await pool.choose() is None

    async def test_empty_file_means_no_proxy(self, tmp_path):
        path = tmp_path / "proxies.txt"
        path.write_text("\n   \n", encoding="utf-8")

        assert await ProxyPool(path).choose() is None

    async def test_load_skips_blank_lines(self, tmp_path):
        path = tmp_path / "proxies.txt"
        path.write_text("1.1.1.1:80\n\n  2.2.2.2:81  \n", encoding="utf-8")

        assert await ProxyPool(path).load() == ["1.1.1.1:80", "2.2.2.2:81"]

    async def test_choose_picks_from_list(self, tmp_path):
        path = tmp_path / "proxies.txt"
        path.write_text("1.1.1.1:80\nhttp:2.2.2.2:81:u:p\n", encoding="utf-8")
        pool = ProxyPool(path, rng=random.Random(7))

        servers = {(await pool.choose()).server for _ in range(30)}

        assert servers == {"http://1.1.1.1:80", "http://2.2.2.2:81"}

    async def test_malformed_entry_means_no_proxy(self, tmp_path):
        path = tmp_path / "proxies.txt"
        path.write_text("not-a-proxy\n", encoding="utf-8")

        assert await ProxyPool(path).choose() is None

    async def test_undecodable_file_means_no_proxy(self, tmp_path):
        path = tmp_path / "proxies.txt"
        path.write_bytes(b"\xff\xfe1.1.1.1:80\n")

        assert await ProxyPool(path).choose() is None

    async def test_file_is_reread_on_every_choice(self, tmp_path):
        path = tmp_path / "proxies.txt"
        path.write_text("1.1.1.1:80\n", encoding="utf-8")
        pool = ProxyPool(path)
        assert (await pool.choose()).server == "http://1.1.1.1:80"

        path.write_text("9.9.9.9:99\n", encoding="utf-8")

        assert (await pool.choose()).server == "http://9.9.9.9:99"
