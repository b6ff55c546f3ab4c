"""
Unit Tests for the Challenge Page Builder
"""

from services.turnstile.page import build_challenge_page, build_widget, normalize_url


def test_normalize_url_adds_trailing_slash():
    assert normalize_url("https://example.com") == "https://example.com/"
    assert normalize_url("https://example.com/") == "https://example.com/"


def test_page_loads_turnstile_script():
    page = build_challenge_page("0xKEY")

    assert "challenges.cloudflare.com/turnstile/v0/api.js" in page
    assert '<div class="cf-turnstile" style="background: white;" data-sitekey="0xKEY"></div>' in page
    assert "<!-- cf turnstile -->" not in page


def test_optional_attributes_only_when_given():
    widget = build_widget("0xKEY")

    assert "data-action" not in widget
    assert "data-cdata" not in widget


def test_attributes_are_escaped():
    widget = build_widget('key"><script>', action="a&b", cdata="<x>")

    assert 'data-sitekey="key&quot;&gt;&lt;script&gt;"' in widget
    assert 'data-action="a&amp;b"' in widget
    assert 'data-cdata="&lt;x&gt;"' in widget
    assert "<script>" not in widget
