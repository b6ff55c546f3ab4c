"""
Challenge Page Builder

Builds the minimal HTML page that is served in place of the target URL.
The page only loads the Turnstile API script and holds one widget, so
the challenge renders against the target origin without fetching it.
"""

from html import escape
from typing import Optional

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Turnstile Solver</title>
    <script src="https://challenges.cloudflare.com/turnstile/v0/api.js" async></script>
</head>
<body>
    <!-- cf turnstile -->
</body>
</html>
"""

WIDGET_PLACEHOLDER = "<!-- cf turnstile -->"


def normalize_url(url: str) -> str:
    """Append the trailing slash the interception pattern is matched against."""
    return url if url.endswith("/") else url + "/"


def build_widget(sitekey: str, action: Optional[str] = None, cdata: Optional[str] = None) -> str:
    attributes = [
        'class="cf-turnstile"',
        'style="background: white;"',
        f'data-sitekey="{escape(sitekey, quote=True)}"',
    ]
    if action:
        attributes.append(f'data-action="{escape(action, quote=True)}"')
    if cdata:
        attributes.append(f'data-cdata="{escape(cdata, quote=True)}"')
    return f"<div {' '.join(attributes)}></div>"


def build_challenge_page(
    sitekey: str,
    action: Optional[str] = None,
    cdata: Optional[str] = None
) -> str:
    """
    Render the challenge page for one task.

    Args:
        sitekey: Turnstile site key of the target site
        action: Optional data-action value
        cdata: Optional data-cdata value

    Returns:
        str: Complete HTML document
    """
    return HTML_TEMPLATE.replace(WIDGET_PLACEHOLDER, build_widget(sitekey, action, cdata))
