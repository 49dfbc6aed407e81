# tests/unit/test_build_gsc.py
from __future__ import annotations

from brochure.build.gsc import inject_verification

PAGE = """<head>
    <link rel="canonical" href="https://logia.co.za/">
    <!-- Google Search Console Verification -->
    <!-- Example: <meta name="google-site-verification" content="..." /> -->
    <title>Logia</title>
</head>"""


def test_placeholder_replaced_with_tag():
    out = inject_verification(PAGE, "abc123")
    assert '<meta name="google-site-verification" content="abc123" />' in out
    assert "Example:" not in out
    assert "<title>Logia</title>" in out


def test_no_code_removes_placeholder():
    out = inject_verification(PAGE, None)
    assert "Google Search Console" not in out
    assert "google-site-verification" not in out
    assert "<title>Logia</title>" in out


def test_without_placeholder_tag_goes_after_canonical():
    page = '<head>\n    <link rel="canonical" href="https://logia.co.za/">\n    <title>x</title>\n</head>'
    out = inject_verification(page, "xyz")
    canonical_at = out.index('rel="canonical"')
    tag_at = out.index('content="xyz"')
    assert tag_at > canonical_at
    assert out.count("google-site-verification") == 1


def test_code_is_attribute_escaped():
    out = inject_verification(PAGE, 'a"><script>')
    assert "<script>" not in out
    assert 'content="a&quot;&gt;&lt;script&gt;"' in out


def test_page_without_placeholder_or_canonical_unchanged():
    page = "<head><title>x</title></head>"
    assert inject_verification(page, "abc") == page
    assert inject_verification(page, "") == page
