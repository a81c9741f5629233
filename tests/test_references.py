from core.references import extract_reference, normalize_handle, reference_from_url


def test_extracts_first_link_from_free_text() -> None:
    text = "look at this https://x.com/NASA/status/123?s=20 and https://x.com/esa/status/9"

    reference = extract_reference(text)

    assert reference is not None
    assert reference.author_handle == "NASA"
    assert reference.status_id == "123"
    assert reference.platform_url == "https://x.com/NASA/status/123"


def test_accepts_legacy_and_mobile_hosts() -> None:
    for url in (
        "https://twitter.com/nasa/status/1",
        "http://www.twitter.com/nasa/status/1",
        "https://mobile.twitter.com/nasa/status/1",
        "HTTPS://X.COM/nasa/status/1",
    ):
        reference = reference_from_url(url)
        assert reference is not None, url
        assert reference.canonical_url == "https://x.com/nasa/status/1"


def test_ignores_non_post_links() -> None:
    assert extract_reference("") is None
    assert extract_reference("https://x.com/nasa") is None
    assert extract_reference("https://example.com/nasa/status/1") is None
    assert reference_from_url("not a link") is None


def test_normalize_handle_strips_at_and_case() -> None:
    assert normalize_handle("  @NASA ") == "nasa"
    assert normalize_handle("esa") == "esa"
    assert normalize_handle("@") == ""
