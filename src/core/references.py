"""Helpers for detecting and normalizing post references."""

from __future__ import annotations

import re
from typing import Optional

from core.models import PostReference

POST_URL_PATTERN = re.compile(
    r"https?://(?:www\.|mobile\.)?(?:twitter\.com|x\.com)/(\w{1,15})/status/(\d+)",
    re.IGNORECASE,
)


def normalize_handle(handle: str) -> str:
    """Return the handle without a leading ``@`` and lowercased."""

    return handle.strip().lstrip("@").lower()


def extract_reference(text: str) -> Optional[PostReference]:
    """Return the first post reference found in ``text``, if any."""

    if not text:
        return None
    match = POST_URL_PATTERN.search(text)
    if not match:
        return None
    return PostReference(
        platform_url=match.group(0),
        author_handle=match.group(1),
        status_id=match.group(2),
    )


def reference_from_url(url: str) -> Optional[PostReference]:
    """Parse a URL that is expected to be a bare post link."""

    return extract_reference(url.strip())
