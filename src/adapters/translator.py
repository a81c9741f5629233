"""Translation adapter backed by the public Google Translate endpoint.

Implements TranslatorPort. The ``gtx`` client endpoint needs no API key and
returns a nested JSON array; only the sentence chunks and the detected
source language are read from it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from core.errors import TranslationError

LOGGER = logging.getLogger(__name__)

ENDPOINT = "https://translate.googleapis.com/translate_a/single"


def parse_translation(payload: Any, target_language: str) -> Optional[str]:
    """Return the translated text, or None when the text is already in the target language."""

    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise TranslationError("Unexpected translation payload")

    detected = payload[2] if len(payload) > 2 and isinstance(payload[2], str) else None
    if detected and detected.split("-")[0].lower() == target_language.split("-")[0].lower():
        return None

    chunks = [chunk[0] for chunk in payload[0] if isinstance(chunk, list) and chunk and isinstance(chunk[0], str)]
    translated = "".join(chunks).strip()
    return translated or None


class GoogleTranslator:
    """Best-effort translator; raises TranslationError, never anything else."""

    def __init__(self, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._timeout = timeout
        self._transport = transport

    async def translate(self, text: str, target_language: str) -> Optional[str]:
        if not text.strip():
            return None
        params = {"client": "gtx", "sl": "auto", "tl": target_language, "dt": "t", "q": text}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(ENDPOINT, params=params)
        except httpx.HTTPError as exc:
            raise TranslationError(f"Translation request failed: {exc}") from exc

        if response.status_code >= 400:
            raise TranslationError(f"HTTP {response.status_code} from translation service")
        try:
            payload = response.json()
        except ValueError as exc:
            raise TranslationError("Translation service returned invalid JSON") from exc

        translated = parse_translation(payload, target_language)
        if translated is None:
            LOGGER.debug("Text already in %s, no translation needed", target_language)
        return translated
