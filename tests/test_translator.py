import asyncio

import httpx
import pytest

from adapters.translator import GoogleTranslator, parse_translation
from core.errors import TranslationError


def test_parse_translation_joins_sentence_chunks() -> None:
    payload = [[["Hallo ", "Hello ", None], ["Welt", "world", None]], None, "en"]

    assert parse_translation(payload, "de") == "Hallo Welt"


def test_parse_translation_skips_text_already_in_target_language() -> None:
    payload = [[["Hallo", "Hallo", None]], None, "de"]

    assert parse_translation(payload, "de-DE") is None


def test_parse_translation_rejects_unexpected_shapes() -> None:
    with pytest.raises(TranslationError):
        parse_translation({"error": "quota"}, "de")


def test_translate_calls_endpoint_with_target_language() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=[[["Despegue", "Liftoff", None]], None, "en"])

    translator = GoogleTranslator(transport=httpx.MockTransport(handler))

    assert asyncio.run(translator.translate("Liftoff", "es")) == "Despegue"
    assert seen["tl"] == "es"
    assert seen["q"] == "Liftoff"


def test_translate_wraps_http_failures() -> None:
    translator = GoogleTranslator(transport=httpx.MockTransport(lambda request: httpx.Response(429)))

    with pytest.raises(TranslationError, match="HTTP 429"):
        asyncio.run(translator.translate("Liftoff", "es"))
