"""Core configuration dataclasses and builders.

Reading config.json happens outside the core, but these dataclasses define
the shape the core expects and the builders turn raw dict blocks into them,
so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from core.errors import ConfigurationError
from core.references import normalize_handle

LOGGER = logging.getLogger(__name__)

PROFILE_PARSE = "parse"
PROFILE_PUSH = "push"
DELIVERY_METHODS = ("client", "bot")


@dataclass(frozen=True)
class TranslationOptions:
    """Translation settings applied to the post body."""

    enabled: bool
    target_language: str


@dataclass(frozen=True)
class ResolveOptions:
    """Snapshot of what the resolver should collect for one post."""

    include_source_link: bool = False
    include_screenshot: bool = True
    include_text: bool = True
    include_media: bool = True
    bundle_if_supported: bool = False
    translation: Optional[TranslationOptions] = None

    @property
    def translation_target(self) -> Optional[str]:
        if self.translation is None or not self.translation.enabled:
            return None
        return self.translation.target_language or None


@dataclass(frozen=True)
class SubscriptionEntry:
    """One tracked account and the chats its posts are pushed to."""

    account_handle: str
    destination_ids: Tuple[str, ...]
    exclude_reposts: bool = False


@dataclass(frozen=True)
class SubscriptionsDisabled:
    enabled: bool = False


@dataclass(frozen=True)
class SubscriptionsEnabled:
    """Subscription settings, only present when polling is switched on."""

    update_interval_minutes: float
    entry_delay_seconds: float
    delivery: str
    subscriptions: Tuple[SubscriptionEntry, ...]
    enabled: bool = True


SubscriptionConfig = Union[SubscriptionsDisabled, SubscriptionsEnabled]


@dataclass(frozen=True)
class BrowserConfig:
    """Headless browser settings consumed by the browser adapter."""

    engine: str = "chromium"
    headless: bool = True
    navigation_timeout_ms: int = 30000
    selector_timeout_ms: int = 20000


def _as_bool(block: Mapping[str, Any], key: str, default: bool) -> bool:
    value = block.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be true or false, got {value!r}")
    return value


def _as_number(block: Mapping[str, Any], key: str, default: float, minimum: float) -> float:
    value = block.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"'{key}' must be >= {minimum}, got {value!r}")
    return float(value)


def build_translation_options(raw: Mapping[str, Any], profile: str) -> Optional[TranslationOptions]:
    """Return translation options for ``profile`` or None when not applicable."""

    if not raw or not raw.get("enabled", False):
        return None
    apply_to = raw.get("apply_to", "both")
    if apply_to not in (PROFILE_PARSE, PROFILE_PUSH, "both"):
        raise ConfigurationError(f"translation.apply_to must be parse, push or both, got {apply_to!r}")
    if apply_to not in ("both", profile):
        return None
    target = str(raw.get("target_language", "")).strip()
    if not target:
        raise ConfigurationError("translation.target_language is required when translation is enabled")
    return TranslationOptions(enabled=True, target_language=target)


def build_resolve_options(config: Mapping[str, Any], profile: str) -> ResolveOptions:
    """Build the resolve profile for manual parsing or subscription pushes.

    The two profiles read distinct blocks (``parse`` and ``push``) so a push
    never inherits settings meant for replies, and vice versa.
    """

    if profile not in (PROFILE_PARSE, PROFILE_PUSH):
        raise ValueError(f"Unsupported resolve profile: {profile}")

    block = config.get(profile, {}) or {}
    translation = build_translation_options(config.get("translation", {}) or {}, profile)
    return ResolveOptions(
        # Manual replies answer a message that already contains the link.
        include_source_link=_as_bool(block, "show_link", profile == PROFILE_PUSH),
        include_screenshot=_as_bool(block, "show_screenshot", True),
        include_text=_as_bool(block, "send_text", True),
        include_media=_as_bool(block, "send_media", True),
        bundle_if_supported=_as_bool(block, "use_bundle", False),
        translation=translation,
    )


def parse_subscription_entry(raw: Mapping[str, Any]) -> SubscriptionEntry:
    """Validate one subscription entry."""

    handle = normalize_handle(str(raw.get("username") or ""))
    if not handle:
        raise ConfigurationError("subscription entry is missing 'username'")

    destinations: List[str] = []
    for chat_id in raw.get("chat_ids") or []:
        value = str(chat_id).strip()
        if value and value not in destinations:
            destinations.append(value)
    if not destinations:
        raise ConfigurationError(f"subscription '{handle}' has no chat_ids")

    return SubscriptionEntry(
        account_handle=handle,
        destination_ids=tuple(destinations),
        exclude_reposts=_as_bool(raw, "exclude_reposts", False),
    )


def build_subscription_entries(raw_entries: Iterable[Mapping[str, Any]]) -> List[SubscriptionEntry]:
    """Normalize subscription entries, dropping malformed or disabled ones."""

    entries: List[SubscriptionEntry] = []
    for index, raw in enumerate(raw_entries):
        if not raw.get("enabled", True):
            continue
        try:
            entries.append(parse_subscription_entry(raw))
        except ConfigurationError as exc:
            LOGGER.warning("Skipping subscription #%s: %s", index + 1, exc)
    return entries


def build_subscription_config(raw: Mapping[str, Any]) -> SubscriptionConfig:
    """Return the tagged subscription variant for the ``subscription`` block."""

    if not raw or not _as_bool(raw, "enabled", False):
        return SubscriptionsDisabled()

    delivery = raw.get("delivery", "client")
    if delivery not in DELIVERY_METHODS:
        raise ConfigurationError(f"subscription.delivery must be 'client' or 'bot', got {delivery!r}")

    return SubscriptionsEnabled(
        update_interval_minutes=_as_number(raw, "update_interval_minutes", 5, minimum=1),
        entry_delay_seconds=_as_number(raw, "entry_delay_seconds", 5, minimum=0),
        delivery=delivery,
        subscriptions=tuple(build_subscription_entries(raw.get("subscriptions", []) or [])),
    )


def build_browser_config(raw: Mapping[str, Any]) -> BrowserConfig:
    raw = raw or {}
    engine = raw.get("engine", "chromium")
    if engine not in ("chromium", "firefox", "webkit"):
        raise ConfigurationError(f"browser.engine must be chromium, firefox or webkit, got {engine!r}")
    return BrowserConfig(
        engine=engine,
        headless=_as_bool(raw, "headless", True),
        navigation_timeout_ms=int(_as_number(raw, "navigation_timeout_ms", 30000, minimum=1000)),
        selector_timeout_ms=int(_as_number(raw, "selector_timeout_ms", 20000, minimum=1000)),
    )
