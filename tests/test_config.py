import pytest

from core.config import (
    PROFILE_PARSE,
    PROFILE_PUSH,
    SubscriptionEntry,
    SubscriptionsDisabled,
    SubscriptionsEnabled,
    build_browser_config,
    build_resolve_options,
    build_subscription_config,
    parse_subscription_entry,
)
from core.errors import ConfigurationError


def test_profiles_read_independent_blocks() -> None:
    config = {
        "parse": {"show_screenshot": False, "use_bundle": True},
        "push": {"send_media": False},
    }

    parse = build_resolve_options(config, PROFILE_PARSE)
    push = build_resolve_options(config, PROFILE_PUSH)

    assert parse.include_screenshot is False
    assert parse.bundle_if_supported is True
    assert parse.include_media is True
    assert push.include_screenshot is True
    assert push.include_media is False
    assert push.bundle_if_supported is False


def test_source_link_defaults_differ_per_profile() -> None:
    assert build_resolve_options({}, PROFILE_PARSE).include_source_link is False
    assert build_resolve_options({}, PROFILE_PUSH).include_source_link is True


def test_translation_applies_only_to_selected_profile() -> None:
    config = {"translation": {"enabled": True, "target_language": "de", "apply_to": "push"}}

    assert build_resolve_options(config, PROFILE_PARSE).translation_target is None
    assert build_resolve_options(config, PROFILE_PUSH).translation_target == "de"


def test_translation_requires_target_language() -> None:
    with pytest.raises(ConfigurationError):
        build_resolve_options({"translation": {"enabled": True}}, PROFILE_PARSE)


def test_non_boolean_flag_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        build_resolve_options({"parse": {"send_text": "yes"}}, PROFILE_PARSE)


def test_unknown_profile_is_a_programming_error() -> None:
    with pytest.raises(ValueError):
        build_resolve_options({}, "digest")


def test_subscription_entry_is_normalized() -> None:
    entry = parse_subscription_entry({"username": "@NASA", "chat_ids": [100, "200", 100, " "], "exclude_reposts": True})

    assert entry == SubscriptionEntry(account_handle="nasa", destination_ids=("100", "200"), exclude_reposts=True)


def test_subscription_entry_requires_username_and_chats() -> None:
    with pytest.raises(ConfigurationError):
        parse_subscription_entry({"chat_ids": [1]})
    with pytest.raises(ConfigurationError):
        parse_subscription_entry({"username": "nasa", "chat_ids": []})


def test_disabled_block_yields_disabled_variant() -> None:
    assert isinstance(build_subscription_config({}), SubscriptionsDisabled)
    assert isinstance(build_subscription_config({"enabled": False, "update_interval_minutes": 0}), SubscriptionsDisabled)


def test_enabled_block_keeps_valid_entries_only() -> None:
    raw = {
        "enabled": True,
        "update_interval_minutes": 10,
        "delivery": "bot",
        "subscriptions": [
            {"username": "nasa", "chat_ids": [1]},
            {"username": "", "chat_ids": [1]},
            {"username": "esa", "chat_ids": [2], "enabled": False},
        ],
    }

    config = build_subscription_config(raw)

    assert isinstance(config, SubscriptionsEnabled)
    assert config.update_interval_minutes == 10
    assert config.entry_delay_seconds == 5
    assert config.delivery == "bot"
    assert [entry.account_handle for entry in config.subscriptions] == ["nasa"]


def test_enabled_block_validates_interval_and_delivery() -> None:
    with pytest.raises(ConfigurationError):
        build_subscription_config({"enabled": True, "update_interval_minutes": 0})
    with pytest.raises(ConfigurationError):
        build_subscription_config({"enabled": True, "delivery": "email"})


def test_browser_config_defaults_and_validation() -> None:
    config = build_browser_config({})

    assert config.engine == "chromium"
    assert config.headless is True
    with pytest.raises(ConfigurationError):
        build_browser_config({"engine": "netscape"})
