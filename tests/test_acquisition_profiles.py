"""Tests des profils d'acquisition (résolution des options HTTP)."""

from __future__ import annotations

from francaisfacile.core.acquisition.profiles import (
    DEFAULT_ACQUISITION_PROFILE_ID,
    DEFAULT_USER_AGENT,
    format_http_options_summary,
    list_profile_ids,
    resolve_http_options,
    resolve_http_options_for_config,
)
from francaisfacile.core.config import SyncConfig


def test_resolve_http_options_safe_profile_uses_profile_network_defaults() -> None:
    opts = resolve_http_options(
        acquisition_profile_id="safe_v1",
        user_agent="Agent/1.0",
        rate_limit_s=6.0,
    )

    assert opts.acquisition_profile_id == "safe_v1"
    assert opts.user_agent == "Agent/1.0"
    assert opts.rate_limit_s == 6.0
    assert opts.timeout_s == 45.0
    assert opts.retries == 4
    assert opts.backoff_s == 3.0


def test_resolve_http_options_fallback_on_unknown_profile() -> None:
    opts = resolve_http_options(
        acquisition_profile_id="unknown_profile",
        user_agent="  ",
        rate_limit_s=None,
    )

    assert opts.acquisition_profile_id == DEFAULT_ACQUISITION_PROFILE_ID
    assert opts.user_agent == DEFAULT_USER_AGENT
    assert opts.rate_limit_s == 0.3
    assert opts.timeout_s == 30.0
    assert opts.retries == 3
    assert opts.backoff_s == 2.0


def test_resolve_http_options_negative_rate_uses_profile_default() -> None:
    opts = resolve_http_options(acquisition_profile_id="fast_v1", rate_limit_s=-1)
    assert opts.rate_limit_s == 0.1


def test_resolve_http_options_merges_headers_over_browser_defaults() -> None:
    opts = resolve_http_options(
        acquisition_profile_id=None,
        headers={"Accept-Language": "fr-CA", "Referer": "https://francaisfacile.rfi.fr/"},
    )
    assert opts.headers["Accept-Language"] == "fr-CA"
    assert opts.headers["Referer"] == "https://francaisfacile.rfi.fr/"
    assert "Accept" in opts.headers


def test_resolve_http_options_for_config() -> None:
    config = SyncConfig(acquisition_profile_id="safe_v1", rate_limit_s=1.5, user_agent="Cfg/1.0")
    opts = resolve_http_options_for_config(config)
    assert opts.acquisition_profile_id == "safe_v1"
    assert opts.rate_limit_s == 1.5
    assert opts.user_agent == "Cfg/1.0"


def test_format_http_options_summary_contains_key_runtime_fields() -> None:
    opts = resolve_http_options(
        acquisition_profile_id="safe_v1",
        user_agent="Agent/1.0",
        rate_limit_s=5.0,
    )

    summary = format_http_options_summary(opts)

    assert summary == "profile=safe_v1 rate=5.0s timeout=45.0s retries=4 backoff=3.0s"


def test_list_profile_ids() -> None:
    assert list_profile_ids() == ["polite_v1", "safe_v1", "fast_v1"]
