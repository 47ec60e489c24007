"""Profils d'acquisition (politique de fetch)."""

from .profiles import (
    DEFAULT_ACQUISITION_PROFILE_ID,
    DEFAULT_HEADERS,
    DEFAULT_USER_AGENT,
    AcquisitionHttpOptions,
    AcquisitionProfile,
    format_http_options_summary,
    get_profile,
    list_profile_ids,
    resolve_http_options,
    resolve_http_options_for_config,
)

__all__ = [
    "AcquisitionHttpOptions",
    "AcquisitionProfile",
    "DEFAULT_ACQUISITION_PROFILE_ID",
    "DEFAULT_HEADERS",
    "DEFAULT_USER_AGENT",
    "format_http_options_summary",
    "get_profile",
    "list_profile_ids",
    "resolve_http_options",
    "resolve_http_options_for_config",
]
