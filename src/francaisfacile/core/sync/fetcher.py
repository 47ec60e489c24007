"""Récupération de pages : protocole injectable + implémentation HTTP (httpx)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from francaisfacile.core.acquisition import AcquisitionHttpOptions, format_http_options_summary
from francaisfacile.core.acquisition.profiles import resolve_http_options
from francaisfacile.core.utils.http import get_html

logger = logging.getLogger(__name__)


class PageFetcher(Protocol):
    """Retourne le HTML d'une URL ; lève httpx.HTTPError sur échec réseau ou statut non 2xx."""

    def fetch(self, url: str, headers: Mapping[str, str] | None = None) -> str:
        ...


class HttpPageFetcher:
    """PageFetcher basé sur get_html avec les options d'un profil d'acquisition."""

    def __init__(self, options: AcquisitionHttpOptions | None = None):
        self.options = options or resolve_http_options(acquisition_profile_id=None)
        logger.debug("HTTP fetcher: %s", format_http_options_summary(self.options))

    def fetch(self, url: str, headers: Mapping[str, str] | None = None) -> str:
        request_headers = dict(self.options.headers)
        request_headers.update(headers or {})
        return get_html(
            url,
            headers=request_headers,
            user_agent=self.options.user_agent,
            timeout_s=self.options.timeout_s,
            retries=self.options.retries,
            backoff_s=self.options.backoff_s,
            min_interval_s=self.options.rate_limit_s,
        )
