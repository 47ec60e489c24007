"""Utilitaires HTTP : GET HTML avec timeout, retry, backoff et intervalle minimal global."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

# Début (monotonic) de la dernière requête, partagé par tous les appels get_html
_last_request_time: Optional[float] = None
_last_request_lock = threading.Lock()

_RETRYABLE_STATUS_CODES = frozenset({408, 409, 425, 429, 500, 502, 503, 504})


def _reserve_request_slot(min_interval_s: Optional[float]) -> None:
    """Attend si besoin pour espacer d'au moins min_interval_s le début de deux requêtes."""
    global _last_request_time
    if not min_interval_s or min_interval_s <= 0:
        return
    while True:
        with _last_request_lock:
            now = time.monotonic()
            if _last_request_time is None or now >= _last_request_time + min_interval_s:
                _last_request_time = now
                return
            wait_s = _last_request_time + min_interval_s - now
        time.sleep(wait_s)


def _retry_after_seconds(response: httpx.Response | None) -> float | None:
    """Retry-After en secondes : valeur numérique ou date HTTP."""
    if response is None:
        return None
    raw = (response.headers.get("Retry-After") or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        try:
            when = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        value = (when - datetime.now(timezone.utc)).total_seconds()
    return max(0.0, value)


def _build_headers(headers: Mapping[str, str] | None, user_agent: str | None) -> dict[str, str]:
    merged = dict(headers or {})
    if user_agent:
        merged["User-Agent"] = user_agent
    return merged


def get_html(
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    user_agent: Optional[str] = None,
    timeout_s: float = 30.0,
    retries: int = 3,
    backoff_s: float = 2.0,
    min_interval_s: Optional[float] = None,
) -> str:
    """
    Récupère le HTML d'une URL.

    Args:
        url: URL à récupérer (un éventuel fragment #... n'est pas envoyé).
        headers: En-têtes de requête (navigateur, langue...).
        user_agent: Remplace le User-Agent de ``headers`` si fourni.
        timeout_s: Timeout en secondes.
        retries: Nombre total de tentatives (au moins 1).
        backoff_s: Délai de base du backoff exponentiel entre tentatives.
        min_interval_s: Intervalle minimal entre le début de deux requêtes
            successives, tous appels confondus (politesse envers la source).

    Returns:
        Corps de la réponse décodé.

    Raises:
        httpx.HTTPStatusError: statut non 2xx (après retries pour les statuts temporaires).
        httpx.TransportError: échec réseau persistant.
    """
    request_headers = _build_headers(headers, user_agent)
    attempts = max(1, int(retries))
    backoff_base = max(0.0, float(backoff_s))
    last_exc: Exception | None = None

    with httpx.Client(timeout=timeout_s, follow_redirects=True) as client:
        for attempt in range(attempts):
            _reserve_request_slot(min_interval_s)
            is_last = attempt >= attempts - 1
            try:
                resp = client.get(url, headers=request_headers or None)
                resp.raise_for_status()
                # Les pages de la source sont en UTF-8 même quand le charset manque
                if resp.encoding in (None, "ascii", "ISO-8859-1"):
                    resp.encoding = "utf-8"
                return resp.text
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in _RETRYABLE_STATUS_CODES or is_last:
                    raise
                delay = _retry_after_seconds(exc.response)
                if delay is None:
                    delay = backoff_base * (2**attempt)
                logger.info("HTTP %s on %s, retry in %.1fs", status_code, url, delay)
            except httpx.TransportError as exc:
                last_exc = exc
                if is_last:
                    break
                delay = backoff_base * (2**attempt)
                logger.info("%s on %s, retry in %.1fs", exc.__class__.__name__, url, delay)
            if delay > 0:
                time.sleep(delay)

    if last_exc is not None:
        raise last_exc
    raise RuntimeError("get_html failed without explicit exception")
