"""Profils d'acquisition (politique de débit et réglages HTTP envers la source)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AcquisitionProfile:
    """Profil d'acquisition : intervalle minimal entre requêtes + réglages réseau."""

    id: str
    label: str
    default_rate_limit_s: float
    timeout_s: float
    retries: int
    backoff_s: float
    description: str


@dataclass(frozen=True)
class AcquisitionHttpOptions:
    """Options HTTP résolues pour le fetcher de pages."""

    user_agent: str
    headers: dict[str, str]
    rate_limit_s: float
    timeout_s: float
    retries: int
    backoff_s: float
    acquisition_profile_id: str


DEFAULT_ACQUISITION_PROFILE_ID = "polite_v1"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# La source filtre les clients qui ne ressemblent pas à un navigateur francophone
DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "fr-FR,fr;q=0.9,en;q=0.8",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}

PROFILES: dict[str, AcquisitionProfile] = {
    "polite_v1": AcquisitionProfile(
        id="polite_v1",
        label="Polite",
        default_rate_limit_s=0.3,
        timeout_s=30.0,
        retries=3,
        backoff_s=2.0,
        description="Requêtes séquentielles espacées, compromis vitesse/politesse.",
    ),
    "safe_v1": AcquisitionProfile(
        id="safe_v1",
        label="Safe",
        default_rate_limit_s=1.0,
        timeout_s=45.0,
        retries=4,
        backoff_s=3.0,
        description="Débit prudent si la source renvoie des 429/503.",
    ),
    "fast_v1": AcquisitionProfile(
        id="fast_v1",
        label="Fast",
        default_rate_limit_s=0.1,
        timeout_s=20.0,
        retries=2,
        backoff_s=1.0,
        description="Débit rapide, pour de petites synchronisations ciblées.",
    ),
}


def list_profile_ids() -> list[str]:
    return list(PROFILES.keys())


def get_profile(profile_id: str | None) -> AcquisitionProfile:
    """Résout un profil depuis son ID ; profil par défaut si inconnu."""
    if profile_id and profile_id in PROFILES:
        return PROFILES[profile_id]
    return PROFILES[DEFAULT_ACQUISITION_PROFILE_ID]


def resolve_http_options(
    *,
    acquisition_profile_id: str | None,
    user_agent: str | None = None,
    rate_limit_s: float | None = None,
    headers: dict[str, str] | None = None,
) -> AcquisitionHttpOptions:
    """Construit les options HTTP effectives à partir du profil + overrides de config."""
    profile = get_profile(acquisition_profile_id)

    resolved_rate_limit = float(rate_limit_s) if rate_limit_s is not None else profile.default_rate_limit_s
    if resolved_rate_limit < 0:
        resolved_rate_limit = profile.default_rate_limit_s

    merged_headers = dict(DEFAULT_HEADERS)
    merged_headers.update(headers or {})

    return AcquisitionHttpOptions(
        user_agent=(user_agent or "").strip() or DEFAULT_USER_AGENT,
        headers=merged_headers,
        rate_limit_s=resolved_rate_limit,
        timeout_s=profile.timeout_s,
        retries=profile.retries,
        backoff_s=profile.backoff_s,
        acquisition_profile_id=profile.id,
    )


def resolve_http_options_for_config(config: Any) -> AcquisitionHttpOptions:
    """Résout les options HTTP à partir d'un SyncConfig-like."""
    return resolve_http_options(
        acquisition_profile_id=getattr(config, "acquisition_profile_id", None),
        user_agent=getattr(config, "user_agent", None),
        rate_limit_s=getattr(config, "rate_limit_s", None),
        headers=getattr(config, "headers", None),
    )


def format_http_options_summary(options: AcquisitionHttpOptions) -> str:
    """Résumé une ligne pour les logs."""
    return (
        f"profile={options.acquisition_profile_id} rate={options.rate_limit_s}s "
        f"timeout={options.timeout_s}s retries={options.retries} backoff={options.backoff_s}s"
    )
