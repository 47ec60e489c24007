"""Identifiants courts dérivés de l'URL source (hash djb2-xor 32 bits + base 36).

Un identifiant est attribué une seule fois par URL source. En cas de collision,
on mélange un suffixe ``#n`` dans l'entrée du hash (pas dans la sortie) et on
réessaie avec n = 1, 2, ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, MutableMapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

HASH_SEED = 5381
_MASK_32 = 0xFFFFFFFF
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

DEFAULT_MAX_PROBES = 10_000


class IdentityExhaustedError(Exception):
    """Aucun identifiant libre trouvé dans la limite de suffixes sondés."""

    def __init__(self, url: str, probes: int):
        self.url = url
        self.probes = probes
        super().__init__(f"No free short id for {url} after {probes} probes")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def _utf16_code_units(text: str) -> Iterator[int]:
    # Unités de code UTF-16 : mêmes identifiants que ceux déjà attribués par l'application web.
    data = text.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def generate_short_id(url: str, suffix: int = 0) -> str:
    """Identifiant court déterministe pour (url, suffix). Fonction pure."""
    if suffix < 0:
        raise ValueError("suffix must be >= 0")
    data = f"{url}#{suffix}" if suffix else url
    h = HASH_SEED
    for unit in _utf16_code_units(data):
        h = ((h * 33) ^ unit) & _MASK_32
    return _to_base36(h)


class IdentityMap(MutableMapping[str, str]):
    """Mapping id -> URL source avec index inverse ; garantit la bijection."""

    def __init__(self, pairs: Iterable[tuple[str, str]] | None = None):
        self._by_id: dict[str, str] = {}
        self._by_url: dict[str, str] = {}
        for short_id, url in pairs or ():
            self[short_id] = url

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "IdentityMap":
        return cls(pairs)

    def id_for(self, url: str) -> str | None:
        return self._by_url.get(url)

    def __getitem__(self, short_id: str) -> str:
        return self._by_id[short_id]

    def __setitem__(self, short_id: str, url: str) -> None:
        current_url = self._by_id.get(short_id)
        if current_url is not None and current_url != url:
            raise ValueError(f"Id {short_id} already assigned to {current_url}")
        current_id = self._by_url.get(url)
        if current_id is not None and current_id != short_id:
            raise ValueError(f"URL {url} already has id {current_id}")
        self._by_id[short_id] = url
        self._by_url[url] = short_id

    def __delitem__(self, short_id: str) -> None:
        url = self._by_id.pop(short_id)
        self._by_url.pop(url, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)


def _existing_id(url: str, assigned: MutableMapping[str, str]) -> str | None:
    if isinstance(assigned, IdentityMap):
        return assigned.id_for(url)
    for short_id, assigned_url in assigned.items():
        if assigned_url == url:
            return short_id
    return None


def resolve_id(
    url: str,
    assigned: MutableMapping[str, str],
    *,
    max_probes: int = DEFAULT_MAX_PROBES,
) -> str:
    """
    Trouve ou crée l'identifiant court de ``url``.

    Si l'URL a déjà un identifiant dans ``assigned``, il est retourné tel quel.
    Sinon les suffixes 0, 1, 2... sont sondés jusqu'à un identifiant libre,
    inséré dans ``assigned`` (seule mutation).

    Raises:
        IdentityExhaustedError: si ``max_probes`` suffixes sont tous pris.
    """
    existing = _existing_id(url, assigned)
    if existing is not None:
        return existing

    for suffix in range(max_probes):
        candidate = generate_short_id(url, suffix)
        owner = assigned.get(candidate)
        if owner is None or owner == url:
            assigned[candidate] = url
            if suffix:
                logger.debug("Short id collision resolved for %s with suffix %d", url, suffix)
            return candidate
    raise IdentityExhaustedError(url, max_probes)


@dataclass(frozen=True)
class IdMigration:
    """Une ligne du plan de migration : ancien id -> nouvel id."""

    old_id: str
    new_id: str
    source_url: str

    @property
    def changed(self) -> bool:
        return self.old_id != self.new_id


def plan_id_migration(pairs: Iterable[tuple[str, str]]) -> tuple[list[IdMigration], int]:
    """
    Recalcule les identifiants de toutes les paires (ancien id, url), dans l'ordre,
    contre un mapping vide. Retourne (plan, nombre de collisions résolues).
    """
    fresh = IdentityMap()
    plan: list[IdMigration] = []
    collisions = 0
    for old_id, url in pairs:
        new_id = resolve_id(url, fresh)
        if new_id != generate_short_id(url):
            collisions += 1
        plan.append(IdMigration(old_id=old_id, new_id=new_id, source_url=url))
    return plan, collisions
