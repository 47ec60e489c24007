"""Combinateur « premier succès » pour les chaînes d'extraction ordonnées."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def first_match(extractors: Iterable[Callable[..., T | None]], *args, **kwargs) -> T | None:
    """
    Appelle chaque extracteur dans l'ordre avec les mêmes arguments et retourne
    le premier résultat non vide. Les suivants ne sont pas appelés.
    """
    for extractor in extractors:
        value = extractor(*args, **kwargs)
        if value:
            return value
    return None
