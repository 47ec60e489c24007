"""Adapters de source (enregistrés dans AdapterRegistry à l'import)."""

from francaisfacile.core.adapters.base import AdapterRegistry, SourceAdapter
from francaisfacile.core.adapters import rfi  # noqa: F401

__all__ = ["AdapterRegistry", "SourceAdapter"]
