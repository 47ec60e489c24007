"""Utilitaires texte."""

import re
from urllib.parse import unquote


def normalize_whitespace(text: str) -> str:
    """Remplace les séquences d'espaces/blancs par un seul espace."""
    return " ".join(text.split())


# Annotation entre crochets (ex. « [Source : AFP] ») : isolée sur sa propre ligne.
BRACKETED_ANNOTATION_PATTERN = re.compile(r"\s*(\[[^\[\]\n]+\])\s*")


def normalize_bracketed_annotations(text: str) -> str:
    """Place chaque annotation [..] sur sa propre ligne et supprime les lignes vides."""
    spaced = BRACKETED_ANNOTATION_PATTERN.sub(r"\n\1\n", text)
    lines = (normalize_whitespace(line) for line in spaced.splitlines())
    return "\n".join(line for line in lines if line)


def label_from_slug(slug: str) -> str:
    """Segment d'URL -> libellé : décodé, première lettre en majuscule, reste en minuscules."""
    decoded = unquote(slug).strip()
    if not decoded:
        return ""
    return decoded[0].upper() + decoded[1:].lower()
