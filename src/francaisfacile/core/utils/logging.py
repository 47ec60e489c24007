"""Configuration du logging (console + fichier optionnel)."""

import logging
import sys
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "francaisfacile"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure le logging racine et retourne le logger de l'app.

    Un second appel remplace les handlers du premier (pas de doublons).
    Les logs de requêtes httpx ne passent en INFO qu'en mode DEBUG.
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.INFO if level <= logging.DEBUG else logging.WARNING)

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(level)
    return logger
