"""francaisfacile : scraping et synchronisation des exercices RFI Français facile."""

__version__ = "0.1.0"
