"""Adapteur francaisfacile.rfi.fr : catégories d'une section, pages de listing, pages exercice."""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Iterator
from datetime import date
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, FeatureNotFound, Tag

from francaisfacile.core.adapters.base import AdapterRegistry
from francaisfacile.core.adapters.markup import ListingPattern, MarkupProfile, get_markup_profile
from francaisfacile.core.models import (
    DEFAULT_LEVEL,
    RFI_BASE_URL,
    CategoryRef,
    ExerciseDetail,
    ExerciseStub,
    Level,
    ListingPage,
    SectionId,
    get_section,
)
from francaisfacile.core.sync.fetcher import PageFetcher
from francaisfacile.core.utils.fallback import first_match
from francaisfacile.core.utils.text import (
    label_from_slug,
    normalize_bracketed_annotations,
    normalize_whitespace,
)

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "Unknown"


def _make_soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except FeatureNotFound as e:
        logger.debug("lxml non disponible, fallback html.parser: %s", e)
        return BeautifulSoup(html, "html.parser")


# Lien de catégorie : /<section>/<categorie>-<niveau>/
_CATEGORY_LEVEL_RE = re.compile(r"-(a1|a2|b1|b2|c1c2)/?$", re.IGNORECASE)
_CATEGORY_SLUG_RE = re.compile(r"/([^/]+)-(a1|a2|b1|b2|c1c2)/?$", re.IGNORECASE)

# Date dans l'URL d'un article : .../20240115-titre-de-l-article
_URL_DATE_RE = re.compile(r"(?<!\d)(\d{4})(\d{2})(\d{2})-")
_FR_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

_DETAIL_LEVEL_RE = re.compile(r"\b(A1|A2|B1|B2|C1|C2)\b", re.IGNORECASE)

_AUDIO_SOURCES_JSON_RE = re.compile(r'"sources"\s*:\s*\[\s*\{\s*"url"\s*:\s*"([^"]+\.mp3[^"]*)"')
_BARE_MP3_RE = re.compile(r"https?://[^\"'\s]+\.mp3")

_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def _safe_date(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_listing_date(raw: str | None) -> date | None:
    """Attribut datetime d'un listing : ``dd/mm/yyyy`` ou ``yyyy-mm-dd[...]`` ; None sinon."""
    value = (raw or "").strip()
    if not value:
        return None
    m = _FR_DATE_RE.match(value)
    if m:
        return _safe_date(m.group(3), m.group(2), m.group(1))
    m = _ISO_DATE_RE.match(value)
    if m:
        return _safe_date(m.group(1), m.group(2), m.group(3))
    return None


def date_from_url(url: str) -> date | None:
    """Date YYYYMMDD suivie d'un tiret dans le chemin de l'URL ; None si absente ou invalide."""
    m = _URL_DATE_RE.search(urlparse(url).path)
    if not m:
        return None
    return _safe_date(m.group(1), m.group(2), m.group(3))


class RfiAdapter:
    """Adapteur pour francaisfacile.rfi.fr ; sélecteurs fournis par un MarkupProfile."""

    id = "rfi"

    def __init__(self, *, base_url: str = RFI_BASE_URL, markup: MarkupProfile | None = None):
        self.base_url = base_url.rstrip("/")
        self.markup = markup or get_markup_profile(None)

    def _absolute(self, href: str) -> str:
        return urljoin(self.base_url + "/", href.strip())

    # --- Sections et catégories ---

    def section_index_url(self, section_id: SectionId | str) -> str:
        """URL de la page index d'une section, rapportée à base_url."""
        section = get_section(section_id)
        return self._absolute(urlparse(section.url).path)

    def discover_categories(self, section_id: SectionId | str, fetcher: PageFetcher) -> list[CategoryRef]:
        """Récupère la page index de la section puis en extrait les catégories."""
        section = get_section(section_id)
        html = fetcher.fetch(self.section_index_url(section.id))
        return self.discover_categories_from_html(html, section.id)

    def discover_categories_from_html(self, html: str, section_id: SectionId | str) -> list[CategoryRef]:
        """
        Liens de catégories de la page index, dans l'ordre du document.
        Pas de déduplication ici : un même lien présent deux fois donne deux entrées.
        """
        section = get_section(section_id)
        soup = _make_soup(html)
        categories: list[CategoryRef] = []
        for a in soup.select("a[href]"):
            href = (a.get("href") or "").strip()
            if not href or self.markup.category_link_marker not in href:
                continue
            url = urldefrag(self._absolute(href)).url
            path = urlparse(url).path
            m = _CATEGORY_LEVEL_RE.search(path)
            if not m:
                continue
            categories.append(
                CategoryRef(
                    url=url,
                    section=section.id,
                    level=Level.from_token(m.group(1)) or DEFAULT_LEVEL,
                    category=self._category_label(path),
                )
            )
        logger.debug("Section %s: %d category links", section.id.value, len(categories))
        return categories

    def _category_label(self, path: str) -> str:
        m = _CATEGORY_SLUG_RE.search(path)
        if not m:
            return UNKNOWN_CATEGORY
        return label_from_slug(m.group(1)) or UNKNOWN_CATEGORY

    def category_ref_from_url(self, url: str) -> CategoryRef:
        """
        CategoryRef depuis l'URL seule d'une page catégorie (synchronisation ciblée).
        Section déduite de l'URL, niveau A2 et catégorie « Unknown » à défaut.
        """
        absolute = urldefrag(self._absolute(url)).url
        path = urlparse(absolute).path
        if "comprendre-actualit" in absolute.lower():
            section = SectionId.COMPRENDRE_ACTUALITE
        else:
            section = SectionId.COMMUNIQUER_QUOTIDIEN
        m = _CATEGORY_LEVEL_RE.search(path)
        level = (Level.from_token(m.group(1)) if m else None) or DEFAULT_LEVEL
        return CategoryRef(url=absolute, section=section, level=level, category=self._category_label(path))

    # --- Listings ---

    def page_url(self, category: CategoryRef, page_number: int) -> str:
        """Page 1 : URL de la catégorie avec slash final ; page n : ``{url}/{n}/#pager``."""
        if page_number < 1:
            raise ValueError("page_number must be >= 1")
        base = category.url.rstrip("/")
        if page_number == 1:
            return f"{base}/"
        return f"{base}/{page_number}/#pager"

    def parse_listing_page(self, html: str, category: CategoryRef, page_number: int) -> ListingPage:
        """
        Exercices d'une page de listing. Les motifs du profil sont essayés dans l'ordre ;
        le premier qui produit au moins un exercice est retenu.
        """
        soup = _make_soup(html)
        stubs: list[ExerciseStub] = []
        for pattern in self.markup.listing_patterns:
            stubs = self._parse_listing_blocks(soup, pattern, category)
            if stubs:
                if pattern is not self.markup.listing_patterns[0]:
                    logger.debug("Listing %s page %d parsed with pattern %s", category.url, page_number, pattern.name)
                break
        return ListingPage(stubs=stubs, has_more=self._has_next_page(soup, page_number))

    def _parse_listing_blocks(
        self, soup: BeautifulSoup, pattern: ListingPattern, category: CategoryRef
    ) -> list[ExerciseStub]:
        stubs: list[ExerciseStub] = []
        seen: set[str] = set()
        for block in soup.select(pattern.block):
            link = block.select_one(pattern.link)
            if link is None and block.name == "a":
                link = block
            href = (link.get("href") or "").strip() if link is not None else ""
            if not href:
                continue
            source_url = self._absolute(href)
            if source_url in seen:
                continue

            title_el = block.select_one(pattern.title)
            title = normalize_whitespace(title_el.get_text(" ")) if title_el else ""
            if not title and pattern.title_from_link_attr:
                title = normalize_whitespace(link.get("title") or "")
            if not title:
                continue

            seen.add(source_url)
            time_el = block.select_one(pattern.time) if pattern.time else None
            published_at = parse_listing_date(time_el.get("datetime") if time_el else None)
            stubs.append(
                ExerciseStub(
                    title=title,
                    level=category.level,
                    category=category.category,
                    section=category.section,
                    source_url=source_url,
                    thumbnail_url=self._thumbnail(block, pattern),
                    published_at=published_at or date_from_url(source_url),
                )
            )
        return stubs

    def _thumbnail(self, block: Tag, pattern: ListingPattern) -> str | None:
        img = block.select_one(pattern.image)
        if img is None:
            return None
        for attr in ("src", "data-src"):
            value = (img.get(attr) or "").strip()
            # Les images différées portent un placeholder data: dans src
            if value and not value.startswith("data:"):
                return self._absolute(value)
        return None

    def _has_next_page(self, soup: BeautifulSoup, page_number: int) -> bool:
        selectors = [f'a[href*="/{page_number + 1}/"]', *self.markup.next_page_selectors]
        return any(soup.select_one(sel) is not None for sel in selectors)

    # --- Page exercice ---

    def parse_detail(self, html: str) -> ExerciseDetail:
        """
        Champs d'enrichissement d'une page exercice. Ne lève pas sur un champ absent :
        chaque champ non trouvé vaut None.
        """
        soup = _make_soup(html)
        script_text = "\n".join(script.string or "" for script in soup.find_all("script"))
        # URLs échappées en JSON (https:\/\/...)
        script_text = script_text.replace("\\/", "/")

        audio_url = first_match(
            (
                self._audio_from_element,
                self._audio_from_data_attribute,
                self._audio_from_sources_json,
                self._audio_from_cdn_url,
                self._audio_from_bare_url,
            ),
            soup,
            script_text,
        )
        return ExerciseDetail(
            audio_url=audio_url,
            h5p_embed_url=self._quiz_embed_url(soup),
            level=self._detail_level(soup),
            title=self._detail_title(soup),
            transcript=self._transcript(soup),
        )

    def _audio_from_element(self, soup: BeautifulSoup, script_text: str) -> str | None:
        for sel in self.markup.audio_element_selectors:
            el = soup.select_one(sel)
            src = (el.get("src") or "").strip() if el else ""
            if src:
                return self._absolute(src)
        return None

    def _audio_from_data_attribute(self, soup: BeautifulSoup, script_text: str) -> str | None:
        for attr in self.markup.audio_data_attributes:
            el = soup.select_one(f"[{attr}*='.mp3']")
            if el is not None:
                return self._absolute(el.get(attr))
        return None

    def _audio_from_sources_json(self, soup: BeautifulSoup, script_text: str) -> str | None:
        m = _AUDIO_SOURCES_JSON_RE.search(script_text)
        return m.group(1) if m else None

    def _audio_from_cdn_url(self, soup: BeautifulSoup, script_text: str) -> str | None:
        marker = re.escape(self.markup.audio_cdn_marker)
        m = re.search(rf"https?://[^\"'\s]+{marker}[^\"'\s]+\.mp3", script_text)
        return m.group(0) if m else None

    def _audio_from_bare_url(self, soup: BeautifulSoup, script_text: str) -> str | None:
        m = _BARE_MP3_RE.search(script_text)
        return m.group(0) if m else None

    def _quiz_embed_url(self, soup: BeautifulSoup) -> str | None:
        iframes = soup.find_all("iframe")
        for marker in self.markup.quiz_iframe_markers:
            for iframe in iframes:
                for attr in self.markup.quiz_iframe_attributes:
                    value = (iframe.get(attr) or "").strip()
                    if value and marker in value.lower():
                        return self._absolute(value)
        return None

    def _detail_level(self, soup: BeautifulSoup) -> Level | None:
        """Premier jeton de niveau du texte rendu de la page (scripts exclus)."""
        m = _DETAIL_LEVEL_RE.search((soup.body or soup).get_text(" "))
        return Level.from_token(m.group(1)) if m else None

    def _detail_title(self, soup: BeautifulSoup) -> str | None:
        el = soup.select_one(self.markup.title_selector)
        if el is None:
            return None
        return normalize_whitespace(el.get_text(" ")) or None

    # --- Transcription ---

    def _transcript(self, soup: BeautifulSoup) -> str | None:
        """Première région candidate dont le texte nettoyé atteint le seuil minimal."""
        for region in self._transcript_regions(soup):
            text = self._clean_transcript_region(region)
            if len(text) >= self.markup.min_transcript_chars:
                return text
        return None

    def _transcript_regions(self, soup: BeautifulSoup) -> Iterator[Tag]:
        for sel in self.markup.transcript_selectors:
            for el in soup.select(sel):
                if el.name not in _HEADING_TAGS:
                    yield copy.copy(el)
        region = self._region_after_transcript_heading(soup)
        if region is not None:
            yield region

    def _region_after_transcript_heading(self, soup: BeautifulSoup) -> Tag | None:
        heading_re = re.compile(self.markup.transcript_heading_pattern, re.IGNORECASE)
        for heading in soup.find_all(_HEADING_TAGS):
            if not heading_re.search(heading.get_text(" ")):
                continue
            wrapper = soup.new_tag("div")
            for sibling in heading.find_next_siblings():
                if sibling.name in _HEADING_TAGS and sibling.name <= heading.name:
                    break
                wrapper.append(copy.copy(sibling))
            return wrapper
        return None

    def _clean_transcript_region(self, region: Tag) -> str:
        for sel in self.markup.transcript_noise_selectors:
            for el in region.select(sel):
                el.decompose()
        noise_link_re = re.compile(self.markup.transcript_noise_link_pattern, re.IGNORECASE)
        for a in region.find_all("a"):
            if noise_link_re.search(a.get_text(" ")):
                a.decompose()
        for heading in region.find_all(_HEADING_TAGS):
            heading.decompose()

        blocks = region.find_all(["p", "li"])
        parts = [b.get_text(" ") for b in blocks] if blocks else [region.get_text(" ")]
        return normalize_bracketed_annotations("\n".join(parts))


# Enregistrement au chargement du module
AdapterRegistry.register(RfiAdapter())
