"""Tests des étapes du pipeline sur une vraie base SQLite (fetcher factice)."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from francaisfacile.core.config import SyncConfig
from francaisfacile.core.identity import generate_short_id
from francaisfacile.core.models import ExerciseRecord, Level, SectionId
from francaisfacile.core.pipeline.runner import PipelineRunner
from francaisfacile.core.pipeline.tasks import (
    MigrateIdsStep,
    RefreshDetailsStep,
    SyncCategoryStep,
    SyncSectionStep,
)
from francaisfacile.core.storage.db import ExerciseDB
from francaisfacile.core.sync.orchestrator import CrawlOrchestrator


DETAIL_HTML = """
<html><body>
  <h1>Titre du détail</h1>
  <audio src="https://aod-rfi.akamaized.net/detail.mp3"></audio>
  <iframe data-src="https://fle-rfi.h5p.com/content/7/embed"></iframe>
</body></html>
"""


class _DictFetcher:
    def __init__(self, pages: dict[str, str], default: str | None = None):
        self.pages = pages
        self.default = default

    def fetch(self, url: str, headers=None) -> str:
        if url in self.pages:
            return self.pages[url]
        if self.default is not None:
            return self.default
        request = httpx.Request("GET", url)
        raise httpx.HTTPStatusError("404", request=request, response=httpx.Response(404, request=request))


@pytest.fixture
def db(tmp_path: Path) -> ExerciseDB:
    database = ExerciseDB(tmp_path / "exercises.db")
    database.init()
    return database


def _context(db: ExerciseDB, fetcher: _DictFetcher) -> dict:
    config = SyncConfig(db_path=db.db_path)
    orchestrator = CrawlOrchestrator(db, fetcher, config=config, pause=lambda _s: None)
    return {"config": config, "store": db, "orchestrator": orchestrator}


def test_sync_category_step_creates_then_updates(db: ExerciseDB, read_fixture, societe_a2) -> None:
    url = societe_a2.url
    fetcher = _DictFetcher(
        {
            url: read_fixture("rfi_listing_page1.html"),
            url + "2/#pager": read_fixture("rfi_listing_page2.html"),
        },
        default=DETAIL_HTML,
    )
    context = _context(db, fetcher)

    first = SyncCategoryStep(url).run(context)
    assert first.success
    assert first.sync_result.added == 5
    assert db.count() == 5
    for exercise_id, source_url in db.list_ids_and_urls():
        assert exercise_id == generate_short_id(source_url)
        record = db.get(exercise_id)
        assert record.categories == ["Société"]
        assert record.level == Level.A2
        assert record.h5p_embed_url == "https://fle-rfi.h5p.com/content/7/embed"

    second = SyncCategoryStep(url).run(context)
    assert second.sync_result.added == 0
    assert second.sync_result.updated == 5
    assert db.count() == 5


def test_sync_category_step_rejects_empty_url(db: ExerciseDB) -> None:
    result = SyncCategoryStep("  ").run(_context(db, _DictFetcher({})))
    assert result.success is False


def test_sync_section_step_unknown_section_fails(db: ExerciseDB) -> None:
    result = SyncSectionStep("grammaire").run(_context(db, _DictFetcher({})))
    assert result.success is False


def test_sync_section_step_unreachable_index_fails(db: ExerciseDB) -> None:
    results = PipelineRunner().run(
        [SyncSectionStep(SectionId.COMPRENDRE_ACTUALITE.value)],
        _context(db, _DictFetcher({})),
    )
    assert results[0].success is False
    assert "unreachable" in results[0].message


def test_refresh_details_step_fills_quiz(db: ExerciseDB) -> None:
    url = "https://francaisfacile.rfi.fr/fr/podcasts/x/20240101-sans-quiz"
    db.create(
        ExerciseRecord(
            id="abc",
            title="Sans quiz",
            section=SectionId.COMPRENDRE_ACTUALITE,
            level=Level.B1,
            source_url=url,
            categories=["Monde"],
        )
    )
    result = RefreshDetailsStep().run(_context(db, _DictFetcher({url: DETAIL_HTML})))

    assert result.success
    assert result.data["sync_result"].updated == 1
    refreshed = db.get("abc")
    assert refreshed.h5p_embed_url == "https://fle-rfi.h5p.com/content/7/embed"
    assert refreshed.audio_url == "https://aod-rfi.akamaized.net/detail.mp3"
    assert refreshed.title == "Sans quiz"


def _seed_legacy_ids(db: ExerciseDB) -> list[str]:
    urls = [
        "https://francaisfacile.rfi.fr/fr/podcasts/x/20240101-premier",
        "https://francaisfacile.rfi.fr/fr/podcasts/x/20240102-second",
    ]
    for index, url in enumerate(urls):
        db.create(
            ExerciseRecord(
                id=f"legacy-{index}",
                title=f"Exercice {index}",
                section=SectionId.COMMUNIQUER_QUOTIDIEN,
                level=Level.A1,
                source_url=url,
                categories=["Au-travail"],
            )
        )
    return urls


def test_migrate_ids_step_dry_run_writes_mapping_only(db: ExerciseDB, tmp_path: Path) -> None:
    urls = _seed_legacy_ids(db)
    out = tmp_path / "reports" / "mapping.json"

    result = MigrateIdsStep(out=out).run(_context(db, _DictFetcher({})))

    assert result.success
    assert result.data["changed"] == 2
    assert result.data["applied"] == 0
    mapping = json.loads(out.read_text(encoding="utf-8"))
    assert mapping == {"legacy-0": generate_short_id(urls[0]), "legacy-1": generate_short_id(urls[1])}
    assert [i for i, _ in db.list_ids_and_urls()] == ["legacy-0", "legacy-1"]


def test_migrate_ids_step_apply_reassigns_ids(db: ExerciseDB) -> None:
    urls = _seed_legacy_ids(db)

    result = MigrateIdsStep(apply=True).run(_context(db, _DictFetcher({})))

    assert result.data["applied"] == 2
    for url in urls:
        record = db.get(generate_short_id(url))
        assert record is not None
        assert record.source_url == url
        assert record.categories == ["Au-travail"]
    assert db.get("legacy-0") is None

    again = MigrateIdsStep(apply=True).run(_context(db, _DictFetcher({})))
    assert again.data["changed"] == 0
