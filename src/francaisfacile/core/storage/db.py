"""SQLite : exercices et étiquettes de catégorie."""

from __future__ import annotations

import datetime
import logging
import sqlite3
from pathlib import Path
from typing import Any, Protocol

from francaisfacile.core.identity import IdMigration
from francaisfacile.core.models import ExerciseRecord, Level, SectionId

logger = logging.getLogger(__name__)

# Schéma DDL
STORAGE_DIR = Path(__file__).parent
SCHEMA_SQL = (STORAGE_DIR / "schema.sql").read_text(encoding="utf-8")

# Colonnes modifiables via update() ; id et source_url ne changent jamais ici.
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "section",
        "level",
        "audio_url",
        "h5p_embed_url",
        "thumbnail_url",
        "transcript",
        "published_at",
    }
)

_RECORD_COLUMNS = (
    "id, source_url, title, section, level, audio_url, h5p_embed_url, "
    "thumbnail_url, transcript, published_at"
)


class ExerciseStore(Protocol):
    """Ce dont le crawl a besoin côté persistance."""

    def find_by_source_url(self, source_url: str) -> ExerciseRecord | None:
        ...

    def list_ids_and_urls(self) -> list[tuple[str, str]]:
        ...

    def create(self, record: ExerciseRecord) -> None:
        ...

    def update(self, source_url: str, fields: dict[str, Any]) -> bool:
        ...

    def add_category_tag(self, exercise_id: str, category: str) -> bool:
        ...


class RefreshableStore(ExerciseStore, Protocol):
    """Store permettant aussi de rafraîchir le détail des exercices existants."""

    def get(self, exercise_id: str) -> ExerciseRecord | None:
        ...

    def list_missing_quiz(self) -> list[ExerciseRecord]:
        ...


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _to_db_value(value: Any) -> Any:
    if isinstance(value, (Level, SectionId)):
        return value.value
    if isinstance(value, datetime.date):
        return value.isoformat()
    return value


class ExerciseDB:
    """Accès à la base des exercices (implémente ExerciseStore)."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init(self) -> None:
        """Crée les tables si nécessaire."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        finally:
            conn.close()

    def _categories(self, conn: sqlite3.Connection, exercise_id: str) -> list[str]:
        rows = conn.execute(
            "SELECT category FROM exercise_categories WHERE exercise_id=? ORDER BY rowid",
            (exercise_id,),
        ).fetchall()
        return [r[0] for r in rows]

    def _row_to_record(self, conn: sqlite3.Connection, row: tuple) -> ExerciseRecord:
        published = row[9]
        return ExerciseRecord(
            id=row[0],
            source_url=row[1],
            title=row[2],
            section=SectionId(row[3]),
            level=Level(row[4]),
            audio_url=row[5],
            h5p_embed_url=row[6],
            thumbnail_url=row[7],
            transcript=row[8],
            published_at=datetime.date.fromisoformat(published) if published else None,
            categories=self._categories(conn, row[0]),
        )

    def find_by_source_url(self, source_url: str) -> ExerciseRecord | None:
        conn = self._conn()
        try:
            row = conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM exercises WHERE source_url=?",
                (source_url,),
            ).fetchone()
            return self._row_to_record(conn, row) if row else None
        finally:
            conn.close()

    def get(self, exercise_id: str) -> ExerciseRecord | None:
        """Retourne l'exercice d'identifiant donné ou None."""
        conn = self._conn()
        try:
            row = conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM exercises WHERE id=?",
                (exercise_id,),
            ).fetchone()
            return self._row_to_record(conn, row) if row else None
        finally:
            conn.close()

    def list_ids_and_urls(self) -> list[tuple[str, str]]:
        """Toutes les paires (id, source_url), dans l'ordre de création."""
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT id, source_url FROM exercises ORDER BY created_at, rowid"
            ).fetchall()
            return [(r[0], r[1]) for r in rows]
        finally:
            conn.close()

    def list_missing_quiz(self) -> list[ExerciseRecord]:
        """Exercices sans URL de quiz (candidats à un rafraîchissement du détail)."""
        conn = self._conn()
        try:
            rows = conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM exercises "
                "WHERE h5p_embed_url IS NULL OR h5p_embed_url = '' ORDER BY created_at, rowid"
            ).fetchall()
            return [self._row_to_record(conn, row) for row in rows]
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._conn()
        try:
            return int(conn.execute("SELECT COUNT(*) FROM exercises").fetchone()[0])
        finally:
            conn.close()

    def create(self, record: ExerciseRecord) -> None:
        """
        Insère un nouvel exercice et ses étiquettes.

        Raises:
            sqlite3.IntegrityError: id ou source_url déjà présents.
        """
        now = _now_iso()
        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO exercises (id, source_url, title, section, level, audio_url,
                  h5p_embed_url, thumbnail_url, transcript, published_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.source_url,
                    record.title,
                    record.section.value,
                    record.level.value,
                    record.audio_url,
                    record.h5p_embed_url,
                    record.thumbnail_url,
                    record.transcript,
                    _to_db_value(record.published_at),
                    now,
                    now,
                ),
            )
            conn.executemany(
                "INSERT OR IGNORE INTO exercise_categories (exercise_id, category) VALUES (?, ?)",
                [(record.id, c) for c in record.categories],
            )
            conn.commit()
        finally:
            conn.close()

    def update(self, source_url: str, fields: dict[str, Any]) -> bool:
        """
        Met à jour les champs donnés de l'exercice d'URL source_url.
        Retourne False si aucun exercice ne correspond.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Champs non modifiables : {', '.join(sorted(unknown))}")
        if not fields:
            return self.find_by_source_url(source_url) is not None
        columns = sorted(fields)
        assignments = ", ".join(f"{c}=?" for c in columns)
        values = [_to_db_value(fields[c]) for c in columns]
        conn = self._conn()
        try:
            cur = conn.execute(
                f"UPDATE exercises SET {assignments}, updated_at=? WHERE source_url=?",
                (*values, _now_iso(), source_url),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def add_category_tag(self, exercise_id: str, category: str) -> bool:
        """Ajoute une étiquette de catégorie ; retourne False si elle existait déjà."""
        conn = self._conn()
        try:
            cur = conn.execute(
                "INSERT OR IGNORE INTO exercise_categories (exercise_id, category) VALUES (?, ?)",
                (exercise_id, category),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def reassign_ids(self, plan: list[IdMigration]) -> int:
        """
        Applique un plan de migration d'identifiants en une transaction
        (exercices + étiquettes). Retourne le nombre d'identifiants modifiés.
        """
        changed = [m for m in plan if m.changed]
        if not changed:
            return 0
        conn = self._conn()
        try:
            # Deux passes : les nouveaux ids peuvent reprendre d'anciens ids du plan.
            for m in changed:
                tmp_id = f"__migrating__{m.old_id}"
                conn.execute("UPDATE exercises SET id=? WHERE id=?", (tmp_id, m.old_id))
                conn.execute(
                    "UPDATE exercise_categories SET exercise_id=? WHERE exercise_id=?",
                    (tmp_id, m.old_id),
                )
            for m in changed:
                tmp_id = f"__migrating__{m.old_id}"
                conn.execute("UPDATE exercises SET id=? WHERE id=?", (m.new_id, tmp_id))
                conn.execute(
                    "UPDATE exercise_categories SET exercise_id=? WHERE exercise_id=?",
                    (m.new_id, tmp_id),
                )
            conn.commit()
        except sqlite3.DatabaseError:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("Reassigned %d exercise ids", len(changed))
        return len(changed)
