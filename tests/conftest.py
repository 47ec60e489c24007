"""Fixtures pytest communes."""
import pytest
from pathlib import Path

from francaisfacile.core.adapters.rfi import RfiAdapter
from francaisfacile.core.models import CategoryRef, Level, SectionId

# Répertoire des fixtures
FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"

SOCIETE_A2_URL = "https://francaisfacile.rfi.fr/fr/comprendre-actualit%C3%A9-fran%C3%A7ais/soci%C3%A9t%C3%A9-a2/"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def read_fixture(fixtures_dir: Path):
    def _read(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def adapter() -> RfiAdapter:
    return RfiAdapter()


@pytest.fixture
def societe_a2() -> CategoryRef:
    return CategoryRef(
        url=SOCIETE_A2_URL,
        section=SectionId.COMPRENDRE_ACTUALITE,
        level=Level.A2,
        category="Société",
    )
