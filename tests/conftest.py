"""
Fixtures pytest partagees pour les tests watchids.

Ce module contient les fixtures communes utilisees dans les tests:
- Fabrique de FakeProvider (double de IMetadataProvider)
- Puits d'enregistrements en memoire et mock du puits de progression
- Settings de test isolees de l'environnement
"""

import os
from unittest.mock import MagicMock

import pytest

from src.config import Settings
from src.core.ports.sinks import IProgressSink
from tests.fixtures.providers import FakeProvider, ListRecordSink


@pytest.fixture
def make_provider() -> type[FakeProvider]:
    """Fabrique de FakeProvider."""
    return FakeProvider


@pytest.fixture
def record_sink() -> ListRecordSink:
    return ListRecordSink()


@pytest.fixture
def progress_sink() -> MagicMock:
    """Mock de IProgressSink."""
    return MagicMock(spec=IProgressSink)


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Settings:
    """
    Settings de test, independantes de l'environnement et du fichier .env.

    Tous les fournisseurs sont actifs; la sortie et les logs vont dans tmp_path.
    """
    for name in list(os.environ):
        if name.upper().startswith("WATCHIDS_"):
            monkeypatch.delenv(name, raising=False)
    return Settings(
        _env_file=None,
        simkl_client_id="simkl-id",
        simkl_client_secret="simkl-secret",
        tmdb_api_key="tmdb-key",
        tvdb_api_key="tvdb-key",
        mal_client_id="mal-id",
        output_path=tmp_path / "export.csv",
        log_file=tmp_path / "logs" / "watchids.log",
    )
