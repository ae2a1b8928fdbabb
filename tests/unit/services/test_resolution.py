"""
Tests for ResolutionEngine - multi-provider identifier resolution.

Providers are FakeProvider doubles; delays control completion order to show
that priority, not arrival order, decides the canonical result.
"""

import pytest

from src.core.errors import AuthError, ConfigError, TransportError
from src.core.value_objects import (
    MediaIds,
    MediaType,
    ServiceType,
    WatchHistoryEntry,
)
from src.services.resolution import ResolutionEngine
from tests.fixtures.providers import FakeProvider, make_result

SIMKL, TMDB, TVDB, MAL = ServiceType.SIMKL, ServiceType.TMDB, ServiceType.TVDB, ServiceType.MAL
PRIORITY = (SIMKL, TMDB, TVDB, MAL)


def engine_for(*providers: FakeProvider, priority=PRIORITY, fetch_details=False) -> ResolutionEngine:
    return ResolutionEngine(
        providers={p.service: p for p in providers},
        priority_order=priority,
        fetch_details=fetch_details,
    )


class TestConfiguration:
    """ConfigError at construction."""

    def test_no_providers(self):
        with pytest.raises(ConfigError):
            ResolutionEngine(providers={}, priority_order=PRIORITY)

    def test_duplicate_in_priority(self):
        with pytest.raises(ConfigError):
            engine_for(FakeProvider(TMDB), priority=(TMDB, SIMKL, TMDB))

    def test_priority_without_enabled_provider(self):
        with pytest.raises(ConfigError):
            engine_for(FakeProvider(TMDB), priority=(SIMKL, MAL))

    def test_effective_order_keeps_only_enabled(self):
        engine = engine_for(FakeProvider(TVDB), FakeProvider(TMDB))
        assert engine.priority_order == (TMDB, TVDB)


class TestCanonicalSelection:
    """The first provider by priority with results fixes title/year/type."""

    @pytest.mark.asyncio
    async def test_priority_beats_completion_order(self):
        simkl = FakeProvider(SIMKL, [make_result(SIMKL, "Le Titre", "2001", simkl="1")], delay=0.05)
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "The Title", "2002", tmdb="2")])

        record = await engine_for(simkl, tmdb).resolve(WatchHistoryEntry(title="The Title"))

        assert record.title == "Le Titre"
        assert record.year == "2001"
        assert record.matched_by == SIMKL
        assert record.ids == MediaIds(simkl="1", tmdb="2")

    @pytest.mark.asyncio
    async def test_higher_priority_id_never_overwritten(self):
        simkl = FakeProvider(SIMKL, [make_result(SIMKL, "Inception", "2010", simkl="1", tmdb="27205")])
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Inception", "2010", tmdb="99999")])

        record = await engine_for(simkl, tmdb).resolve(WatchHistoryEntry(title="Inception"))

        assert record.ids.tmdb == "27205"

    @pytest.mark.asyncio
    async def test_only_first_result_of_each_provider_is_merged(self):
        tmdb = FakeProvider(
            TMDB,
            [
                make_result(TMDB, "Inception", "2010", tmdb="27205"),
                make_result(TMDB, "Inception: The Cobol Job", "2010", tmdb="64956"),
            ],
        )

        record = await engine_for(tmdb).resolve(WatchHistoryEntry(title="Inception"))

        assert record.ids == MediaIds(tmdb="27205")

    @pytest.mark.asyncio
    async def test_same_result_regardless_of_delays(self):
        """Deterministic outcome whatever the arrival order."""
        def build(simkl_delay: float, tmdb_delay: float) -> ResolutionEngine:
            return engine_for(
                FakeProvider(SIMKL, [make_result(SIMKL, "A", "2000", simkl="1")], delay=simkl_delay),
                FakeProvider(TMDB, [make_result(TMDB, "B", "2001", tmdb="2")], delay=tmdb_delay),
            )

        entry = WatchHistoryEntry(title="A")
        first = await build(0.03, 0.0).resolve(entry)
        second = await build(0.0, 0.03).resolve(entry)

        assert first == second


class TestIdentifierDiscovery:
    """Providers without results are searched again with the canonical query."""

    @pytest.mark.asyncio
    async def test_canonical_query_finds_missing_ids(self):
        """Simkl finds nothing for the scraped query, TMDB answers Inception/1999."""

        def simkl_search(title, media_type, year):
            if year == 1999:
                return [make_result(SIMKL, "Inception", "1999", simkl="4242")]
            return []

        simkl = FakeProvider(SIMKL, simkl_search)
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Inception", "1999", tmdb="603")])

        record = await engine_for(simkl, tmdb).resolve(WatchHistoryEntry(title="Inception"))

        assert record.ids.tmdb == "603"
        assert record.ids.simkl == "4242"
        assert record.title == "Inception"
        assert record.year == "1999"
        assert record.matched_by == TMDB
        assert simkl.search_calls == [
            ("Inception", MediaType.MOVIE, None),
            ("Inception", MediaType.MOVIE, 1999),
        ]

    @pytest.mark.asyncio
    async def test_no_second_search_when_query_is_unchanged(self):
        simkl = FakeProvider(SIMKL, [])
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Inception", "2010", tmdb="27205")])

        await engine_for(simkl, tmdb).resolve(WatchHistoryEntry(title="inception", year=2010))

        assert len(simkl.search_calls) == 1

    @pytest.mark.asyncio
    async def test_canonical_details_add_cross_references(self):
        """TMDB details expose external_ids.tvdb_id."""
        tmdb = FakeProvider(
            TMDB,
            [make_result(TMDB, "Breaking Bad", "2008", MediaType.SERIES, tmdb="1396")],
            details=make_result(TMDB, "Breaking Bad", "2008", MediaType.SERIES, tmdb="1396", tvdb="81189"),
        )
        tvdb = FakeProvider(TVDB, [])

        record = await engine_for(tmdb, tvdb, fetch_details=True).resolve(
            WatchHistoryEntry(title="Breaking Bad", media_type=MediaType.SERIES)
        )

        assert tmdb.details_calls == [("1396", MediaType.SERIES)]
        assert record.ids == MediaIds(tmdb="1396", tvdb="81189")

    @pytest.mark.asyncio
    async def test_details_failure_keeps_search_ids(self):
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Inception", "2010", tmdb="27205")], details=None)

        record = await engine_for(tmdb, fetch_details=True).resolve(
            WatchHistoryEntry(title="Inception")
        )

        assert record.ids == MediaIds(tmdb="27205")

    @pytest.mark.asyncio
    async def test_details_not_requested_when_disabled(self):
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Inception", "2010", tmdb="27205")])

        await engine_for(tmdb, fetch_details=False).resolve(WatchHistoryEntry(title="Inception"))

        assert tmdb.details_calls == []


class TestFailurePolicy:
    """Provider failures are absorbed; the title still resolves."""

    @pytest.mark.asyncio
    async def test_transport_error_is_no_results(self):
        simkl = FakeProvider(SIMKL, error=TransportError("simkl", "connection refused"))
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Inception", "2010", tmdb="27205")])

        record = await engine_for(simkl, tmdb).resolve(WatchHistoryEntry(title="Inception"))

        assert record.matched_by == TMDB
        assert record.ids == MediaIds(tmdb="27205")

    @pytest.mark.asyncio
    async def test_auth_error_is_no_results(self):
        tvdb = FakeProvider(TVDB, error=AuthError("TVDB authentication failed"))
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Dark", "2017", MediaType.SERIES, tmdb="70523")])

        record = await engine_for(tmdb, tvdb).resolve(
            WatchHistoryEntry(title="Dark", media_type=MediaType.SERIES)
        )

        assert record.ids == MediaIds(tmdb="70523")

    @pytest.mark.asyncio
    async def test_nothing_found_gives_unmatched_record(self):
        simkl = FakeProvider(SIMKL, [])
        tmdb = FakeProvider(TMDB, error=TransportError("tmdb", "timeout"))

        entry = WatchHistoryEntry(
            title="Home Video", media_type=MediaType.SERIES, watched_on="May 1, 2024"
        )
        record = await engine_for(simkl, tmdb).resolve(entry)

        assert record.ids.is_empty()
        assert record.title == "Home Video"
        assert record.scraped_title == "Home Video"
        assert record.media_type == MediaType.SERIES
        assert record.watched_on == "May 1, 2024"
        assert record.matched_by is None

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self):
        tmdb = FakeProvider(TMDB, error=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await engine_for(tmdb).resolve(WatchHistoryEntry(title="Inception"))


class TestRecordFields:
    @pytest.mark.asyncio
    async def test_scraped_title_and_date_are_kept(self):
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "Le Fabuleux Destin", "2001", tmdb="194")])

        record = await engine_for(tmdb).resolve(
            WatchHistoryEntry(title="Amelie", watched_on="June 2, 2023")
        )

        assert record.title == "Le Fabuleux Destin"
        assert record.scraped_title == "Amelie"
        assert record.watched_on == "June 2, 2023"

    @pytest.mark.asyncio
    async def test_empty_canonical_title_falls_back_to_scraped(self):
        tmdb = FakeProvider(TMDB, [make_result(TMDB, "", None, tmdb="88888")])

        record = await engine_for(tmdb).resolve(WatchHistoryEntry(title="Mystery"))

        assert record.title == "Mystery"
