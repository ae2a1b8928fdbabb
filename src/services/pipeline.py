"""
Pipeline principal: historique -> resolution -> export.

Pipeline pilote la session navigateur pour obtenir l'historique, confie
chaque titre au moteur de resolution et remet les enregistrements termines
aux puits (CSV, progression) dans l'ordre de l'historique.

Concurrence:
- la session navigateur est utilisee sequentiellement
- plusieurs titres sont resolus en parallele, au plus max_concurrency a la fois
- la remise aux puits passe par une file bornee: si le puits est lent,
  l'extraction attend au lieu d'accumuler un arriere illimite

Annulation (ex: Ctrl+C): les resolutions en cours sont abandonnees et leurs
enregistrements partiels ne sont pas emis; ceux deja remis au puits restent.

Le puits d'enregistrements est toujours ferme, avec completed=False si
l'extraction n'est pas allee a son terme. Le puits de progression n'est
termine que s'il a ete demarre.
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from loguru import logger

from src.adapters.browser.login import LoginMethod
from src.adapters.browser.session import BrowserSession
from src.core.ports.sinks import IProgressSink, IRecordSink
from src.core.value_objects import IdentityRecord, WatchHistoryEntry
from src.services.resolution import ResolutionEngine


@dataclass
class PipelineResult:
    """Resultat d'une execution.

    Attributes:
        resolved: Titres identifies par au moins un fournisseur
        unmatched: Titres sans aucun resultat
    """

    resolved: int = 0
    unmatched: int = 0

    @property
    def total(self) -> int:
        """Nombre total de titres traites."""
        return self.resolved + self.unmatched


class Pipeline:
    """
    Racine de composition de l'execution.

    Example:
        pipeline = Pipeline(browser, engine, CSVRecordSink(path), RichProgressSink())
        result = await pipeline.run(ManualLogin(confirmation=event))
    """

    def __init__(
        self,
        browser: BrowserSession,
        engine: ResolutionEngine,
        record_sink: IRecordSink,
        progress_sink: Optional[IProgressSink] = None,
        max_concurrency: int = 4,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency doit etre >= 1")
        self._browser = browser
        self._engine = engine
        self._record_sink = record_sink
        self._progress_sink = progress_sink
        self._max_concurrency = max_concurrency

    async def run(self, login_method: LoginMethod) -> PipelineResult:
        """
        Execute le pipeline complet.

        Args:
            login_method: Methode de connexion a la plateforme

        Returns:
            PipelineResult avec les compteurs

        Raises:
            BrowserError, AuthError: Echec de session, fatal pour l'execution
        """
        result = PipelineResult()
        started = False
        completed = False
        try:
            await self._browser.start()
            await self._browser.login(login_method)
            if self._progress_sink:
                self._progress_sink.start("Resolution des identifiants")
                started = True
            await self._process(self._browser.scrape(), result)
            completed = True
        finally:
            await self._browser.shutdown()
            await self._record_sink.close(completed=completed)
            if started:
                self._progress_sink.finish()

        logger.info(
            f"Termine: {result.total} titre(s), {result.resolved} identifie(s), "
            f"{result.unmatched} sans resultat"
        )
        return result

    async def _process(
        self,
        entries: AsyncIterator[WatchHistoryEntry],
        result: PipelineResult,
    ) -> None:
        """Resout les entrees en parallele et les emet dans l'ordre d'origine."""
        semaphore = asyncio.Semaphore(self._max_concurrency)
        handoff: asyncio.Queue[Optional[asyncio.Task]] = asyncio.Queue(
            maxsize=self._max_concurrency
        )
        pending: set[asyncio.Task] = set()

        async def resolve(entry: WatchHistoryEntry) -> IdentityRecord:
            async with semaphore:
                return await self._engine.resolve(entry)

        async def produce() -> None:
            try:
                async for entry in entries:
                    task = asyncio.ensure_future(resolve(entry))
                    pending.add(task)
                    await handoff.put(task)
            except Exception:
                # Laisser le consommateur emettre ce qui est deja planifie
                await handoff.put(None)
                raise
            await handoff.put(None)

        producer = asyncio.ensure_future(produce())
        try:
            while True:
                task = await handoff.get()
                if task is None:
                    break
                record = await task
                pending.discard(task)
                await self._emit(record, result)
            await producer
        finally:
            producer.cancel()
            for task in pending:
                task.cancel()
            await asyncio.gather(producer, *pending, return_exceptions=True)

    async def _emit(self, record: IdentityRecord, result: PipelineResult) -> None:
        await self._record_sink.write(record)
        if self._progress_sink:
            self._progress_sink.advance(record)
        if record.is_matched:
            result.resolved += 1
        else:
            result.unmatched += 1
