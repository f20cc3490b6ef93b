"""Search-as-you-type debounce with last-writer-wins result application."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Callable, Sequence

if TYPE_CHECKING:
    from clipvault.config import ClipvaultSettings
    from clipvault.search.repository import HighlightRepository


LOGGER = logging.getLogger(__name__)

DEFAULT_SEARCH_DEBOUNCE_SECONDS = 0.2


@dataclass(frozen=True, slots=True)
class DebouncedSearch:
    generation: int
    query: str
    results: tuple[Any, ...]
    applied: bool


class SearchDebouncer:
    """Run a search only after ``delay_seconds`` without a newer request.

    Every :meth:`submit` starts a new generation and cancels the pending
    delay of the previous one. A search that already started is never
    aborted; its results are applied only if no later generation has been
    applied in the meantime.
    """

    def __init__(
        self,
        search: Callable[[str], Sequence[Any]],
        *,
        delay_seconds: float = DEFAULT_SEARCH_DEBOUNCE_SECONDS,
        on_results: Callable[[DebouncedSearch], None] | None = None,
    ) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")
        self._search = search
        self._delay_seconds = delay_seconds
        self._on_results = on_results
        self._generation = 0
        self._applied_generation = 0
        self._pending: asyncio.Task[None] | None = None
        self._latest: DebouncedSearch | None = None

    @classmethod
    def from_settings(
        cls,
        repository: "HighlightRepository",
        settings: "ClipvaultSettings",
        *,
        on_results: Callable[[DebouncedSearch], None] | None = None,
    ) -> "SearchDebouncer":
        """Debounce :meth:`HighlightRepository.search` by the configured delay."""

        return cls(
            repository.search,
            delay_seconds=settings.search_debounce_seconds,
            on_results=on_results,
        )

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def latest(self) -> DebouncedSearch | None:
        """Most recently applied result set."""

        return self._latest

    def cancel(self) -> None:
        """Drop the pending delay, if any, without issuing a new query."""

        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def submit(self, query: str) -> DebouncedSearch | None:
        """Debounce ``query``; ``None`` means a newer request superseded it."""

        self.cancel()
        generation = self._generation
        wait = asyncio.create_task(asyncio.sleep(self._delay_seconds))
        self._pending = wait
        try:
            await wait
        except asyncio.CancelledError:
            if generation != self._generation:
                return None
            raise

        if generation != self._generation:
            return None
        self._pending = None

        results = tuple(await asyncio.to_thread(self._search, query))
        applied = generation > self._applied_generation
        outcome = DebouncedSearch(generation=generation, query=query, results=results, applied=applied)
        if not applied:
            LOGGER.debug("Dropping stale results for %r (generation %d)", query, generation)
            return outcome

        self._applied_generation = generation
        self._latest = outcome
        if self._on_results is not None:
            self._on_results(outcome)
        return outcome
