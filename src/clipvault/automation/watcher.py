"""Debounced clippings-file watcher with asyncio queue bridge."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import threading
from typing import Awaitable, Callable

from watchdog.events import PatternMatchingEventHandler
from watchdog.observers import Observer


LOGGER = logging.getLogger(__name__)

DEFAULT_WATCH_DEBOUNCE_SECONDS = 2.0


class DebouncedClippingsHandler(PatternMatchingEventHandler):
    """Coalesce bursts of create/modify events for one clippings file."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[Path],
        file_name: str,
        debounce_seconds: float = DEFAULT_WATCH_DEBOUNCE_SECONDS,
    ) -> None:
        super().__init__(
            patterns=[f"*/{file_name}", file_name],
            ignore_directories=True,
            case_sensitive=False,
        )
        self._file_name = file_name.casefold()
        self._loop = loop
        self._queue = queue
        self._debounce_seconds = debounce_seconds
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def _emit_path(self, raw_path: str) -> None:
        with self._lock:
            self._timers.pop(raw_path, None)
        self._loop.call_soon_threadsafe(self._queue.put_nowait, Path(raw_path))

    def _schedule(self, raw_path: str) -> None:
        with self._lock:
            existing = self._timers.pop(raw_path, None)
            if existing is not None:
                existing.cancel()

            timer = threading.Timer(self._debounce_seconds, self._emit_path, args=(raw_path,))
            timer.daemon = True
            self._timers[raw_path] = timer
            timer.start()

    def on_created(self, event) -> None:  # type: ignore[override]
        self._schedule(str(event.src_path))

    def on_modified(self, event) -> None:  # type: ignore[override]
        self._schedule(str(event.src_path))

    def on_moved(self, event) -> None:  # type: ignore[override]
        # Atomic replace: a temp file renamed over the clippings file.
        dest_path = str(event.dest_path)
        if Path(dest_path).name.casefold() == self._file_name:
            self._schedule(dest_path)

    def close(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()


class ClippingsFileWatcher:
    """Invoke ``callback`` each time the clippings file settles after a change."""

    def __init__(
        self,
        clippings_path: str | Path,
        callback: Callable[[Path], Awaitable[None]],
        debounce_seconds: float = DEFAULT_WATCH_DEBOUNCE_SECONDS,
    ) -> None:
        self._clippings_path = Path(clippings_path).expanduser()
        self._callback = callback
        self._debounce_seconds = debounce_seconds
        self._queue: asyncio.Queue[Path] | None = None
        self._handler: DebouncedClippingsHandler | None = None
        self._observer: Observer | None = None
        self._consumer_task: asyncio.Task[None] | None = None

    @property
    def clippings_path(self) -> Path:
        return self._clippings_path

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            path = await self._queue.get()
            try:
                await self._callback(path)
            except Exception:  # pragma: no cover
                LOGGER.exception("Watcher callback failed for %s", path)
            finally:
                self._queue.task_done()

    async def start(self) -> None:
        if self._observer is not None:
            return
        watch_dir = self._clippings_path.parent
        if not watch_dir.exists() or not watch_dir.is_dir():
            raise ValueError(f"Clippings directory does not exist or is not a directory: {watch_dir}")

        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._handler = DebouncedClippingsHandler(
            loop=loop,
            queue=self._queue,
            file_name=self._clippings_path.name,
            debounce_seconds=self._debounce_seconds,
        )

        observer = Observer()
        observer.schedule(self._handler, str(watch_dir), recursive=False)
        observer.start()
        self._observer = observer
        self._consumer_task = asyncio.create_task(self._consume())

    def stop(self) -> None:
        observer = self._observer
        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)
            self._observer = None

        if self._handler is not None:
            self._handler.close()
            self._handler = None

        if self._consumer_task is not None:
            self._consumer_task.cancel()
            self._consumer_task = None
