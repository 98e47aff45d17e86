"""
Debounced rebuild on source changes.

The notification source calls back on its own thread; batches cross into the
event loop through a bounded queue owned by `WatchLoop.run`, which is the only
consumer. A batch arriving less than `debounce` seconds after the last
rebuild is dropped, not deferred.
"""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from packler.core import FilesystemError, ILogger, get_logger

DEBOUNCE_SECONDS = 2.0

# Reads of the sources (including our own builds) are not changes.
IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


@dataclass(frozen=True, slots=True)
class ChangeBatch:
    paths: tuple[Path, ...]
    event_type: str = "modified"


# None signals end of stream.
ChangeCallback = Callable[[ChangeBatch | None], None]
Unsubscribe = Callable[[], None]


class ChangeSource(Protocol):
    def subscribe(self, root: Path, callback: ChangeCallback) -> Unsubscribe:
        """Deliver change batches under `root` (recursive) to `callback`."""
        ...


class _Forwarder(FileSystemEventHandler):
    def __init__(self, callback: ChangeCallback) -> None:
        super().__init__()
        self._callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        raw = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            raw.append(dest)
        paths = tuple(Path(os.fsdecode(p)) for p in raw)
        self._callback(ChangeBatch(paths=paths, event_type=event.event_type))


class WatchdogChangeSource:
    def subscribe(self, root: Path, callback: ChangeCallback) -> Unsubscribe:
        if not root.is_dir():
            raise FilesystemError(f"Cannot watch '{root}': not a directory")
        observer = Observer()
        try:
            observer.schedule(_Forwarder(callback), str(root), recursive=True)
            observer.start()
        except OSError as e:
            raise FilesystemError(f"Cannot watch '{root}': {e}") from e

        def _stop() -> None:
            observer.stop()
            observer.join()

        return _stop


class WatchLoop:
    def __init__(
        self,
        root: Path,
        on_change: Callable[[], Awaitable[Any]],
        *,
        source: ChangeSource | None = None,
        debounce: float = DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        queue_size: int = 64,
        logger: ILogger | None = None,
    ) -> None:
        self.root = Path(root)
        self.on_change = on_change
        self.source: ChangeSource = source or WatchdogChangeSource()
        self.debounce = float(debounce)
        self.clock = clock
        self.queue_size = queue_size
        self.log = (logger or get_logger("packler.watch")).bind(root=str(self.root))

        self.processed = 0
        self.rebuilds = 0

    async def run(self) -> None:
        """
        Block until the source ends its stream (never, for the filesystem
        source). Rebuilds run one at a time, on this task.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[ChangeBatch | None] = asyncio.Queue(maxsize=self.queue_size)

        def _offer(batch: ChangeBatch | None) -> None:
            if queue.full():
                if batch is not None:
                    self.log.debug("Watch queue full, dropping batch")
                    return
                queue.get_nowait()
            queue.put_nowait(batch)

        def _callback(batch: ChangeBatch | None) -> None:
            loop.call_soon_threadsafe(_offer, batch)

        self.log.info("Start to watch", is_dir=self.root.is_dir())
        unsubscribe = self.source.subscribe(self.root, _callback)
        last_triggered = self.clock()

        try:
            while True:
                batch = await queue.get()
                if batch is None:
                    break
                self.processed += 1
                changed = [str(p) for p in batch.paths]

                if self.clock() - last_triggered > self.debounce:
                    self.log.info("Modified files, reload", changed=changed)
                    try:
                        await self.on_change()
                    except Exception:
                        self.log.exception("Rebuild failed")
                    last_triggered = self.clock()
                    self.rebuilds += 1
                else:
                    self.log.debug(
                        "Debounce", changed=changed, event_type=batch.event_type
                    )
        finally:
            unsubscribe()
            self.log.info("Stopped watching", rebuilds=self.rebuilds)
