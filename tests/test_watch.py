from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from watchdog.events import FileModifiedEvent, FileMovedEvent, FileOpenedEvent

from packler.core import FilesystemError
from packler.watch import (
    ChangeBatch,
    ChangeCallback,
    WatchdogChangeSource,
    WatchLoop,
    _Forwarder,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ManualSource:
    def __init__(self) -> None:
        self.callback: ChangeCallback | None = None
        self.unsubscribed = False

    def subscribe(self, root: Path, callback: ChangeCallback):
        self.callback = callback

        def _stop() -> None:
            self.unsubscribed = True

        return _stop


async def _drive(
    loop: WatchLoop, source: ManualSource, clock: FakeClock, times: list[float]
) -> None:
    while source.callback is None:
        await asyncio.sleep(0)
    for n, t in enumerate(times, start=1):
        clock.now = t
        source.callback(ChangeBatch(paths=(Path(f"assets/images/{n}.png"),)))
        while loop.processed < n:
            await asyncio.sleep(0)
    source.callback(None)


def _watch(
    tmp_path: Path, times: list[float], on_change
) -> tuple[WatchLoop, ManualSource]:
    source = ManualSource()
    clock = FakeClock()
    loop = WatchLoop(tmp_path, on_change, source=source, clock=clock)

    async def _main() -> None:
        await asyncio.gather(loop.run(), _drive(loop, source, clock, times))

    asyncio.run(_main())
    return loop, source


def test_burst_rebuilds_once(tmp_path: Path) -> None:
    builds: list[int] = []

    async def rebuild() -> None:
        builds.append(1)

    loop, source = _watch(tmp_path, [1.0, 10.0, 10.1, 10.5, 12.0, 13.0], rebuild)

    # 1.0: inside the window opened at start; 12.0: exactly 2s, not beyond it
    assert loop.processed == 6
    assert loop.rebuilds == 2
    assert len(builds) == 2
    assert source.unsubscribed


def test_failed_rebuild_keeps_watching(tmp_path: Path) -> None:
    calls: list[int] = []

    async def rebuild() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    loop, _ = _watch(tmp_path, [5.0, 10.0], rebuild)

    assert calls == [1, 1]
    assert loop.rebuilds == 2


def test_forwarder_skips_reads() -> None:
    got: list[ChangeBatch | None] = []
    fwd = _Forwarder(got.append)

    fwd.dispatch(FileOpenedEvent("/src/assets/css/main.scss"))
    fwd.dispatch(FileModifiedEvent("/src/assets/css/main.scss"))
    fwd.dispatch(FileMovedEvent("/src/assets/a.png", "/src/assets/b.png"))

    assert got == [
        ChangeBatch(paths=(Path("/src/assets/css/main.scss"),), event_type="modified"),
        ChangeBatch(
            paths=(Path("/src/assets/a.png"), Path("/src/assets/b.png")),
            event_type="moved",
        ),
    ]


def test_event_inside_window_is_dropped_and_loop_goes_on(tmp_path: Path) -> None:
    builds: list[int] = []

    async def rebuild() -> None:
        builds.append(1)

    loop, source = _watch(tmp_path, [0.5, 5.0], rebuild)

    assert loop.processed == 2
    assert loop.rebuilds == 1
    assert builds == [1]
    assert source.unsubscribed


def test_missing_root_is_a_filesystem_error(tmp_path: Path) -> None:
    async def rebuild() -> None:
        pass

    loop = WatchLoop(tmp_path / "nope", rebuild, source=WatchdogChangeSource())
    with pytest.raises(FilesystemError, match="Cannot watch"):
        asyncio.run(loop.run())
