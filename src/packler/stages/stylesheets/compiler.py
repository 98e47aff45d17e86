from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from packler.core import ExternalToolError, get_logger
from packler.core.config import SassStyle

log = get_logger(__name__)


async def run_command(name: str, path: Path, args: Sequence[str]) -> None:
    """
    Run an external binary and make sure it completes successfully.
    stdout/stderr are inherited so compiler diagnostics reach the terminal.
    """
    log.debug("Run external binary", name=name, bin=str(path), args=list(args))
    try:
        proc = await asyncio.create_subprocess_exec(str(path), *args)
    except OSError as e:
        log.error("Error spawning external binary", name=name, error=str(e))
        raise ExternalToolError(f"error spawning {name} call: {e}") from e

    code = await proc.wait()
    if code != 0:
        log.error("External binary returned a bad status", name=name, status=code)
        raise ExternalToolError(f"{name} call returned a bad status ({code})")


@dataclass(frozen=True, slots=True)
class SassCompiler:
    path: Path
    style: SassStyle = "expanded"
    name: str = "sass"

    def args(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            "--no-source-map",
            "-s",
            self.style,
            str(input_path),
            str(output_path),
        ]

    async def compile(self, input_path: Path, output_path: Path) -> None:
        await run_command(self.name, self.path, self.args(input_path, output_path))
