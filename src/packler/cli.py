from __future__ import annotations

import argparse
import asyncio
import uuid
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from packler.core import (
    ComponentNotImplemented,
    LockError,
    PacklerConfig,
    PacklerError,
    Settings,
    bind,
    clear_bindings,
    configure_logging,
    get_logger,
    load_settings,
    output_root_lock,
)
from packler.pipeline import BuildOrchestrator
from packler.pipeline.report import Status
from packler.stages.deploy import BucketParams, deploy_assets
from packler.watch import WatchLoop

console = Console()
log = get_logger("packler")


class Component(str, Enum):
    ASSETS = "assets"
    BACKEND = "backend"
    FRONTEND = "frontend"


class Action(str, Enum):
    BUILD = "build"
    CLEAN = "clean"
    DEPLOY = "deploy"


class ExitCode(IntEnum):
    OK = 0
    FAILED = 1
    USAGE = 2
    PARTIAL = 3
    NOT_IMPLEMENTED = 4
    LOCKED = 5


# least to most severe
_SEVERITY = (
    ExitCode.OK,
    ExitCode.PARTIAL,
    ExitCode.NOT_IMPLEMENTED,
    ExitCode.LOCKED,
    ExitCode.FAILED,
)


def worst(codes: Iterable[ExitCode]) -> ExitCode:
    return max(codes, key=_SEVERITY.index, default=ExitCode.OK)


def exit_code_for(status: Status) -> ExitCode:
    match status:
        case "success":
            return ExitCode.OK
        case "partial":
            return ExitCode.PARTIAL
        case "failed":
            return ExitCode.FAILED


def _add_components_arg(
    p: argparse.ArgumentParser, *, dest: str, default: object
) -> None:
    p.add_argument(
        "-c",
        "--components",
        dest=dest,
        action="append",
        choices=[c.value for c in Component],
        default=default,
        help="Components to process (repeatable), e.g. -c assets -c frontend. Default: assets",
    )


def requested_components(args: argparse.Namespace) -> list[Component]:
    """
    -c given before and after the subcommand, in order, duplicates dropped.
    """
    names = [*(args.components or []), *getattr(args, "sub_components", [])]
    return [Component(c) for c in dict.fromkeys(names or [Component.ASSETS.value])]


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="packler", description="Packler asset tasks")
    _add_components_arg(p, dest="components", default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    build = sub.add_parser(
        "build", help="Fingerprint images, compile stylesheets, write the manifest"
    )
    build.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Automatically rebuild the component(s) if their source changes",
    )
    sub.add_parser("clean", help="Remove generated assets")
    sub.add_parser("deploy", help="Build and upload assets to the bucket")

    for sp in sub.choices.values():
        _add_components_arg(sp, dest="sub_components", default=argparse.SUPPRESS)

    return p


@dataclass(slots=True)
class Run:
    settings: Settings
    config: PacklerConfig
    action: Action
    components: list[Component]
    watch: bool = False

    def orchestrator(self) -> BuildOrchestrator:
        return BuildOrchestrator(self.config, logger=log)

    async def start(self) -> ExitCode:
        codes = [await self._run_component(c) for c in self.components]
        return worst(codes)

    async def _run_component(self, component: Component) -> ExitCode:
        match component:
            case Component.ASSETS:
                try:
                    return await self._assets()
                except PacklerError as e:
                    log.error("Assets failed", action=self.action.value, error=str(e))
                    return ExitCode.FAILED
            case Component.BACKEND | Component.FRONTEND:
                err = ComponentNotImplemented(component.value, self.action.value)
                log.error(str(err), component=component.value)
                return ExitCode.NOT_IMPLEMENTED

    async def _assets(self) -> ExitCode:
        orchestrator = self.orchestrator()
        match self.action:
            case Action.BUILD:
                with console.status("[bold]build[/]", spinner="dots"):
                    result = await orchestrator.build()
                log.debug("Build report", **result.report.to_dict())
                code = exit_code_for(result.report.status)
                if self.watch:
                    loop = WatchLoop(
                        self.config.assets_source_dir, orchestrator.build, logger=log
                    )
                    await loop.run()
                return code
            case Action.CLEAN:
                log.info("Cleaning assets")
                orchestrator.clean()
                return ExitCode.OK
            case Action.DEPLOY:
                with console.status("[bold]deploy[/]", spinner="dots"):
                    result, report = await deploy_assets(
                        orchestrator, BucketParams.from_settings(self.settings), logger=log
                    )
                return worst(
                    [exit_code_for(result.report.status), exit_code_for(report.status)]
                )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        s = load_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration[/red]\n{e}")
        return int(ExitCode.FAILED)

    configure_logging(level=s.log_level, fmt=s.log_format)

    run_id = uuid.uuid4().hex
    bind(run_id=run_id, command=args.cmd)

    components = requested_components(args)
    run = Run(
        settings=s,
        config=PacklerConfig.from_settings(s),
        action=Action(args.cmd),
        components=components,
        watch=bool(getattr(args, "watch", False)),
    )

    console.print(
        Panel.fit(
            Text(
                f"packler - {args.cmd}\nrun_id={run_id}\n"
                f"components={','.join(c.value for c in components)}",
                style="bold",
            ),
            title="Run",
        )
    )

    try:
        with output_root_lock(run.config.lock_file()):
            exit_code = asyncio.run(run.start())
    except LockError as e:
        log.error(str(e))
        exit_code = ExitCode.LOCKED
    except PacklerError as e:
        log.error("Run failed", error=str(e))
        exit_code = ExitCode.FAILED
    except KeyboardInterrupt:
        log.info("Interrupted")
        exit_code = ExitCode.OK

    tbl = Table(title="Result", show_header=True, box=None)
    tbl.add_row(
        "status",
        "[green]ok[/green]"
        if exit_code == ExitCode.OK
        else f"[red]{exit_code.name.lower()}[/red]",
    )
    tbl.add_row("manifest", str(run.config.metadata_file()))
    console.print(tbl)
    clear_bindings()

    return int(exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
