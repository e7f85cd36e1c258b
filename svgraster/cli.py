"""CLI entrypoints for svgraster."""

import logging
import shutil
import time
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .cache import CACHE_FILENAME
from .config import Config, EmptyOpsPolicy, PostProcessor, SizelessPolicy, load_config
from .errors import RasterizerError
from .executor import SubprocessExecutor
from .pipeline import BuildResult, run_build
from .reporting import assemble_report, write_report
from .sources import parse_source
from .workorder import VectorConversion

logger = logging.getLogger(__name__)
console = Console()
app = typer.Typer(
    help=(
        "Rasterize SVG files into Android PNG resources using operations encoded in the "
        "file name: <name>[~<op>]*.svg where <op> is tw<dp>, th<dp>, pad<w>x<h>, "
        "bg_<rrggbb|aarrggbb>, round or mipmap."
    )
)

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-C", help="Path to svgraster.yml or the directory holding it."),
]
DensitiesArgument = Annotated[
    list[str] | None,
    typer.Argument(help="Densities to generate (default: hdpi xhdpi xxhdpi xxxhdpi)."),
]
InputOption = Annotated[
    list[Path] | None,
    typer.Option("--input", "-i", help="SVG file or directory to scan; may be repeated."),
]
OutputOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Output directory, usually an Android res/ directory."),
]
CacheDirOption = Annotated[
    Path | None,
    typer.Option("--cache-dir", "-c", help="Directory holding the cache file."),
]
OpsDirOption = Annotated[
    Path | None,
    typer.Option("--svgexport-ops-dir", "-s", help="Directory for the svgexport batch file."),
]
OverrideOpsOption = Annotated[
    str | None,
    typer.Option("--override-ops", help="Override the operations of every SVG (e.g. tw32~pad60x60)."),
]
ForceFlag = Annotated[
    bool,
    typer.Option("--force", "-f", help="Regenerate every image, ignoring the cache."),
]
EmptyOpsOption = Annotated[
    EmptyOpsPolicy | None,
    typer.Option("--empty-ops", help="Policy for files without raster operations."),
]
SizelessOption = Annotated[
    SizelessPolicy | None,
    typer.Option("--sizeless", help="Policy for files with post-processing but no tw/th."),
]
PostProcessorOption = Annotated[
    PostProcessor | None,
    typer.Option("--post-processor", help="Backend for padding, background and round."),
]
OptimizeOption = Annotated[
    bool | None,
    typer.Option("--optimize/--no-optimize", help="Run optipng over generated PNGs."),
]
VerboseFlag = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging."),
]


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"svgraster {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version."),
    ] = False,
) -> None:
    """svgraster command group."""


@app.command()
def build(  # noqa: PLR0913
    densities: DensitiesArgument = None,
    config_path: ConfigPathOption = ".",
    inputs: InputOption = None,
    output: OutputOption = None,
    cache_dir: CacheDirOption = None,
    ops_dir: OpsDirOption = None,
    override_ops: OverrideOpsOption = None,
    force: ForceFlag = False,
    empty_ops: EmptyOpsOption = None,
    sizeless: SizelessOption = None,
    post_processor: PostProcessorOption = None,
    optimize: OptimizeOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Plan the build without running any tool."),
    ] = False,
    verbose: VerboseFlag = False,
) -> None:
    """Rasterize every SVG whose content or outputs changed since the last run."""
    _configure_logging(verbose)
    config = _resolve_config(
        config_path,
        densities=densities,
        inputs=inputs,
        output=output,
        cache_dir=cache_dir,
        ops_dir=ops_dir,
        override_ops=override_ops,
        force=force,
        empty_ops=empty_ops,
        sizeless=sizeless,
        post_processor=post_processor,
        optimize=optimize,
    )

    if config.force:
        console.print("[bold yellow]Force rebuild[/]: ignoring cached fingerprints.")

    start = time.perf_counter()
    try:
        result = run_build(
            config,
            SubprocessExecutor(config.tools, config.ops_dir),
            dry_run=dry_run,
            on_progress=_print_stage,
        )
    except RasterizerError as exc:
        console.print(f"[bold red]Build failed[/]: {exc}")
        raise typer.Exit(code=1) from exc

    _print_summary(result, config, dry_run=dry_run)
    if dry_run:
        return

    report = assemble_report(result, duration_seconds=time.perf_counter() - start)
    try:
        report_path = write_report(report, config.cache_dir)
    except OSError as exc:
        logger.warning("Unable to write build report: %s", exc)
        result.warnings.append(f"Unable to write build report in {_display_path(config.cache_dir)}: {exc}")
    else:
        console.print(
            "[bold green]Report[/]: "
            f"{_display_path(report_path)} (duration {report.duration_seconds:.2f}s)"
        )
    _print_warnings(result)


@app.command()
def plan(  # noqa: PLR0913
    densities: DensitiesArgument = None,
    config_path: ConfigPathOption = ".",
    inputs: InputOption = None,
    output: OutputOption = None,
    cache_dir: CacheDirOption = None,
    override_ops: OverrideOpsOption = None,
    force: ForceFlag = False,
    empty_ops: EmptyOpsOption = None,
    sizeless: SizelessOption = None,
    verbose: VerboseFlag = False,
) -> None:
    """Print the work order the next build would execute, as JSON."""
    _configure_logging(verbose)
    config = _resolve_config(
        config_path,
        densities=densities,
        inputs=inputs,
        output=output,
        cache_dir=cache_dir,
        override_ops=override_ops,
        force=force,
        empty_ops=empty_ops,
        sizeless=sizeless,
    )
    try:
        result = run_build(config, dry_run=True)
    except RasterizerError as exc:
        console.print(f"[bold red]Planning failed[/]: {exc}")
        raise typer.Exit(code=1) from exc

    console.print_json(data=_plan_payload(result))


@app.command()
def convert(
    source: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, resolve_path=True, help="SVG file to convert."),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Destination XML (default: <name>.xml next to the SVG)."),
    ] = None,
    config_path: ConfigPathOption = ".",
    show: Annotated[
        bool,
        typer.Option("--print", help="Print the generated VectorDrawable."),
    ] = False,
    verbose: VerboseFlag = False,
) -> None:
    """Convert a single SVG into an Android VectorDrawable."""
    _configure_logging(verbose)
    config = _load(config_path)
    if output is None:
        output = source.parent / f"{parse_source(source).base_name}.xml"

    executor = SubprocessExecutor(config.tools, config.ops_dir)
    try:
        executor.convert_to_vector([VectorConversion(source=source, output=output.resolve())])
    except RasterizerError as exc:
        console.print(f"[bold red]Conversion failed[/]: {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold green]Converted[/]: {_display_path(source)} -> {_display_path(output)}")
    if show:
        console.print(output.read_text(encoding="utf-8"), markup=False, highlight=False)


@app.command()
def clean(
    config_path: ConfigPathOption = ".",
    cache_dir: CacheDirOption = None,
    outputs: Annotated[
        bool,
        typer.Option("--outputs", help="Also remove the generated output directory."),
    ] = False,
) -> None:
    """Remove the cache file (and optionally the generated resources)."""
    config = _resolve_config(config_path, cache_dir=cache_dir)
    targets: list[tuple[str, Path]] = [("cache", config.cache_dir / CACHE_FILENAME)]
    if outputs:
        targets.append(("generated resources", config.output_dir))

    removed = 0
    for label, path in targets:
        if path.exists():
            console.print(f"[bold green]Removing[/]: {label} ({_display_path(path)})")
            _remove_path(path)
            removed += 1
        else:
            console.print(f"[bold yellow]Skipping[/]: {label} ({_display_path(path)}) not found")

    console.print(f"[bold green]Clean complete[/]: removed {removed} item(s).")


def _resolve_config(  # noqa: PLR0913
    config_path: str,
    *,
    densities: list[str] | None = None,
    inputs: list[Path] | None = None,
    output: Path | None = None,
    cache_dir: Path | None = None,
    ops_dir: Path | None = None,
    override_ops: str | None = None,
    force: bool = False,
    empty_ops: EmptyOpsPolicy | None = None,
    sizeless: SizelessPolicy | None = None,
    post_processor: PostProcessor | None = None,
    optimize: bool | None = None,
) -> Config:
    config = _load(config_path)
    update: dict[str, Any] = {}
    if densities:
        update["densities"] = list(densities)
    if inputs:
        update["input_paths"] = [path.resolve() for path in inputs]
    if output is not None:
        update["output_dir"] = output.resolve()
    if cache_dir is not None:
        update["cache_dir"] = cache_dir.resolve()
    if ops_dir is not None:
        update["ops_dir"] = ops_dir.resolve()
    if override_ops:
        update["override_ops"] = override_ops
    if force:
        update["force"] = True
    if empty_ops is not None:
        update["empty_ops_policy"] = empty_ops
    if sizeless is not None:
        update["sizeless_policy"] = sizeless

    tools_update: dict[str, Any] = {}
    if post_processor is not None:
        tools_update["post_processor"] = post_processor
    if optimize is not None:
        tools_update["optimize"] = optimize
    if tools_update:
        update["tools"] = config.tools.model_copy(update=tools_update)

    return config.model_copy(update=update)


def _load(path: str) -> Config:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _print_stage(stage: str, count: int) -> None:
    if count == 0:
        return
    labels = {
        "rasterize": "performing {count} rasterization(s)...",
        "vector": "performing {count} Android vector drawable conversion(s)...",
        "post-process": "applying {count} post-processing operation(s)...",
        "optimize": "optimizing {count} generated image(s)...",
    }
    console.print(f"[bold blue]{stage}[/]: " + labels.get(stage, "{count} item(s)").format(count=count))


def _print_summary(result: BuildResult, config: Config, *, dry_run: bool) -> None:
    plan = result.plan
    order = result.work_order
    console.print(
        "[bold green]Sources[/]: "
        f"{plan.discovered} discovered; {len(plan.planned)} to generate, "
        f"{len(plan.cached)} up to date, {len(plan.ignored)} ignored"
    )
    verb = "planned" if dry_run or not result.executed else "generated"
    console.print(
        f"[bold green]Outputs[/]: {len(order.raster_outputs)} PNG(s) {verb} across "
        f"{len(plan.tiers)} densit{'y' if len(plan.tiers) == 1 else 'ies'} "
        f"({', '.join(tier.name for tier in plan.tiers)}); "
        f"{len(order.post_processing)} post-processing step(s); "
        f"{len(order.vector_conversions)} vector drawable(s) into {_display_path(config.output_dir)}"
    )
    if not plan.planned:
        console.print("[bold blue]Incremental build[/]: no changes detected; reusing existing resources.")


def _print_warnings(result: BuildResult) -> None:
    if result.warnings:
        console.print("[bold yellow]Warnings:[/]")
        for warning in result.warnings:
            console.print(f"- {warning}")


def _plan_payload(result: BuildResult) -> dict[str, Any]:
    plan = result.plan
    return {
        "densities": {tier.name: tier.scale for tier in plan.tiers},
        "planned": [source.path.as_posix() for source in plan.planned],
        "cached": [source.path.as_posix() for source in plan.cached],
        "ignored": [source.path.as_posix() for source in plan.ignored],
        "work_order": result.work_order.model_dump(mode="json"),
        "output_directories": [path.as_posix() for path in result.work_order.output_directories()],
        "optimization_targets": [path.as_posix() for path in result.work_order.optimization_targets()],
    }


def _display_path(path: Path) -> str:
    try:
        return path.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return path.as_posix()


def _remove_path(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path, ignore_errors=True)
    elif path.exists():
        path.unlink(missing_ok=True)
