"""CLI entry point for mermaidpress."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from mermaidpress.config import MermaidPressConfig, load_config
from mermaidpress.config.loader import DEFAULT_CONFIG_TEMPLATE
from mermaidpress.desktop import choose_save_path, save_diagram
from mermaidpress.errors import ExportError
from mermaidpress.export.exporter import Exporter, Source
from mermaidpress.export.models import THEMES, ExportFormat, ExportParameters, RenderedSource
from mermaidpress.rasterize import STRATEGIES, create_rasterizer
from mermaidpress.samples import SAMPLES

app = typer.Typer(
    name="mermaidpress",
    help="Export Mermaid diagrams to SVG, PNG, PDF or the clipboard.",
)

config_app = typer.Typer(help="Manage mermaidpress configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: MermaidPressConfig | None = None

_LOG_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _setup_logging(cfg: MermaidPressConfig) -> None:
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JsonLogFormatter())
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler], force=True)


def _get_config() -> MermaidPressConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to mermaidpress.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _setup_logging(_config)


def _read_source(input_path: str, svg_input: bool) -> Source:
    if input_path == "-":
        text = typer.get_text_stream("stdin").read()
    else:
        path = Path(input_path)
        if not path.is_file():
            rprint(f"[red]Error:[/red] File not found: {input_path}")
            raise typer.Exit(1)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            rprint(f"[red]Error:[/red] Input is not UTF-8 text ({e.reason}): {input_path}")
            raise typer.Exit(1)
    if svg_input:
        return RenderedSource(svg=text)
    return text


def _build_exporter(cfg: MermaidPressConfig, strategy: str | None) -> Exporter:
    try:
        rasterizer = create_rasterizer(cfg, strategy)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    return Exporter(cfg, rasterizer=rasterizer)


def _print_error(e: ExportError) -> None:
    rprint(f"[red]Error:[/red] {e}")
    if e.hint:
        rprint(f"[yellow]Hint:[/yellow] {e.hint}")


@app.command()
def export(
    input_path: str = typer.Argument(..., metavar="INPUT", help="Diagram file, or '-' for stdin"),
    output: Annotated[str | None, typer.Option("--output", "-o", help="Output file")] = None,
    fmt: Annotated[
        str | None, typer.Option("--format", "-f", help="svg | png | pdf (default: from output suffix)")
    ] = None,
    theme: Annotated[str | None, typer.Option("--theme", help="Mermaid theme")] = None,
    scale: Annotated[float | None, typer.Option("--scale", help="Pixel density multiplier")] = None,
    strategy: Annotated[
        str | None, typer.Option("--strategy", help=f"Rasterizer: {' | '.join(STRATEGIES)}")
    ] = None,
    svg_input: Annotated[
        bool, typer.Option("--svg-input", help="INPUT is an already rendered SVG")
    ] = False,
) -> None:
    """Export a diagram to a file."""
    cfg = _get_config()
    if fmt is not None and fmt.lower() == ExportFormat.clipboard_png.value:
        rprint("[red]Error:[/red] clipboard-png cannot be written to a file")
        rprint("[yellow]Hint:[/yellow] Use `mermaidpress copy` to place the image on the clipboard.")
        raise typer.Exit(1)
    source = _read_source(input_path, svg_input)
    if svg_input and strategy is None:
        strategy = "canvas"
    exporter = _build_exporter(cfg, strategy)

    if output is None:
        suffix = (fmt or "png").lower()
        target = choose_save_path(default_name=f"diagram.{suffix}")
        if target is None:
            rprint("[yellow]Cancelled.[/yellow]")
            raise typer.Exit(0)
    else:
        target = Path(output)

    result = asyncio.run(
        save_diagram(exporter, source, target, scale=scale, theme=theme, fmt=fmt)
    )
    if not result.success:
        rprint(f"[red]Error:[/red] {result.error}")
        if result.stderr:
            rprint(Panel(result.stderr, title="stderr", border_style="red"))
        raise typer.Exit(1)
    rprint(f"[green]Written to[/green] {result.path}")


@app.command()
def copy(
    input_path: str = typer.Argument(..., metavar="INPUT", help="Diagram file, or '-' for stdin"),
    theme: Annotated[str | None, typer.Option("--theme", help="Mermaid theme")] = None,
    scale: Annotated[float | None, typer.Option("--scale", help="Pixel density multiplier")] = None,
    strategy: Annotated[
        str | None, typer.Option("--strategy", help=f"Rasterizer: {' | '.join(STRATEGIES)}")
    ] = None,
    svg_input: Annotated[
        bool, typer.Option("--svg-input", help="INPUT is an already rendered SVG")
    ] = False,
    verify: Annotated[
        bool, typer.Option("--verify", help="Read the clipboard back and compare")
    ] = False,
) -> None:
    """Copy a diagram to the system clipboard as PNG."""
    cfg = _get_config()
    if verify:
        cfg = cfg.model_copy(update={"clipboard": cfg.clipboard.model_copy(update={"verify": True})})
    source = _read_source(input_path, svg_input)
    if svg_input and strategy is None:
        strategy = "canvas"
    exporter = _build_exporter(cfg, strategy)

    defaults = exporter.default_parameters()
    try:
        params = ExportParameters(
            theme=theme if theme is not None else defaults.theme,
            scale=scale if scale is not None else defaults.scale,
        )
        artifact = asyncio.run(exporter.export(source, ExportFormat.clipboard_png, params))
    except ExportError as e:
        _print_error(e)
        raise typer.Exit(1)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]Copied[/green] {artifact.size} bytes to the clipboard")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port")] = None,
) -> None:
    """Run the HTTP export backend."""
    import uvicorn

    from mermaidpress.server import create_app

    cfg = _get_config()
    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port
    rprint(f"[green]Serving[/green] on http://{bind_host}:{bind_port}")
    uvicorn.run(
        create_app(cfg),
        host=bind_host,
        port=bind_port,
        log_level="warning" if cfg.log_level == "warn" else cfg.log_level,
    )


@app.command()
def themes() -> None:
    """List the known Mermaid themes."""
    cfg = _get_config()
    table = Table(title="Themes")
    table.add_column("Name", style="cyan")
    table.add_column("Default", justify="center")
    for name in THEMES:
        table.add_row(name, "*" if name == cfg.export.default_theme else "")
    rprint(table)


@app.command()
def samples(
    name: str | None = typer.Argument(None, help="Sample to print"),
) -> None:
    """List the bundled sample diagrams, or print one."""
    if name is None:
        table = Table(title=f"Samples ({len(SAMPLES)})")
        table.add_column("Name", style="cyan")
        table.add_column("First line", style="dim")
        for key, code in SAMPLES.items():
            table.add_row(key, code.splitlines()[0])
        rprint(table)
        return
    code = SAMPLES.get(name)
    if code is None:
        rprint(f"[red]Error:[/red] Unknown sample '{name}'. Available: {', '.join(SAMPLES)}")
        raise typer.Exit(1)
    typer.echo(code, nl=False)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default mermaidpress.yaml in current directory."""
    target = Path("mermaidpress.yaml")
    if target.exists() and not force:
        rprint("[yellow]mermaidpress.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
