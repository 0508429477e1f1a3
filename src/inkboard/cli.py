"""Inkboard CLI entry point.

``inkboard extract`` walks a video and writes keyframes plus STORYBOARD.json
into ``<video_stem>_inkboard_work/``.  ``sketch``, ``caption`` and
``export`` then operate on that work directory, saving the project after
each step so the stages can be run (and re-run) independently.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from inkboard.errors import InkboardError, RenderError
from inkboard.export import write_frames_archive, write_shot_table, write_storyboard
from inkboard.imaging.pool import SKETCH_WORKERS, run_sketch_pool
from inkboard.inference.captioner import CAPTION_WORKERS, CaptionClient, run_caption_pool
from inkboard.ingestion.keyframes import (
    MIN_SAMPLE_INTERVAL_S,
    SAMPLE_INTERVAL_S,
    SCENE_THRESHOLD,
    extract_keyframes,
)
from inkboard.ingestion.source import OpenCVVideoSource
from inkboard.models import KeyframeList
from inkboard.project import StoryboardProject, load_project, save_project

app = typer.Typer(
    name="inkboard",
    help="Inkboard — turn a video into a sketch-style storyboard sheet.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

_VALID_VIDEO_EXTS = {".mp4", ".mov", ".webm", ".mkv", ".avi"}


def _setup_work_dir(source: Path) -> Path:
    """Create <source_stem>_inkboard_work/ alongside the source file. Idempotent."""
    work_dir = source.parent / f"{source.stem}_inkboard_work"
    work_dir.mkdir(exist_ok=True)
    (work_dir / "keyframes").mkdir(exist_ok=True)
    return work_dir


def _error_panel(message: str, title: str = "Input Error") -> None:
    err_console.print(Panel(message, title=f"[red]{title}[/red]", border_style="red"))


def _count_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-V", help="Log per-sample decisions and worker failures."),
    ] = False,
) -> None:
    """Inkboard storyboard tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def extract(
    video: Annotated[
        Path,
        typer.Argument(
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
            help="Input video file (MP4, MOV, WEBM, MKV or AVI).",
        ),
    ],
    threshold: Annotated[
        float,
        typer.Option("--threshold", "-t", help="Scene-change difference threshold."),
    ] = SCENE_THRESHOLD,
    interval: Annotated[
        float,
        typer.Option("--interval", "-i", help="Seconds between samples."),
    ] = SAMPLE_INTERVAL_S,
) -> None:
    """Detect scene changes in VIDEO and save one keyframe per scene."""
    # Extension check first so a wrong file type never reaches Click's existence error
    if video.suffix.lower() not in _VALID_VIDEO_EXTS:
        _error_panel(
            f"Unsupported video format: [bold]{video.suffix}[/bold]\n"
            f"Supported formats: {', '.join(sorted(_VALID_VIDEO_EXTS))}"
        )
        raise typer.Exit(1)

    if not video.exists():
        _error_panel(
            f"File not found: [bold]{video}[/bold]\n"
            f"Check that the path is correct and the file is accessible."
        )
        raise typer.Exit(1)

    if interval < MIN_SAMPLE_INTERVAL_S:
        _error_panel(f"--interval must be at least {MIN_SAMPLE_INTERVAL_S}s (got {interval})")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]Inkboard[/bold cyan] — [dim]{video.name}[/dim]\n")
    work_dir = _setup_work_dir(video)

    try:
        with OpenCVVideoSource(video) as source:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.percentage:>3.0f}%"),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                scan_task = progress.add_task("Analyzing scenes...", total=1.0)
                keyframes = extract_keyframes(
                    source,
                    work_dir / "keyframes",
                    progress_callback=lambda fraction: progress.update(scan_task, completed=fraction),
                    interval_s=interval,
                    threshold=threshold,
                )
                progress.update(scan_task, completed=1.0)
            duration_s = source.duration_s

        project = StoryboardProject(
            source_file=str(video),
            project_name=video.name,
            duration_s=duration_s,
        ).with_keyframes(KeyframeList(keyframes))
        project_file = save_project(project, work_dir)
    except InkboardError as e:
        _error_panel(str(e), title="Extraction Error")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold green]Extraction complete[/bold green]\n\n"
        f"  Duration:   {duration_s:.1f}s\n"
        f"  Keyframes:  {len(keyframes)}\n"
        f"  Project:    [dim]{project_file.name}[/dim]\n"
        f"  Work dir:   [dim]{work_dir}[/dim]",
        title="[green]Keyframes Ready[/green]",
        border_style="green",
    ))


@app.command()
def sketch(
    work_dir: Annotated[
        Path,
        typer.Argument(file_okay=False, dir_okay=True, resolve_path=True, help="Work directory from `inkboard extract`."),
    ],
    workers: Annotated[int, typer.Option("--workers", "-w", min=1, help="Concurrent sketch workers.")] = SKETCH_WORKERS,
) -> None:
    """Apply the pencil-sketch filter to every keyframe not yet sketched."""
    try:
        project = load_project(work_dir)
        keyframes = project.keyframe_list()
        with _count_progress() as progress:
            task = progress.add_task("Inking frames...", total=sum(1 for kf in keyframes if not kf.is_sketch))
            converted = run_sketch_pool(
                keyframes,
                work_dir / "sketches",
                workers=workers,
                progress_callback=lambda done, total: progress.update(task, completed=done),
            )
        save_project(project.with_keyframes(keyframes), work_dir)
    except InkboardError as e:
        _error_panel(str(e), title="Sketch Error")
        raise typer.Exit(1)

    console.print(f"[green]Sketched {converted} of {len(keyframes)} keyframes[/green]")


@app.command()
def caption(
    work_dir: Annotated[
        Path,
        typer.Argument(file_okay=False, dir_okay=True, resolve_path=True, help="Work directory from `inkboard extract`."),
    ],
    url: Annotated[
        Optional[str],
        typer.Option("--url", help="Chat-completions base URL (default: INKBOARD_CAPTION_URL)."),
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("--model", "-m", help="Model name sent with each request (default: INKBOARD_CAPTION_MODEL)."),
    ] = None,
    workers: Annotated[int, typer.Option("--workers", "-w", min=1, help="Concurrent caption requests.")] = CAPTION_WORKERS,
    frame: Annotated[
        Optional[list[str]],
        typer.Option("--frame", "-f", help="Re-caption only this keyframe id (e.g. frame-12.50). Repeatable."),
    ] = None,
) -> None:
    """Describe every uncaptioned keyframe (or the --frame ids) with the captioning server."""
    try:
        project = load_project(work_dir)
        keyframes = project.keyframe_list()
        indices = None
        if frame:
            try:
                indices = [keyframes.index_of(frame_id) for frame_id in frame]
            except KeyError as e:
                _error_panel(f"Unknown keyframe id: [bold]{e.args[0]}[/bold]")
                raise typer.Exit(1)
        client = CaptionClient(base_url=url, model=model)
        with _count_progress() as progress:
            total = len(keyframes.uncaptioned()) if indices is None else len(set(indices))
            task = progress.add_task("Writing captions...", total=total)
            succeeded = run_caption_pool(
                keyframes,
                client,
                workers=workers,
                progress_callback=lambda done, total: progress.update(task, completed=done),
                indices=indices,
            )
        save_project(project.with_keyframes(keyframes), work_dir)
    except InkboardError as e:
        _error_panel(str(e), title="Caption Error")
        raise typer.Exit(1)

    console.print(f"[green]Captioned {succeeded} keyframes[/green] via [dim]{client.base_url}[/dim]")


@app.command()
def export(
    work_dir: Annotated[
        Path,
        typer.Argument(file_okay=False, dir_okay=True, resolve_path=True, help="Work directory from `inkboard extract`."),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", file_okay=False, dir_okay=True, resolve_path=True, help="Export directory (default: WORK_DIR/export)."),
    ] = None,
    table: Annotated[bool, typer.Option("--table", help="Write the shot-list CSV.")] = False,
    frames: Annotated[bool, typer.Option("--frames", help="Zip the original frames.")] = False,
    sheet: Annotated[bool, typer.Option("--sheet", help="Render the storyboard sheets.")] = False,
) -> None:
    """Write the shot table, frame archive and storyboard sheets."""
    if not (table or frames or sheet):
        table = frames = sheet = True
    out_dir = output or work_dir / "export"

    written: list[Path] = []
    try:
        project = load_project(work_dir)
        keyframes = project.keyframe_list().to_list()
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RenderError(out_dir, f"Cannot create export directory: {exc}") from exc
        stem = Path(project.project_name).stem

        if table:
            written.append(write_shot_table(keyframes, out_dir / f"{project.project_name}_shots.csv"))
        if frames:
            written.append(write_frames_archive(keyframes, out_dir / f"{stem}_frames.zip"))
        if sheet:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TimeElapsedColumn(),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task("Composing storyboard sheets...", total=None)
                sheet_path = write_storyboard(keyframes, project.project_name, out_dir)
            if sheet_path is not None:
                written.append(sheet_path)
    except InkboardError as e:
        _error_panel(str(e), title="Export Error")
        raise typer.Exit(1)

    listing = "\n".join(f"  [dim]{p.name}[/dim]" for p in written) or "  (nothing to export)"
    console.print(Panel(
        f"[bold green]Export complete[/bold green]\n\n{listing}\n\n  Directory: [dim]{out_dir}[/dim]",
        title="[green]Storyboard Ready[/green]",
        border_style="green",
    ))
