from __future__ import annotations

import logging
import mimetypes
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import typer

from .config import (
    card_config_from,
    resolve_parameters,
    seed_from,
    size_config_from,
    styling_config_from,
)
from .errors import BingoError
from .export import ExportFormat, ExportJob, LayoutMode
from .feasibility import check_feasibility
from .generator import BingoCard, generate_batch
from .logging_setup import setup_logging
from .render import LogoConfig, RenderOptions, load_logo, render_cards
from .serialize import (
    build_run_meta,
    check_targets,
    emit_cards_json,
    emit_summary_csv,
    load_cards_json,
    write_outputs,
)
from .tables import load_table_file
from .units import MM, PX, preset_names, resolve_preset
from .verify import verify as verify_cards
from .version import __version__
from .words import extract_column, merge_words, process_words

app = typer.Typer(help="Word bingo card generator CLI")
logger = logging.getLogger("wordbingo")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(0)


@app.callback()
def common_options(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show application version and exit",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    """Word bingo card generator CLI."""


def _fail(error: Exception) -> None:
    logger.error("%s", error)
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)


def _collect_overrides(**values: Any) -> Dict[str, Any]:
    """CLI options that were actually given, keyed by dotted config name."""
    return {key.replace("__", "."): value for key, value in values.items() if value is not None}


def _resolve(config: Optional[str], overrides: Dict[str, Any]) -> tuple[Dict[str, Any], str]:
    resolved, params_hash, _cfg_path = resolve_parameters(config_path_str=config, cli_overrides=overrides)
    setup_logging(
        level=str(resolved.get("log_level", "INFO")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
    )
    return resolved, params_hash


def load_pool(
    *,
    words: Optional[str],
    words_file: Optional[str],
    table: Optional[str],
    column: int,
) -> List[str]:
    """Build the word pool from every given source.

    Table columns are extracted without deduplication; the merged pool is deduplicated.
    """
    sources: List[Sequence[str]] = []
    if words:
        sources.append(process_words(words))
    if words_file:
        sources.append(process_words(Path(words_file).read_text(encoding="utf-8")))
    if table:
        sources.append(extract_column(load_table_file(Path(table)), column))
    return merge_words(*sources)


def _generate(resolved: Dict[str, Any], pool: List[str]) -> tuple[BingoCard, ...]:
    config = card_config_from(resolved)
    seed, engine = seed_from(resolved)
    feasibility = check_feasibility(pool_size=len(pool), grid_size=config.grid_size, num_cards=config.num_cards)
    for reason in feasibility.reasons:
        logger.info("Feasibility: %s", reason)
    if not config.allow_repetition:
        logger.warning("allow_repetition is off, but cards are still drawn independently; words may repeat across cards")
    return generate_batch(pool, config, seed=seed, rng_engine=engine)


@app.command()
def words(
    words_text: str = typer.Option(None, "--words", help="Comma or newline separated words"),
    words_file: str = typer.Option(None, "--words-file", help="Text file with words"),
    table: str = typer.Option(None, "--table", help="CSV/XLSX file with words"),
    column: int = typer.Option(0, "--column", help="Zero-based column index in --table"),
    grid_size: int = typer.Option(5, "--grid-size", help="Grid side length (3-6)"),
    num_cards: int = typer.Option(1, "--cards", help="Number of cards (1-100)"),
) -> None:
    """Show the processed word pool and whether it suffices for the grid."""
    try:
        pool = load_pool(words=words_text, words_file=words_file, table=table, column=column)
    except (BingoError, OSError) as e:
        _fail(e)
    for word in pool:
        typer.echo(word)
    result = check_feasibility(pool_size=len(pool), grid_size=grid_size, num_cards=num_cards)
    typer.echo(f"Words: {len(pool)}; needed per card: {grid_size * grid_size}; "
               f"needed without reuse: {result.required}")
    typer.echo("Sufficient" if result.feasible else "Insufficient")
    raise typer.Exit(code=0 if result.feasible else 1)


@app.command()
def generate(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    words_text: str = typer.Option(None, "--words", help="Comma or newline separated words"),
    words_file: str = typer.Option(None, "--words-file", help="Text file with words"),
    table: str = typer.Option(None, "--table", help="CSV/XLSX file with words"),
    column: int = typer.Option(0, "--column", help="Zero-based column index in --table"),
    grid_size: int = typer.Option(None, "--grid-size", help="Grid side length (3-6)"),
    num_cards: int = typer.Option(None, "--cards", help="Number of cards (1-100)"),
    allow_repetition: Optional[bool] = typer.Option(
        None, "--allow-repetition/--no-repetition", help="Cross-card repetition toggle"
    ),
    seed: int = typer.Option(None, "--seed", help="Seed for reproducible cards"),
    out_cards: str = typer.Option(None, "--out-cards", help="cards.json output path"),
    summary_csv: str = typer.Option(None, "--summary-csv", help="Word frequency CSV (optional)"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARNING|ERROR"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
    no_mkdirs: bool = typer.Option(False, "--no-mkdirs", help="Do not create parent directories"),
) -> None:
    """Generate a batch of cards and write them to cards.json."""
    overrides = _collect_overrides(
        grid_size=grid_size,
        num_cards=num_cards,
        allow_repetition=allow_repetition,
        seed__value=seed,
        out_cards=out_cards,
        summary_csv=summary_csv,
        log_file=log_file,
        log_level=log_level,
    )
    try:
        resolved, params_hash = _resolve(config, overrides)
        pool = load_pool(words=words_text, words_file=words_file, table=table, column=column)
        start_time = time.time()
        cards = _generate(resolved, pool)
        elapsed = time.time() - start_time

        report = verify_cards(cards, pool=pool)
        seed_value, engine = seed_from(resolved)
        run_meta = build_run_meta(
            app_version=__version__, params_hash=params_hash, seed=seed_value, rng_engine=engine
        )
        out_path = Path(resolved["out_cards"])
        summary_path = Path(resolved["summary_csv"]) if resolved.get("summary_csv") else None
        check_targets(
            [p for p in (out_path, summary_path) if p is not None], mkdirs=not no_mkdirs, overwrite=force
        )
        emit_cards_json(out_path, cards=cards, pool=pool, run_meta=run_meta, mkdirs=not no_mkdirs, overwrite=force)
        if summary_path is not None:
            freqs = report["frequencies"]
            if not isinstance(freqs, dict):
                freqs = {}
            emit_summary_csv(summary_path, freqs=freqs, mkdirs=not no_mkdirs, overwrite=force)
    except (BingoError, OSError) as e:
        _fail(e)

    typer.echo(f"Generated {len(cards)} card(s) in {elapsed:.2f}s")
    typer.echo(f"Words repeated across cards: {report['repetition']['repeated_across_cards']}")
    typer.echo(f"Output file: {out_path}")


@app.command()
def export(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    cards_file: str = typer.Option(None, "--cards-file", help="Existing cards.json to render"),
    words_text: str = typer.Option(None, "--words", help="Comma or newline separated words"),
    words_file: str = typer.Option(None, "--words-file", help="Text file with words"),
    table: str = typer.Option(None, "--table", help="CSV/XLSX file with words"),
    column: int = typer.Option(0, "--column", help="Zero-based column index in --table"),
    grid_size: int = typer.Option(None, "--grid-size", help="Grid side length (3-6)"),
    num_cards: int = typer.Option(None, "--cards", help="Number of cards (1-100)"),
    seed: int = typer.Option(None, "--seed", help="Seed for reproducible cards"),
    fmt: str = typer.Option(None, "--format", help="pdf|png|zip"),
    layout: str = typer.Option(None, "--layout", help="one-per-page|grid-per-page"),
    page: str = typer.Option(None, "--page", help="PDF page preset (A4|Letter)"),
    size_preset: str = typer.Option(None, "--size", help="Card size preset (A4|Letter|Custom)"),
    logo: str = typer.Option(None, "--logo", help="PNG/JPEG/SVG logo placed under the grid"),
    logo_size: int = typer.Option(None, "--logo-size", help="Logo width in percent of card width (5-40)"),
    scale: int = typer.Option(2, "--scale", help="Raster scale factor"),
    out_dir: str = typer.Option(None, "--out-dir", help="Directory for exported files"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARNING|ERROR"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
    no_mkdirs: bool = typer.Option(False, "--no-mkdirs", help="Do not create the output directory"),
) -> None:
    """Render cards and export them as a PDF, PNG files or a ZIP bundle."""
    overrides = _collect_overrides(
        grid_size=grid_size,
        num_cards=num_cards,
        seed__value=seed,
        format=fmt,
        layout=layout,
        page=page,
        size__preset=size_preset,
        logo__size=logo_size,
        out_dir=out_dir,
        log_file=log_file,
        log_level=log_level,
    )
    try:
        resolved, _params_hash = _resolve(config, overrides)
        if cards_file:
            cards, _pool = load_cards_json(Path(cards_file))
        else:
            pool = load_pool(words=words_text, words_file=words_file, table=table, column=column)
            cards = _generate(resolved, pool)

        logo_cfg = LogoConfig(size=int(resolved["logo"].get("size", 20)))
        if logo:
            media_type = mimetypes.guess_type(logo)[0] or "application/octet-stream"
            logo_cfg.image = load_logo(Path(logo).read_bytes(), media_type)
            logo_cfg.show_on_cards = True
        options = RenderOptions(
            styling=styling_config_from(resolved),
            size=size_config_from(resolved),
            logo=logo_cfg,
            scale=scale,
        )
        job = ExportJob(
            rendered=render_cards(cards, options),
            format=ExportFormat(str(resolved["format"]).lower()),
            layout_mode=LayoutMode(str(resolved["layout"])),
            page=str(resolved["page"]),
        )
        outputs = job.run()
        written = write_outputs(Path(resolved["out_dir"]), outputs, mkdirs=not no_mkdirs, overwrite=force)
    except (BingoError, OSError, ValueError) as e:
        # ValueError: unknown format/layout names
        _fail(e)

    typer.echo(f"Exported {len(cards)} card(s) to {len(written)} file(s)")
    for path in written:
        typer.echo(f"  {path}")


@app.command()
def presets() -> None:
    """List page/card size presets in millimetres and pixels."""
    for name in preset_names():
        in_mm = resolve_preset(name, MM)
        in_px = resolve_preset(name, PX)
        typer.echo(f"{name}: {in_mm.width:g}x{in_mm.height:g} mm, {in_px.width:g}x{in_px.height:g} px")


def main(_argv: list[str] | None = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
