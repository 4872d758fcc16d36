"""CLI entrypoint for symforge."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.logging import RichHandler

from . import __version__
from .config import ForgeSettings, find_settings, load_settings
from .errors import SettingsError
from .models import SymbolType

SYMBOL_TYPES = [t.value for t in SymbolType]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _parse_size(ctx: click.Context, param: click.Parameter, value: str) -> tuple[int, int]:
    try:
        w, h = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise click.BadParameter(f"expected WIDTHxHEIGHT, got {value!r}") from None
    if w <= 0 or h <= 0:
        raise click.BadParameter(f"dimensions must be positive, got {value!r}")
    return w, h


def _settings(ctx: click.Context) -> ForgeSettings:
    return ctx.obj["settings"]


@click.group()
@click.version_option(__version__, prog_name="symforge")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to symforge.toml (defaults to auto-detected ./symforge.toml)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str) -> None:
    """symforge - Generate, morph, validate and audit symbol capsules."""
    _configure_logging(log_level.upper())
    ctx.ensure_object(dict)

    if config_path is None:
        config_path = find_settings(Path.cwd())
    try:
        ctx.obj["settings"] = load_settings(config_path)
    except SettingsError as e:
        raise click.ClickException(str(e)) from e


@cli.command("hash")
@click.argument("images", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def hash_cmd(images: tuple[Path, ...]) -> None:
    """Print the canonical hash of each image."""
    from .commands.hash_cmd import run_hash

    sys.exit(run_hash(list(images)))


@cli.command()
@click.argument("symbol_type", type=click.Choice(SYMBOL_TYPES))
@click.option("--size", default="64x64", show_default=True, callback=_parse_size, help="WIDTHxHEIGHT")
@click.option("--style", default=None, help="Template name (defaults to the symbol type)")
@click.option("--seed", type=int, default=None, help="Seed for deterministic jitter")
@click.option(
    "--out",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("out"),
    show_default=True,
    help="Output directory",
)
@click.pass_context
def generate(
    ctx: click.Context,
    symbol_type: str,
    size: tuple[int, int],
    style: str | None,
    seed: int | None,
    out: Path,
) -> None:
    """Generate a symbol and write PNG + JSON."""
    from .commands.generate_cmd import run_generate

    width, height = size
    exit_code = run_generate(
        _settings(ctx), symbol_type, width=width, height=height, out=out, style=style, seed=seed
    )
    sys.exit(exit_code)


@cli.command()
@click.argument("a", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("b", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--factor", type=float, default=0.5, show_default=True, help="Blend weight toward B")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), required=True, help="Output PNG")
@click.pass_context
def morph(ctx: click.Context, a: Path, b: Path, factor: float, out: Path) -> None:
    """Blend image A toward image B."""
    from .commands.morph_cmd import run_morph

    sys.exit(run_morph(_settings(ctx), a, b, factor=factor, out=out))


@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "symbol_type", type=click.Choice(SYMBOL_TYPES), required=True, help="Symbol type")
@click.option("--style", required=True, help="Template name")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option(
    "--override",
    "overrides",
    multiple=True,
    metavar="VALIDATOR=REASON",
    help="Record VALIDATOR as passed with REASON instead of running it",
)
@click.pass_context
def validate(
    ctx: click.Context,
    image: Path,
    symbol_type: str,
    style: str,
    output_json: bool,
    overrides: tuple[str, ...],
) -> None:
    """Run the validator chain over an image."""
    from .commands.validate_cmd import run_validate

    parsed: dict[str, str] = {}
    for item in overrides:
        name, sep, reason = item.partition("=")
        if not sep or not name.strip() or not reason.strip():
            raise click.BadParameter(f"expected VALIDATOR=REASON, got {item!r}", param_hint="--override")
        parsed[name.strip().lower()] = reason.strip()

    exit_code = run_validate(
        _settings(ctx),
        image,
        symbol_type=symbol_type,
        style=style,
        output_json=output_json,
        overrides=parsed,
    )
    sys.exit(exit_code)


@cli.command()
@click.argument("type_a", type=click.Choice(SYMBOL_TYPES))
@click.argument("type_b", type=click.Choice(SYMBOL_TYPES))
@click.option("--size", default="64x64", show_default=True, callback=_parse_size, help="WIDTHxHEIGHT")
@click.option("--factor", type=float, default=0.5, show_default=True, help="Blend weight toward TYPE_B")
@click.option("--seed", type=int, default=None, help="Seed for deterministic jitter")
@click.option(
    "--out",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("out"),
    show_default=True,
    help="Output directory",
)
@click.option("--dot", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write lineage DOT here")
@click.option(
    "--audit-log",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Append a JSON Lines audit entry here",
)
@click.pass_context
def run(
    ctx: click.Context,
    type_a: str,
    type_b: str,
    size: tuple[int, int],
    factor: float,
    seed: int | None,
    out: Path,
    dot: Path | None,
    audit_log: Path | None,
) -> None:
    """Generate TYPE_A and TYPE_B, morph them, validate, export and propose.

    Examples:

        symforge run flat sharp --factor 0.5 --out out --dot out/lineage.dot
    """
    from .commands.run_cmd import run_pipeline

    width, height = size
    exit_code = run_pipeline(
        _settings(ctx),
        type_a,
        type_b,
        width=width,
        height=height,
        factor=factor,
        out=out,
        seed=seed,
        dot=dot,
        audit_log=audit_log,
    )
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
