"""Validate command - run the validator chain over an image file."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..capsule import wrap_raster
from ..config import ForgeSettings
from ..errors import ForgeError
from ..models import ProvenanceMetadata
from ..raster.buffer import RasterBuffer
from ..validation.chain import ChainReport, build_chain


def _print_report(report: ChainReport, *, title: str, console: Console) -> None:
    table = Table(title=title)
    table.add_column("validator", style="cyan", no_wrap=True)
    table.add_column("result")
    table.add_column("message")

    for r in report.results:
        table.add_row(
            r.validator,
            "[green]pass[/green]" if r.passed else "[red]fail[/red]",
            r.message or "",
        )
    console.print(table)

    if report.metrics is not None:
        m = report.metrics
        symmetry = f"{m.symmetry_score:.2f}" if m.symmetry_score is not None else "n/a"
        console.print(
            f"density {m.density_percent:.2f}% ({m.density_status.value}), symmetry {symmetry}",
            style="dim",
        )


def run_validate(
    settings: ForgeSettings,
    image: Path,
    *,
    symbol_type: str,
    style: str,
    output_json: bool = False,
    overrides: dict[str, str] | None = None,
) -> int:
    """Exit 0 when every validator passes, 1 otherwise."""
    console = Console()
    err = Console(stderr=True)

    try:
        raster = RasterBuffer.load(image)
        capsule = wrap_raster(
            raster,
            symbol_type,
            style,
            settings.contributor,
            provenance=ProvenanceMetadata(source_image=str(image), validated_by=settings.contributor),
            audit_tag=settings.governance.audit_tag,
        )
        report = build_chain(settings).run(capsule, overrides=overrides)
    except (ForgeError, ValueError, OSError) as e:
        err.print(str(e), style="bold red")
        return 1

    if output_json:
        payload = {"capsule": capsule.to_dict(), **report.to_dict()}
        print(json.dumps(payload, indent=2))
    else:
        _print_report(report, title=f"Validation: {capsule.short_id}", console=console)

    return 0 if report.passed else 1
