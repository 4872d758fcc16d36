"""Generate command - draw a symbol and write it as PNG + JSON."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..config import ForgeSettings
from ..errors import ForgeError
from ..export import export_capsule
from ..pipeline import ForgePipeline


def run_generate(
    settings: ForgeSettings,
    symbol_type: str,
    *,
    width: int,
    height: int,
    out: Path,
    style: str | None = None,
    seed: int | None = None,
) -> int:
    console = Console()
    err = Console(stderr=True)

    try:
        pipeline = ForgePipeline(settings)
        capsule = pipeline.generate(symbol_type, width, height, style=style, seed=seed)
        report = pipeline.validate(capsule)
        exported = export_capsule(capsule, out, "generated", report)
    except (ForgeError, ValueError) as e:
        err.print(str(e), style="bold red")
        return 1

    console.print(f"Wrote {exported.image_path}", style="green")
    console.print(f"  identity: {capsule.identity}")
    status = "[green]passed[/green]" if report.passed else "[yellow]failed[/yellow]"
    console.print(f"  validation: {status}")
    for failure in report.failures:
        console.print(f"    - {failure.validator}: {failure.message}", style="yellow")
    return 0
