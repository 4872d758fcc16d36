"""Run command - the full generate / morph / validate / propose pipeline."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..audit_log import CreationSummary, log_operation
from ..config import ForgeSettings
from ..errors import ForgeError
from ..export import export_capsule
from ..governance.proposer import GovernanceProposal
from ..pipeline import ForgePipeline


def _print_proposal(proposal: GovernanceProposal, console: Console) -> None:
    table = Table(title=f"Governance proposal {proposal.proposal_id}", show_header=False)
    table.add_column("field", style="cyan", no_wrap=True)
    table.add_column("value")
    table.add_row("change", proposal.proposed_change)
    table.add_row("rationale", proposal.rationale)
    table.add_row("confidence", f"{proposal.confidence_score:.2f}")
    table.add_row("audit tag", proposal.audit_tag)
    table.add_row(
        "approval",
        "[yellow]required[/yellow]" if proposal.requires_contributor_approval else "[green]not required[/green]",
    )
    console.print(table)


def run_pipeline(
    settings: ForgeSettings,
    type_a: str,
    type_b: str,
    *,
    width: int,
    height: int,
    factor: float,
    out: Path,
    seed: int | None = None,
    dot: Path | None = None,
    audit_log: Path | None = None,
) -> int:
    """
    Generate two symbols, morph A toward B, validate all three, export them
    and print the governance proposal for the batch.

    A proposal that requires approval is still a successful run.
    """
    console = Console()
    err = Console(stderr=True)

    try:
        pipeline = ForgePipeline(settings)
        a = pipeline.generate(type_a, width, height, seed=seed)
        b = pipeline.generate(type_b, width, height, seed=seed)
        morphed = pipeline.morph(a, b, factor)
        pipeline.validate_all()

        written = []
        for capsule, form in ((a, "source"), (b, "target"), (morphed, "morph")):
            written.append(export_capsule(capsule, out, form, pipeline.report_for(capsule)))

        proposal = pipeline.propose()
    except (ForgeError, ValueError) as e:
        err.print(str(e), style="bold red")
        return 1

    table = Table(title="Capsules")
    table.add_column("capsule", style="cyan", no_wrap=True)
    table.add_column("type", style="magenta")
    table.add_column("factor")
    table.add_column("validation")
    for capsule in pipeline.capsules:
        report = pipeline.report_for(capsule)
        table.add_row(
            capsule.short_id,
            capsule.symbol_type.value,
            "n/a" if capsule.interpolation_factor is None else f"{capsule.interpolation_factor:g}",
            "[green]pass[/green]" if report and report.passed else "[red]fail[/red]",
        )
    console.print(table)
    _print_proposal(proposal, console)

    files = len(written) * 2
    if dot is not None:
        dot.parent.mkdir(parents=True, exist_ok=True)
        dot.write_text(pipeline.lineage.export_dot(), encoding="utf-8")
        console.print(f"Wrote lineage graph to {dot}", style="green")
        files += 1

    if audit_log is not None:
        bytes_written = sum(p.image_path.stat().st_size + p.json_path.stat().st_size for p in written)
        log_operation(
            audit_log,
            "run",
            created=CreationSummary(
                capsules=len(pipeline.capsules),
                edges=len(pipeline.lineage.edges),
                files=files,
                bytes_written=bytes_written,
                details={"out": str(out)},
            ),
            metadata={
                "proposal_id": proposal.proposal_id,
                "confidence": proposal.confidence_score,
                "requires_contributor_approval": proposal.requires_contributor_approval,
            },
        )

    return 0
