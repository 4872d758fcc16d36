"""
Audit log for forge runs.

One JSON object per line, appended. Readers skip lines they cannot parse,
so a truncated write never hides the entries before it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CreationSummary:
    """Summary of what an operation produced."""

    capsules: int = 0
    edges: int = 0
    files: int = 0
    bytes_written: int = 0
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuditEntry:
    timestamp: str
    operation: str
    created: CreationSummary
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "created": asdict(self.created),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AuditEntry:
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            created=CreationSummary(**data.get("created", {})),
            metadata=data.get("metadata", {}),
        )


def log_operation(
    path: Path,
    operation: str,
    created: CreationSummary | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Append an operation to the audit log at path.

    Args:
        path: Audit log file (created with its parent directory if missing)
        operation: Name of the operation (e.g., "run", "generate")
        created: Summary of what was created
        metadata: Additional context (proposal id, output paths)

    Returns:
        The written entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        created=created or CreationSummary(),
        metadata=metadata or {},
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    logger.debug("audit %s -> %s", operation, path)
    return entry


def read_audit_log(path: Path, last_n: int | None = None) -> list[AuditEntry]:
    """Read entries, oldest first. Malformed lines are skipped."""
    if not path.exists():
        return []

    entries = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(AuditEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError):
                logger.debug("skipping malformed audit line in %s", path)
                continue

    if last_n is not None:
        return entries[-last_n:]
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    lines = [f"[{entry.timestamp}] {entry.operation}"]

    parts = []
    if entry.created.capsules:
        parts.append(f"{entry.created.capsules} capsules")
    if entry.created.edges:
        parts.append(f"{entry.created.edges} edges")
    if entry.created.files:
        parts.append(f"{entry.created.files} files")
    if parts:
        lines.append(f"  Created: {', '.join(parts)}")

    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")

    return "\n".join(lines)
