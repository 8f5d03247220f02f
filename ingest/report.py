"""
Load reporting -- structured skip/error accounting for a data load.

Provides:
  - SkipRecord: single skipped row with a category and detail string.
  - DatasetReport: what loading one dataset did, what it skipped, and why.
  - LoadReport: the reports of every dataset in one load, plus timing.

Skip categories (for SkipRecord.category):
    empty_row: every cell of the row is blank
    header_row: the row repeats the sheet header
    missing_key: a required field (name, role, area ...) is blank
    duplicate: superseded by another row with the same key
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


# ── Data structures ───────────────────────────────────────────────────────────


@dataclass
class SkipRecord:
    """One row that was skipped, with a machine-readable category."""

    category: str          # e.g. "missing_key", "duplicate"
    detail: str            # human-readable explanation
    item: str = ""         # optional: row number or key

    def to_dict(self) -> dict[str, str]:
        d: dict[str, str] = {"category": self.category, "detail": self.detail}
        if self.item:
            d["item"] = self.item
        return d


@dataclass
class DatasetReport:
    """Structured summary of loading one dataset."""

    name: str
    source: str = ""
    status: str = "not_started"               # loaded | failed | missing
    elapsed_seconds: float = 0.0
    rows_loaded: int = 0
    rows_skipped: int = 0
    skips: list[SkipRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    # ── helpers ───────────────────────────────────────────────────────────

    def add_skip(self, category: str, detail: str, item: str = "") -> None:
        self.skips.append(SkipRecord(category=category, detail=detail, item=item))
        self.rows_skipped += 1

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def skip_counts_by_category(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for s in self.skips:
            counts[s.category] = counts.get(s.category, 0) + 1
        return counts

    def console_summary(self) -> str:
        """One-line summary suitable for the log."""
        parts: list[str] = [f"{self.name}: {self.status}"]
        if self.rows_loaded:
            parts.append(f"{self.rows_loaded:,} rows")
        if self.rows_skipped:
            cats = self.skip_counts_by_category()
            skip_parts = [f"{v} {k.replace('_', ' ')}" for k, v in sorted(cats.items())]
            parts.append(f"{self.rows_skipped:,} skipped ({', '.join(skip_parts)})")
        if self.errors:
            parts.append(f"{len(self.errors)} errors")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "source": self.source,
            "status": self.status,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "rows_loaded": self.rows_loaded,
            "rows_skipped": self.rows_skipped,
        }
        if self.skips:
            d["skips"] = self.skip_counts_by_category()
        if self.errors:
            d["errors"] = self.errors
        return d


@dataclass
class LoadReport:
    """Every dataset report of one load."""

    source: str
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    elapsed_seconds: float = 0.0
    datasets: dict[str, DatasetReport] = field(default_factory=dict)

    def dataset(self, name: str, source: str = "") -> DatasetReport:
        """Return the report for *name*, creating it on first use."""
        rpt = self.datasets.get(name)
        if rpt is None:
            rpt = self.datasets[name] = DatasetReport(name=name, source=source)
        return rpt

    @property
    def failed(self) -> list[str]:
        return [n for n, r in self.datasets.items() if r.status == "failed"]

    @property
    def ok(self) -> bool:
        return not self.failed

    def console_summary(self) -> str:
        loaded = sum(r.rows_loaded for r in self.datasets.values())
        skipped = sum(r.rows_skipped for r in self.datasets.values())
        text = (
            f"{len(self.datasets)} datasets from {self.source}: "
            f"{loaded:,} rows loaded, {skipped:,} skipped"
        )
        if self.failed:
            text += f", failed: {', '.join(self.failed)}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "started_at": self.started_at,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "ok": self.ok,
            "failed": self.failed,
            "datasets": {name: r.to_dict() for name, r in self.datasets.items()},
        }
