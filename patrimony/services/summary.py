from __future__ import annotations

from patrimony.models.report import ReconciliationReport

from .import_service import ImportResult
from .items import InventoryStats

"""SUMMARY line rendering.

Each command ends with exactly one SUMMARY line of `key=value` pairs:

    SUMMARY file=<name> found=<n> imported=<n> skipped=<n> elapsed_sec=<s>
    SUMMARY only_in_a=<n> only_in_b=<n> differing=<n> identical=<n>
    SUMMARY items=<n> active=<n> maintenance=<n> retired=<n> total_value=<v>
"""

__all__ = [
    "format_number",
    "render_import_summary",
    "render_comparison_summary",
    "render_stats_summary",
]


def format_number(value: float) -> str:
    """Integers without a decimal point, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_import_summary(result: ImportResult) -> str:
    return (
        f"SUMMARY file={result.file_name} "
        f"found={result.found} "
        f"imported={result.imported} "
        f"skipped={result.skipped} "
        f"elapsed_sec={format_number(result.elapsed_seconds)}"
    )


def render_comparison_summary(report: ReconciliationReport) -> str:
    return (
        f"SUMMARY only_in_a={len(report.only_in_a)} "
        f"only_in_b={len(report.only_in_b)} "
        f"differing={len(report.differing)} "
        f"identical={len(report.identical)}"
    )


def render_stats_summary(stats: InventoryStats) -> str:
    return (
        f"SUMMARY items={stats.total} "
        f"active={stats.active} "
        f"maintenance={stats.maintenance} "
        f"retired={stats.retired} "
        f"total_value={stats.total_value:.2f}"
    )
