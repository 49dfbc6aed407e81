# brochure/build/bundle_sizes.py
"""
Bundle size monitoring for a build output directory.

Files are grouped into js / css / images / fonts by extension and compared
against `BundleBudgets`: a category total over budget is a violation (the
CLI exits non-zero), a single file over its per-file budget is a warning.
Each run is appended to a JSON history (last 50 runs kept) so successive
builds can be compared.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from brochure.schemas.models import AssetCategory, BundleBudgets, BundleFile, BundleReport

logger = logging.getLogger(__name__)

HISTORY_FILE = Path(".bundle-history") / "bundle-sizes.json"
HISTORY_LIMIT = 50

CATEGORIES: tuple[AssetCategory, ...] = ("js", "css", "images", "fonts")

_EXTENSIONS: dict[str, AssetCategory] = {
    ".js": "js",
    ".mjs": "js",
    ".css": "css",
    ".woff": "fonts",
    ".woff2": "fonts",
    ".ttf": "fonts",
    ".otf": "fonts",
    ".eot": "fonts",
    ".jpg": "images",
    ".jpeg": "images",
    ".png": "images",
    ".gif": "images",
    ".webp": "images",
    ".avif": "images",
    ".svg": "images",
}


def categorize(path: Path | str) -> AssetCategory | None:
    return _EXTENSIONS.get(Path(path).suffix.lower())


def format_bytes(n: int) -> str:
    """1536 -> '1.5 KB'."""
    if n == 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    i = min(int(math.log(abs(n), 1024)), len(units) - 1)
    value = round(n / 1024**i, 2)
    return f"{value:g} {units[i]}"


def analyze(out_dir: Path) -> BundleReport:
    """Sizes of every categorized file under `out_dir`; budgets are not checked here."""
    files: dict[str, list[BundleFile]] = {c: [] for c in CATEGORIES}
    for path in sorted(out_dir.rglob("*")):
        if not path.is_file():
            continue
        cat = categorize(path)
        if cat is None:
            continue
        files[cat].append(BundleFile(path=path.relative_to(out_dir).as_posix(), size=path.stat().st_size))
    totals = {c: sum(f.size for f in files[c]) for c in CATEGORIES}
    return BundleReport(files=files, totals=totals, timestamp=datetime.now(timezone.utc))


def check_budgets(report: BundleReport, budgets: BundleBudgets | None = None) -> BundleReport:
    """Return a copy of `report` with violations and warnings filled in."""
    budgets = budgets or BundleBudgets()
    violations: list[str] = []
    warnings: list[str] = []
    for cat in CATEGORIES:
        budget = budgets.for_category(cat)
        total = report.totals.get(cat, 0)
        if total > budget.total:
            violations.append(
                f"{cat.upper()} total size ({format_bytes(total)}) exceeds budget ({format_bytes(budget.total)})"
            )
        for f in report.files.get(cat, []):
            if f.size > budget.individual:
                warnings.append(
                    f"{f.path} ({format_bytes(f.size)}) exceeds individual budget ({format_bytes(budget.individual)})"
                )
    return report.model_copy(update={"violations": violations, "warnings": warnings})


def load_history(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to load bundle history %s: %s", path, e)
        return []
    return data if isinstance(data, list) else []


def record_history(report: BundleReport, out_dir: str, path: Path) -> list[dict[str, Any]]:
    """Append `report` to the history file (bounded); returns the updated history."""
    history = load_history(path)
    history.append(
        {
            "timestamp": report.timestamp.isoformat(),
            "outDir": out_dir,
            "totals": report.totals,
            "files": {c: [f.model_dump() for f in fs] for c, fs in report.files.items()},
            "violations": len(report.violations),
            "warnings": len(report.warnings),
        }
    )
    history = history[-HISTORY_LIMIT:]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(history, indent=2), encoding="utf-8")
    return history


def compare_with_previous(history: list[dict[str, Any]]) -> dict[str, int]:
    """Per-category byte delta between the last two history entries ({} with fewer than two)."""
    if len(history) < 2:
        return {}
    prev, cur = history[-2].get("totals", {}), history[-1].get("totals", {})
    return {c: int(cur.get(c, 0)) - int(prev.get(c, 0)) for c in CATEGORIES}


def run_bundle_check(
    out_dir: Path,
    *,
    budgets: BundleBudgets | None = None,
    history_file: Path | None = HISTORY_FILE,
) -> BundleReport:
    if not out_dir.is_dir():
        raise FileNotFoundError(f"Directory {out_dir} does not exist; run a build first")

    report = check_budgets(analyze(out_dir), budgets)
    budgets = budgets or BundleBudgets()
    for cat in CATEGORIES:
        total, ceiling = report.totals[cat], budgets.for_category(cat).total
        logger.info("%s: %s / %s (%.1f%%)", cat.upper(), format_bytes(total), format_bytes(ceiling), total / ceiling * 100)
    for msg in report.warnings:
        logger.warning(msg)
    for msg in report.violations:
        logger.error(msg)

    if history_file is not None:
        history = record_history(report, str(out_dir), history_file)
        for cat, diff in compare_with_previous(history).items():
            logger.info("%s change from previous build: %s%s", cat.upper(), "+" if diff > 0 else "", format_bytes(diff))
    return report


__all__ = [
    "HISTORY_FILE",
    "categorize",
    "format_bytes",
    "analyze",
    "check_budgets",
    "load_history",
    "record_history",
    "compare_with_previous",
    "run_bundle_check",
]
