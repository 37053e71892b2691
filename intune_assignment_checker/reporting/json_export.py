"""
JSON exporter — the sorted records plus run metadata and per-category totals.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .. import __version__
from ..assignments.aggregator import RecordAggregator
from ..assignments.models import Group
from .csv_export import ExportError


def export_json(
    aggregator: RecordAggregator,
    group: Group,
    path: Path,
    diagnostics: Optional[dict[str, Any]] = None,
) -> Path:
    """
    Write the aggregate to a JSON file.

    Returns:
        Path to the created JSON file.
    """
    payload = {
        "metadata": {
            "tool": "Intune Group Assignment Checker",
            "version": __version__,
            "group": {"id": group.id, "displayName": group.display_name},
            "generated_utc": datetime.now(timezone.utc).isoformat(),
            "mode": "READ-ONLY",
        },
        "summary": aggregator.summary().to_dict(),
        "records": [r.to_row() for r in aggregator.sorted_records()],
    }
    if diagnostics:
        payload["diagnostics"] = diagnostics

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, default=str, ensure_ascii=False)
    except OSError as e:
        raise ExportError(path, str(e)) from e
    return path
