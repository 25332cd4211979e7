"""Small shared utilities for ingresscheck.

Report file output and the Rich stderr console.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console

# Progress and diagnostics go to stderr; stdout carries the report.
console = Console(stderr=True)


def rprint(msg: str, *, style: str = "") -> None:
    """Print to stderr with Rich styling."""
    console.print(msg, style=style)


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------

def write_json(data: Any, path: str | Path) -> Path:
    """Write *data* as pretty-printed JSON and return the path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, default=str)
        fh.write("\n")
    return p
