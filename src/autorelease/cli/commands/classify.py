"""Implementation of the 'classify' command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from autorelease.config.models import CommitsConfig
from autorelease.core.commits import classify

if TYPE_CHECKING:
    from rich.console import Console


def run_classify(message: str, as_json: bool, console: Console) -> None:
    """Show how a commit message is classified with the default severity table."""
    entry = classify(message, config=CommitsConfig())
    data = {
        "type": str(entry.change_type),
        "commit_type": entry.commit_type,
        "scope": entry.scope,
        "description": entry.description,
        "breaking": entry.is_breaking,
        "bump": str(entry.bump),
    }
    if as_json:
        console.print_json(json.dumps(data))
        return
    for key, value in data.items():
        console.print(f"[dim]{key:>12}[/]  {value if value is not None else '-'}")
