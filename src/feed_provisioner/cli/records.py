"""Provisioning record persistence for the provision-feed CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class RecordError(ValueError):
    """Raised when a provisioning record cannot be persisted."""


def save_provisioning_record(*, records_dir: str, feed_pubkey: str, payload: dict[str, Any]) -> Path:
    root = Path(records_dir).expanduser()
    record_path = root / f"{feed_pubkey}.json"
    try:
        root.mkdir(parents=True, exist_ok=True)
        record_path.write_text(
            json.dumps(payload, sort_keys=True, indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise RecordError(f"failed to write provisioning record: {record_path}") from exc
    return record_path
