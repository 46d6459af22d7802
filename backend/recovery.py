"""Local recovery cache for in-progress sessions.

The snapshot is written to two files so a crash while one of them is being
rewritten still leaves a readable copy behind.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from . import RECOVERY_DIR


def recovery_base_for(user_id: str, directory: Path = RECOVERY_DIR) -> Path:
    """Return the recovery base path for ``user_id``."""

    safe = re.sub(r"[^A-Za-z0-9_-]", "_", user_id) or "anonymous"
    return Path(directory) / f"session_recovery_{safe}"


class RecoveryStore:
    """Single snapshot slot backed by ``<base>_1.json`` and ``<base>_2.json``."""

    def __init__(self, base: Path):
        self.base = Path(base)

    @property
    def paths(self) -> tuple[Path, Path]:
        return (
            self.base.with_name(self.base.name + "_1.json"),
            self.base.with_name(self.base.name + "_2.json"),
        )

    def save(self, snapshot: dict) -> None:
        """Overwrite both recovery files with ``snapshot``."""

        payload = json.dumps(snapshot)
        try:
            self.base.parent.mkdir(parents=True, exist_ok=True)
            for path in self.paths:
                path.write_text(payload, encoding="utf-8")
        except OSError:
            logging.exception("Writing recovery state to %s failed", self.base)

    def load(self) -> dict | None:
        """Return the first readable snapshot, or ``None``."""

        for path in self.paths:
            if not path.exists():
                continue
            try:
                text = path.read_text(encoding="utf-8").strip()
                if not text:
                    continue
                data = json.loads(text)
            except (OSError, ValueError):
                logging.warning("Ignoring unreadable recovery file %s", path)
                continue
            if isinstance(data, dict):
                return data
        return None

    def clear(self) -> None:
        """Remove any existing recovery files."""

        for path in self.paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError:
                logging.exception("Removing recovery file %s failed", path)
