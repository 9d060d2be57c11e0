"""State file output: overwrites one JSON document with the full engine state.

The file is replaced atomically after every tick (last write wins). Parent
directories are created on first write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from models.state import EngineState

logger = logging.getLogger(__name__)


class StateWriter:
    """Persists ``EngineState`` to ``path`` as pretty-printed JSON."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, state: EngineState) -> None:
        """Overwrite the state file. ``OSError`` propagates to the caller."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        _write_json(self._path, state.model_dump(mode="json"))
        logger.debug("Wrote engine state to %s", self._path)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _write_json(path: Path, data: Any) -> None:
    """Atomically replace *path* with *data* as pretty-printed JSON.

    The document is written to a temporary file in the same directory and
    moved over *path* with ``os.replace``; readers see the old file or the new
    one, never a partial write.
    """
    text = json.dumps(data, indent=2, default=str)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
        os.replace(tmp_name, path)
    except OSError:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise
