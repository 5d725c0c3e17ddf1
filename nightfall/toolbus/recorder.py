"""Record/replay of tool results for deterministic fixtures.

File format::

    {"version": 1, "records": {"<sha1>": {"tool", "args", "result", "ts"}}}

Keys are the sha1 of ``"<tool>:<compact JSON args>"``.
"""

import hashlib
import json
from pathlib import Path
from typing import Any

from nightfall.audit.models import utc_now
from nightfall.observability.logging import get_logger
from nightfall.toolbus.models import ToolMode

logger = get_logger(__name__)

RECORD_FILE_VERSION = 1


def record_key(tool: str, args: dict[str, Any]) -> str:
    """Stable hash of a tool call."""
    raw = f"{tool}:{json.dumps(args, separators=(',', ':'), ensure_ascii=False)}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class ToolRecorder:
    """Reads and writes the fixture file for record and replay modes.

    In any other mode both operations are no-ops.
    """

    def __init__(self, mode: ToolMode, path: str | Path) -> None:
        self._mode = mode
        self._path = Path(path)
        self._enabled = mode in ("record", "replay")
        self._loaded = False
        self._records: dict[str, dict[str, Any]] = {}

    @property
    def mode(self) -> ToolMode:
        return self._mode

    @property
    def records(self) -> dict[str, dict[str, Any]]:
        self._load()
        return dict(self._records)

    def replay(self, tool: str, args: dict[str, Any]) -> Any | None:
        """Return the recorded result for this call, or None on a miss."""
        if self._mode != "replay":
            return None
        self._load()
        entry = self._records.get(record_key(tool, args))
        return None if entry is None else entry.get("result")

    def record(self, tool: str, args: dict[str, Any], result: Any) -> None:
        if self._mode != "record":
            return
        self._load()
        self._records[record_key(tool, args)] = {
            "tool": tool,
            "args": args,
            "result": result,
            "ts": utc_now().isoformat(),
        }
        self._save()

    def _load(self) -> None:
        if not self._enabled or self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("tool_record_file_invalid", path=str(self._path), error=str(e))
            return
        if isinstance(data, dict) and isinstance(data.get("records"), dict):
            self._records = data["records"]

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": RECORD_FILE_VERSION, "records": self._records}
        self._path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
