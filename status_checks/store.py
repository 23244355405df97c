from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

import structlog

from status_checks.status import Status, parse_status

logger = structlog.get_logger(__name__)


def coerce_statuses(raw: Any) -> dict[str, Status]:
    """
    Best-effort decode of the persisted url -> label mapping.
    Entries with a non-string key or an unknown label are dropped.
    """
    if not isinstance(raw, dict):
        return {}
    out: dict[str, Status] = {}
    for url, label in raw.items():
        if not isinstance(url, str) or not url:
            continue
        status = parse_status(label)
        if status is None:
            logger.warning("Ignoring unknown status label in cache", url=url, label=label)
            continue
        out[url] = status
    return out


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


class StatusStore:
    """
    Last known status per site url.

    Loaded once at the start of a cycle and saved once at the end. A url that
    is not in the store has no baseline yet (UNKNOWN); get() returns None for it.
    """

    def __init__(self, path: Path | None = None, statuses: dict[str, Status] | None = None) -> None:
        self.path = path
        self._statuses: dict[str, Status] = dict(statuses or {})

    @classmethod
    def load(cls, path: Path) -> "StatusStore":
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Status cache not found; starting with an empty baseline", path=str(path))
            return cls(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read status cache; starting with an empty baseline", path=str(path), error=str(exc))
            return cls(path)

        if not text.strip():
            logger.warning("Status cache is empty; starting with an empty baseline", path=str(path))
            return cls(path)

        try:
            raw = json.loads(text)
        except ValueError as exc:
            logger.warning("Status cache is not valid JSON; starting with an empty baseline", path=str(path), error=str(exc))
            return cls(path)

        if not isinstance(raw, dict):
            logger.warning("Status cache is not a JSON object; starting with an empty baseline", path=str(path))
            return cls(path)

        return cls(path, coerce_statuses(raw))

    def get(self, url: str) -> Status | None:
        return self._statuses.get(url)

    def set(self, url: str, status: Status) -> None:
        self._statuses[url] = status

    def as_dict(self) -> dict[str, str]:
        return {url: status.value for url, status in self._statuses.items()}

    def dumps(self) -> str:
        return json.dumps(self.as_dict(), ensure_ascii=False, indent=2, sort_keys=True) + "\n"

    def save(self) -> bool:
        """Overwrite the cache file in full. Failures are logged, never raised."""
        if self.path is None:
            return False
        try:
            _write_atomic(self.path, self.dumps())
        except OSError as exc:
            logger.error("Failed to save status cache", path=str(self.path), error=str(exc))
            return False
        logger.info("Saved status cache", path=str(self.path), sites=len(self._statuses))
        return True

    def __contains__(self, url: object) -> bool:
        return url in self._statuses

    def __iter__(self) -> Iterator[str]:
        return iter(self._statuses)

    def __len__(self) -> int:
        return len(self._statuses)
