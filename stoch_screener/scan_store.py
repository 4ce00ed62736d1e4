"""
Last finished report per scan mode, persisted to a JSON file.

Lets an interactive caller offer "reuse the cached result" instead of
starting a fresh scan.

File layout:
    {"oversold": {"timestamp": "2024-05-02T10:00:12+07:00", "report": {...}}}
"""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .logger import logger
from .models import ScanMode, ScanReport


@dataclass
class StoredScan:
    report: ScanReport
    timestamp: datetime

    def age_minutes(self, now: datetime | None = None) -> float:
        now = now or datetime.now(self.timestamp.tzinfo)
        return (now - self.timestamp).total_seconds() / 60


class ScanStore:
    """JSON-backed store of the latest report for each scan mode"""

    def __init__(self, path: str = "data/last_scans.json"):
        self.path = Path(path)
        self.data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value is not an object")
            logger.debug("scan_store.loaded", modes=list(data))
            return data
        except (OSError, ValueError) as e:
            logger.error("scan_store.load_failed", path=str(self.path), error=str(e))
            return {}

    def _save(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error("scan_store.save_failed", path=str(self.path), error=str(e))

    def get(self, mode: ScanMode) -> StoredScan | None:
        entry = self.data.get(ScanMode(mode).value)
        if not entry:
            return None

        try:
            return StoredScan(
                report=ScanReport.from_dict(entry["report"]),
                timestamp=datetime.fromisoformat(entry["timestamp"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("scan_store.entry_invalid", mode=ScanMode(mode).value, error=str(e))
            return None

    def save(self, report: ScanReport, timestamp: datetime | None = None):
        timestamp = timestamp or report.generated_at
        self.data[report.mode.value] = {
            "timestamp": timestamp.isoformat(),
            "report": report.to_dict(),
        }
        self._save()
        logger.info("scan_store.saved", mode=report.mode.value, screened=report.screened)

    def clear(self, mode: ScanMode | None = None):
        if mode is None:
            self.data = {}
        else:
            self.data.pop(ScanMode(mode).value, None)
        self._save()
