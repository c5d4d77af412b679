"""Append-only JSON dataset, one numbered file per record."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterator

from esg_crawler.errors import SinkError
from esg_crawler.models import OutputRecord

logger = logging.getLogger(__name__)

DEFAULT_DATASET_DIR = Path("storage/datasets/default")


class Dataset:
    """
    Stores output records as ``000000001.json``, ``000000002.json``, ...

    Numbering continues after any files already in the directory, so a
    dataset can be appended to across runs.
    """

    def __init__(self, dataset_dir: Path | None = None) -> None:
        self._dir = Path(dataset_dir) if dataset_dir else DEFAULT_DATASET_DIR
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._count = self._last_index()

    @property
    def path(self) -> Path:
        return self._dir

    def __len__(self) -> int:
        return self._count

    def _last_index(self) -> int:
        indexes = [int(f.stem) for f in self._dir.glob("*.json") if f.stem.isdigit()]
        return max(indexes, default=0)

    def _path(self, index: int) -> Path:
        return self._dir / f"{index:09d}.json"

    def push_data(self, record: OutputRecord) -> Path:
        with self._lock:
            index = self._count + 1
            path = self._path(index)
            try:
                path.write_text(
                    json.dumps(record.model_dump(), ensure_ascii=False, indent=2),
                    encoding="utf-8",
                )
            except OSError as exc:
                raise SinkError(f"Failed to write {path}: {exc}") from exc
            self._count = index
        logger.debug("Stored record %d for %s", index, record.url)
        return path

    def items(self) -> Iterator[OutputRecord]:
        """Yield stored records in insertion order."""
        files = sorted(
            (f for f in self._dir.glob("*.json") if f.stem.isdigit()),
            key=lambda f: int(f.stem),
        )
        for f in files:
            yield OutputRecord.model_validate_json(f.read_text(encoding="utf-8"))

    def clear(self) -> None:
        """Remove all stored records."""
        with self._lock:
            for f in self._dir.glob("*.json"):
                f.unlink()
            self._count = 0
        logger.info("Dataset cleared")
