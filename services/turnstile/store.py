"""
Result Store

Process-wide map of task id -> TaskResult, backed by one JSON file.

- Loaded once at startup; a missing or unreadable file gives an empty store.
- Every resolved result is flushed to disk before set_result() returns.
- Pending placeholders live in memory only, so a restart never resurrects
  a task that can no longer finish.
- A resolved entry is write-once: later writes for the same id are ignored.
- A failed flush is logged; the in-memory result stays in place.

Usage:
    store = ResultStore("results.json")
    store.load()

    store.set_pending(task_id)
    await store.set_result(task_id, SuccessResult(token=token, elapsed_seconds=1.2))
    result = store.get(task_id)
"""

import asyncio
import json
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from services.turnstile.models import PendingResult, TaskResult, parse_task_result
from utils.exceptions import StoreIOError
from utils.logging import get_logger

logger = get_logger(__name__)


class ResultStore:
    """JSON-file backed result map with write-once resolved entries."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._results: Dict[str, TaskResult] = {}
        self._lock = asyncio.Lock()

    def load(self) -> Dict[str, TaskResult]:
        """
        Replace the in-memory map with the contents of the results file.

        Returns:
            The loaded map (empty if the file is missing or unreadable).
        """
        self._results = {}

        if not self.path.exists():
            return self._results

        try:
            raw = self._read_file()
        except StoreIOError as e:
            logger.warning(e.message)
            return self._results

        for task_id, data in raw.items():
            try:
                result = parse_task_result(data)
            except PydanticValidationError:
                logger.warning(f"Skipping unreadable result for task {task_id}")
                continue
            if result.is_terminal:
                self._results[task_id] = result

        logger.info(f"Loaded {len(self._results)} results from {self.path}")
        return self._results

    def set_pending(self, task_id: str) -> None:
        """Register ``task_id`` as submitted but not yet resolved."""
        self._results[task_id] = PendingResult()

    async def set_result(self, task_id: str, result: TaskResult) -> bool:
        """
        Record the terminal result of a task and flush the store.

        Returns:
            bool: False if the task already had a terminal result, in which
                case nothing is changed.
        """
        async with self._lock:
            current = self._results.get(task_id)
            if current is not None and current.is_terminal:
                logger.warning(f"Ignoring second result for resolved task {task_id}")
                return False

            self._results[task_id] = result
            await self._flush()
            return True

    def get(self, task_id: str) -> Optional[TaskResult]:
        return self._results.get(task_id)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._results

    def __len__(self) -> int:
        return len(self._results)

    async def _flush(self) -> None:
        """Rewrite the results file with every resolved entry."""
        payload = {
            task_id: result.to_json()
            for task_id, result in self._results.items()
            if result.is_terminal
        }
        try:
            await self._write_file(payload)
        except StoreIOError as e:
            logger.error(e.message)

    # =========================================================================
    # File Access
    # =========================================================================

    def _read_file(self) -> dict:
        """
        Read and decode the results file.

        Raises:
            StoreIOError: If the file cannot be read, is not valid JSON,
                or does not hold a JSON object.
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreIOError(f"Error loading results: {e}", path=str(self.path)) from e

        if not isinstance(raw, dict):
            raise StoreIOError(
                "Error loading results: top-level value is not an object",
                path=str(self.path),
            )
        return raw

    async def _write_file(self, payload: dict) -> None:
        """
        Write ``payload`` next to the results file, then swap it into place.

        Raises:
            StoreIOError: If the temp file cannot be written or renamed.
        """
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(payload, indent=4, sort_keys=True))
            await aiofiles.os.replace(temp_path, self.path)
        except OSError as e:
            raise StoreIOError(f"Error saving results: {e}", path=str(self.path)) from e
