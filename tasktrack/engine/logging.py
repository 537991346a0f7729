"""
TaskTrack Logging — Structured JSON audit logs with an async write queue.

Implements:
- FileLogger: Per-object-type, per-category JSONL files (daily rotation)
- AsyncLogQueue: In-memory queue with background flush (interval / batch size)
- Log entry builders for task, auth, security, API and notification events
- configure_logging(): stdlib logging setup for operational messages

Layout: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("tasktrack.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "tasks": ["execution", "security"],
    "auth": ["execution", "security"],
    "admin": ["execution", "security"],
    "api": ["execution", "performance"],
    "notifications": ["execution"],
    "system": ["execution", "security"],
}


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.
    Files rotate daily: logs/{object_type}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of log entries, grouping by file path."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            file_path = str(self._resolve_path(entry.object_type, entry.category))
            grouped[file_path].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        """Resolve the log file path for today's date."""
        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, ()):
            object_type, category = "system", "execution"
        today = date.today().isoformat()
        return self._log_dir / object_type / category / f"{today}.jsonl"


class AsyncLogQueue:
    """
    In-memory queue with a background flush thread.

    Entries are pushed non-blocking. The thread flushes to FileLogger every
    flush_interval_ms OR when flush_batch_size entries accumulate, whichever
    comes first.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._logger = file_logger
        self._flush_interval = flush_interval_ms / 1000.0
        self._flush_batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._running = False
        self._flush_thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    def start(self) -> None:
        """Start the background flush thread."""
        if self._running:
            return
        self._running = True
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name="tasktrack-log-flush",
            daemon=True,
        )
        self._flush_thread.start()
        logger.info("Async log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flush thread and drain remaining entries."""
        self._running = False
        if self._flush_thread and self._flush_thread.is_alive():
            self._flush_thread.join(timeout=timeout)
        self._drain()
        logger.info("Async log queue stopped (dropped: %d)", self._dropped_count)

    def push(self, entry: LogEntry) -> bool:
        """
        Push a log entry to the queue. Non-blocking.

        Returns:
            True if queued, False if dropped (queue full).
        """
        try:
            self._queue.put_nowait(entry)
            return True
        except Full:
            self._dropped_count += 1
            return False

    def _flush_loop(self) -> None:
        while self._running:
            batch = self._collect_batch()
            if batch:
                try:
                    self._logger.write_batch(batch)
                except OSError as e:
                    logger.error("Log flush error: %s", e)
            else:
                time.sleep(self._flush_interval)

    def _collect_batch(self) -> List[LogEntry]:
        batch: List[LogEntry] = []
        deadline = time.monotonic() + self._flush_interval

        while len(batch) < self._flush_batch_size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                batch.append(self._queue.get(timeout=min(remaining, 0.01)))
            except Empty:
                if batch:
                    break
        return batch

    def _drain(self) -> None:
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        if batch:
            try:
                self._logger.write_batch(batch)
            except OSError as e:
                logger.error("Log drain error: %s", e)

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    execution_id: Optional[str] = None,
    user_id: Optional[Any] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if execution_id:
        entry["execution_id"] = execution_id
    if user_id is not None:
        entry["user_id"] = user_id
    entry.update(extra)
    return entry


def log_task_operation(
    operation: str,
    execution_id: str,
    user_id: Any,
    task_id: Optional[int] = None,
    fields_changed: Optional[List[str]] = None,
    status_transition: Optional[str] = None,
) -> LogEntry:
    """Build a task create/update/delete log entry."""
    data = _base_entry(
        event=f"task_{operation}",
        level="INFO",
        execution_id=execution_id,
        user_id=user_id,
        operation=operation,
    )
    if task_id is not None:
        data["task_id"] = task_id
    if fields_changed:
        data["fields_changed"] = fields_changed
    if status_transition:
        data["status_transition"] = status_transition
    return LogEntry("tasks", "execution", data)


def log_security_event(
    event: str,
    operation: str,
    user_id: Any,
    role: str,
    execution_id: Optional[str] = None,
    task_id: Optional[int] = None,
    reason: Optional[str] = None,
    object_type: str = "tasks",
) -> LogEntry:
    """Build a security event log entry (denied access)."""
    data = _base_entry(
        event=event,
        level="WARNING",
        execution_id=execution_id,
        user_id=user_id,
        operation=operation,
        role=role,
    )
    if task_id is not None:
        data["task_id"] = task_id
    if reason:
        data["reason"] = reason
    return LogEntry(object_type if object_type in OBJECT_TYPE_CATEGORIES else "system", "security", data)


def log_auth_event(
    event: str,
    email: str,
    success: bool,
    user_id: Optional[Any] = None,
    failure_reason: Optional[str] = None,
) -> LogEntry:
    """Build a signup/login log entry. Failures go to the security category."""
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        user_id=user_id,
        email=email,
        success=success,
    )
    if failure_reason:
        data["failure_reason"] = failure_reason
    return LogEntry("auth", "execution" if success else "security", data)


def log_api_request(
    execution_id: str,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    user_id: Optional[Any] = None,
    client_ip: Optional[str] = None,
) -> LogEntry:
    """Build an HTTP request log entry."""
    data = _base_entry(
        event="api_request",
        level="INFO" if status_code < 400 else "ERROR" if status_code >= 500 else "WARNING",
        execution_id=execution_id,
        user_id=user_id,
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration_ms, 2),
    )
    if client_ip:
        data["client_ip"] = client_ip
    return LogEntry("api", "execution", data)


def log_notification(
    template: str,
    recipient: str,
    delivered: bool,
    transport: str,
    notification_id: Optional[str] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an outbound notification log entry."""
    data = _base_entry(
        event="notification_sent" if delivered else "notification_failed",
        level="INFO" if delivered else "ERROR",
        template=template,
        recipient=recipient,
        delivered=delivered,
        transport=transport,
    )
    if notification_id:
        data["notification_id"] = notification_id
    if error:
        data["error"] = error
    return LogEntry("notifications", "execution", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event log entry (startup, shutdown)."""
    data = _base_entry(event=event, level=level)
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

def configure_logging(level: str = "INFO") -> None:
    """Configure the stdlib ``tasktrack`` logger hierarchy."""
    root = logging.getLogger("tasktrack")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        root.addHandler(handler)


def create_log_queue(
    log_dir: str = "logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Build and start an async log queue writing under *log_dir*."""
    queue = AsyncLogQueue(
        file_logger=FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    queue.start()
    return queue


def emit(log_queue: Optional[AsyncLogQueue], entry: LogEntry) -> bool:
    """Push *entry* if audit logging is enabled. Non-blocking."""
    if log_queue is None:
        return False
    return log_queue.push(entry)
