"""Audit log of inbox scan events."""

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional


class AuditLog:
    """JSON-lines audit log of indexed messages and skipped message files."""

    def __init__(self, log_path: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file (default: ~/.smolmsg/logs/audit.log)
        """
        if log_path is None:
            log_path = Path("~/.smolmsg/logs/audit.log").expanduser()

        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def log_parse_failure(self, file_path: Path, error: Exception) -> None:
        """
        Log a message file that could not be parsed or stored.

        Args:
            file_path: Path to message file
            error: The error that caused the file to be skipped
        """
        event = {
            "timestamp": datetime.now().isoformat(),
            "event_type": "parse_failure",
            "file_path": str(file_path),
            "error_type": type(error).__name__,
            "error_details": str(error),
            "line": getattr(error, "lineno", None),
        }

        self._write_event(event)

    def log_message_indexed(
        self,
        message_id: str,
        file_path: Path,
        metadata: Optional[dict] = None,
    ) -> None:
        """
        Log a message that was added to the index.

        Args:
            message_id: Base-62 message id
            file_path: Path to message file
            metadata: Additional event metadata
        """
        event = {
            "timestamp": datetime.now().isoformat(),
            "event_type": "message_indexed",
            "message_id": message_id,
            "file_path": str(file_path),
            **(metadata or {}),
        }

        self._write_event(event)

    def iter_events(self, event_type: Optional[str] = None) -> Iterator[dict]:
        """
        Read events back from the log, oldest first.

        Lines that are not valid JSON (e.g. a partial write) are skipped.

        Args:
            event_type: Only yield events of this type

        Yields:
            Event dictionaries
        """
        if not self.log_path.exists():
            return

        with open(self.log_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if event_type is None or event.get("event_type") == event_type:
                    yield event

    def export_events(self, output_path: Path, event_type: Optional[str] = None) -> int:
        """
        Export audit events as a single JSON array.

        Args:
            output_path: Path to output JSON file
            event_type: Only export events of this type

        Returns:
            Number of events exported
        """
        events = list(self.iter_events(event_type))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(events, f, indent=2, ensure_ascii=False)

        return len(events)

    def _write_event(self, event: dict) -> None:
        """
        Write event to log file.

        Args:
            event: Event dictionary
        """
        with self._lock:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event, ensure_ascii=False) + "\n")
