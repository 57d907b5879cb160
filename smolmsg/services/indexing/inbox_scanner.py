"""Inbox scanning: parse message files and store them in the index."""

import logging
import os
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from smolmsg.errors import MessageError
from smolmsg.models.message import Message
from smolmsg.services.codec.message_codec import MESSAGE_SUFFIX, parse_message_file
from smolmsg.storage.audit_log import AuditLog
from smolmsg.storage.database import MessageRepository
from smolmsg.utils.text_utils import plural

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of an inbox scan."""

    indexed: int = 0
    failed: int = 0
    errors: List[Tuple[Path, Exception]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.indexed + self.failed


class InboxScanner:
    """
    Finds message files under a directory and indexes them.

    Each file is parsed in its own worker task. A file that fails to parse
    or store is logged and skipped; the rest of the scan continues.
    """

    def __init__(
        self,
        repository: MessageRepository,
        audit_log: Optional[AuditLog] = None,
        suffix: str = MESSAGE_SUFFIX,
        skip_dotfiles: bool = True,
        max_workers: int = 8,
    ):
        """
        Initialize scanner.

        Args:
            repository: Index the parsed messages are stored in
            audit_log: Optional audit log for indexed and skipped files
            suffix: File name suffix of message files
            skip_dotfiles: Ignore files and directories whose name starts with "."
            max_workers: Number of files parsed concurrently
        """
        self.repository = repository
        self.audit_log = audit_log
        self.suffix = suffix
        self.skip_dotfiles = skip_dotfiles
        self.max_workers = max_workers

    def iter_message_files(self, root: Union[str, Path]) -> Iterator[Path]:
        """
        Walk a directory tree, newest file names first.

        Args:
            root: Directory to walk

        Yields:
            Paths of message files, in reverse name order per directory

        Raises:
            FileNotFoundError: If root does not exist
            NotADirectoryError: If root is not a directory
        """
        root = Path(root)
        if not root.exists():
            raise FileNotFoundError(f"Message directory not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"{str(root)!r} is not a directory")

        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name, reverse=True)

        for entry in entries:
            if self.skip_dotfiles and entry.name.startswith("."):
                continue
            if entry.is_dir():
                yield from self.iter_message_files(entry.path)
            elif entry.name.endswith(self.suffix):
                yield Path(entry.path)

    def scan(self, root: Union[str, Path]) -> ScanResult:
        """
        Parse and index every message file under root.

        Args:
            root: Directory to scan (usually the inbox)

        Returns:
            ScanResult with counts and the errors of skipped files
        """
        paths = list(self.iter_message_files(root))
        logger.debug("[scan] %d message %s under %s", len(paths), plural(len(paths), "file", "files"), root)

        result = ScanResult()
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for path, error in pool.map(self.load_message, paths):
                if error is None:
                    result.indexed += 1
                else:
                    result.failed += 1
                    result.errors.append((path, error))

        logger.debug("[scan] indexed %d, skipped %d", result.indexed, result.failed)
        return result

    def load_message(self, path: Path) -> Tuple[Path, Optional[Exception]]:
        """
        Parse one message file and store it.

        Returns:
            Tuple of (path, error); error is None on success
        """
        try:
            message = parse_message_file(path)
        except (MessageError, OSError) as e:
            logger.warning("failed to read message file %r: %s", str(path), e)
            self._record_failure(path, e)
            return path, e

        try:
            self.repository.put(message)
        except sqlite3.Error as e:
            logger.error("failed to put message %s into database: %s", message, e)
            self._record_failure(path, e)
            return path, e

        self._record_indexed(path, message)
        return path, None

    def _record_failure(self, path: Path, error: Exception) -> None:
        if self.audit_log is not None:
            self.audit_log.log_parse_failure(path, error)

    def _record_indexed(self, path: Path, message: Message) -> None:
        if self.audit_log is not None:
            self.audit_log.log_message_indexed(
                message.id_string(),
                path,
                {"attachments": len(message.files), "body_size": len(message.body)},
            )
