"""Main CLI entry point for smsg."""

import argparse
import logging
import sqlite3
import sys
from pathlib import Path
from typing import List, Optional

from smolmsg import __version__
from smolmsg.config.app_config import AppConfig
from smolmsg.config.config_loader import ConfigError, ConfigLoader
from smolmsg.errors import MessageError
from smolmsg.models.message import Message
from smolmsg.services.codec.identifier import decode_id
from smolmsg.services.codec.message_codec import parse_message_file
from smolmsg.services.indexing.inbox_scanner import InboxScanner
from smolmsg.services.reporting.list_formatter import MessageListFormatter
from smolmsg.storage.audit_log import AuditLog
from smolmsg.storage.database import DatabaseConnection, MessageRepository
from smolmsg.utils.logging_utils import configure_logging
from smolmsg.utils.text_utils import plural

logger = logging.getLogger("smolmsg.cli")

COMMAND_ALIASES = {
    "ls": "list",
    "l": "list",
    "r": "read",
}


def prepare_msgdir(config: AppConfig) -> None:
    """Create the message directory with its inbox and outbox."""
    storage = config.storage
    for path in (storage.get_msgdir(), storage.get_inbox_path(), storage.get_outbox_path()):
        path.mkdir(mode=0o700, parents=True, exist_ok=True)
    logger.debug("MSGDIR=%r", str(storage.get_msgdir()))


def open_index(config: AppConfig) -> DatabaseConnection:
    db = DatabaseConnection(config.storage.get_database_path())
    db.execute_schema()
    return db


def scan_inbox(config: AppConfig, repo: MessageRepository) -> None:
    """Index every message file in the inbox, skipping files that fail."""
    scanner = InboxScanner(
        repo,
        audit_log=AuditLog(config.storage.get_audit_log_path()),
        suffix=config.scan.message_suffix,
        skip_dotfiles=config.scan.skip_dotfiles,
        max_workers=config.scan.max_workers,
    )
    result = scanner.scan(config.storage.get_inbox_path())
    if result.failed:
        logger.warning(
            "skipped %d message %s (see %s)",
            result.failed,
            plural(result.failed, "file", "files"),
            config.storage.get_audit_log_path(),
        )


def cmd_list(config: AppConfig, args: argparse.Namespace) -> int:
    """List the newest messages in the inbox."""
    if args.limit is not None:
        config.listing.limit = args.limit

    db = open_index(config)
    try:
        repo = MessageRepository(db)
        if not args.nowait:
            scan_inbox(config, repo)

        formatter = MessageListFormatter(config.listing)
        messages = repo.list_recent(args.offset, config.listing.limit)
        for line in formatter.format_rows(messages, offset=args.offset):
            print(line)
    finally:
        db.close()
    return 0


def cmd_read(config: AppConfig, args: argparse.Namespace) -> int:
    """Print one indexed message by id."""
    message_id = decode_id(args.id)

    db = open_index(config)
    try:
        message = MessageRepository(db).find_by_id(message_id)
    finally:
        db.close()

    if message is None:
        print(f"No message with id {args.id}", file=sys.stderr)
        return 1

    print_message(message)
    return 0


def cmd_parse(config: AppConfig, args: argparse.Namespace) -> int:
    """Parse message files and print their fields."""
    for i, name in enumerate(args.files):
        if i:
            print()
        message = parse_message_file(Path(name))
        print_message(message, source=name)
    return 0


def cmd_export(config: AppConfig, args: argparse.Namespace) -> int:
    """Export audit log events to JSON."""
    audit_log = AuditLog(config.storage.get_audit_log_path())
    output_path = Path(args.output) if args.output else Path("smsg_audit_export.json")
    count = audit_log.export_events(output_path, event_type=args.event_type)
    print(f"Exported {count} {plural(count, 'event', 'events')} to: {output_path}")
    return 0


def cmd_version(config: AppConfig, args: argparse.Namespace) -> int:
    print(f"smsg {__version__}")
    return 0


def print_message(message: Message, source: Optional[str] = None) -> None:
    """Print message fields, one per line."""
    if source:
        print(f"source:  {source}")
    print(f"id:      {message.id_string()}")
    if message.time is not None:
        print(f"time:    {message.time.isoformat()}")
    if message.sender is not None:
        print(f"from:    {message.sender}")
    if message.recipient is not None:
        print(f"to:      {message.recipient}")
    print(f"subject: {message.subject}")
    for i, attachment in enumerate(message.files, 1):
        print(
            f"file {i}:  {attachment.name or '(unnamed)'} "
            f"({attachment.data_len} bytes at offset {attachment.data_start})"
        )
    if message.body:
        print()
        print(message.body.decode("utf-8", errors="replace"))


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def non_negative_int(value: str) -> int:
    """argparse type for counts that may be 0."""
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smsg", description="smsg - small local messages")
    parser.add_argument(
        "-C",
        dest="msgdir",
        help="Set messages root directory. Overrides environment variable "
        "SMSG_MSGDIR. Defaults to ~/.smolmsg",
    )
    parser.add_argument("-D", dest="debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--config", type=Path, help="Custom config file path")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list", aliases=["ls", "l"], help="List messages in your inbox (default)")
    list_parser.add_argument("--nowait", action="store_true", help="Don't wait for inbox scan")
    list_parser.add_argument("--limit", type=positive_int, help="Number of messages to show")
    list_parser.add_argument("--offset", type=non_negative_int, default=0, help="Number of newest messages to skip")

    read_parser = subparsers.add_parser("read", aliases=["r"], help="Read a message")
    read_parser.add_argument("id", help="Message id")

    parse_parser = subparsers.add_parser("parse", help="Parse message files and print them")
    parse_parser.add_argument("files", nargs="+", help="Message file(s)")

    export_parser = subparsers.add_parser("export", help="Export audit log events")
    export_parser.add_argument("--output", type=Path, help="Output file path")
    export_parser.add_argument(
        "--type",
        dest="event_type",
        choices=["parse_failure", "message_indexed"],
        help="Only export events of this type",
    )

    subparsers.add_parser("version", help="Print version and exit")
    return parser


COMMANDS = {
    "list": cmd_list,
    "read": cmd_read,
    "parse": cmd_parse,
    "export": cmd_export,
    "version": cmd_version,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMAND_ALIASES.get(args.command, args.command) or "list"
    if args.version or command == "version":
        return cmd_version(AppConfig(), args)

    if args.command is None:
        # Default command: list with its default options
        args = parser.parse_args([*(argv if argv is not None else sys.argv[1:]), "list"])

    try:
        config = ConfigLoader(args.config, msgdir=args.msgdir).load_app_config()
        if args.debug:
            config.debug = True
        configure_logging(config.debug)
        prepare_msgdir(config)
        return COMMANDS[command](config, args)
    except (MessageError, ConfigError, OSError, sqlite3.Error) as e:
        print(f"{parser.prog}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
