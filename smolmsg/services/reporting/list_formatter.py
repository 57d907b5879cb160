"""Message list formatting for the terminal."""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from smolmsg.config.app_config import ListConfig
from smolmsg.models.message import Message
from smolmsg.utils.text_utils import limit_str_len

DIM = "\x1b[2m"
BOLD = "\x1b[1m"
RESET = "\x1b[0m"
UNREAD_MARKER = "●"


def format_time(now: datetime, t: datetime) -> str:
    """
    Format a message time relative to now.

    Examples:
        >>> now = datetime(2022, 8, 8, 20, 0, 0)
        >>> format_time(now, datetime(2022, 8, 8, 11, 9, 3))
        '11:09:03'
        >>> format_time(now, datetime(2022, 7, 4, 11, 9, 3))
        'Jul 4, 11:09'
        >>> format_time(now, datetime(2021, 7, 4, 11, 9, 3))
        '2021, Jul 4, 11:09'
    """
    if now.year != t.year:
        return f"{t.year}, {t:%b} {t.day}, {t:%H:%M}"
    if now.month != t.month or now.day != t.day:
        return f"{t:%b} {t.day}, {t:%H:%M}"
    return t.strftime("%H:%M:%S")


class MessageListFormatter:
    """Format indexed messages as an aligned, numbered list."""

    def __init__(self, config: Optional[ListConfig] = None, padding: int = 2):
        """
        Initialize formatter with configuration.

        Args:
            config: List display settings
            padding: Spaces between columns
        """
        self.config = config or ListConfig()
        self.padding = padding

    def format_rows(
        self,
        messages: Iterable[Message],
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> List[str]:
        """
        Format messages (newest first) as list lines.

        Rows are numbered downwards from offset + limit. A dimmed separator
        line with the year, month or weekday is inserted whenever the date
        changes between two consecutive messages.

        Args:
            messages: Messages ordered newest first
            offset: Number of newer messages skipped before these
            now: Reference time (default: current local time)

        Returns:
            Output lines without trailing newlines
        """
        now = now or datetime.now().astimezone()
        limit = self.config.limit
        number = offset + limit
        numwidth = len(str(number))

        rows: List[Tuple[str, Tuple[str, str, str]]] = [(DIM, ("  # From", "Subject", "Time"))]
        prev: Optional[datetime] = None

        for message in messages:
            t = message.time or message.id_time()
            if t.tzinfo is not None and now.tzinfo is not None:
                t = t.astimezone(now.tzinfo)

            if prev is not None:
                if t.year != prev.year:
                    rows.append((DIM, (f"  {t.year}", "", "")))
                elif t.month != prev.month:
                    rows.append((DIM, (f"  {t:%B}", "", "")))
                elif t.day != prev.day:
                    rows.append((DIM, (f"  {t:%A}", "", "")))

            sender = message.sender.short_string() if message.sender else ""
            sender = limit_str_len(sender, self.config.from_width)
            subject = limit_str_len(message.subject, self.config.subject_width)
            rows.append(
                (
                    BOLD,
                    (
                        f"{UNREAD_MARKER} {number:>{numwidth}} {sender}",
                        subject,
                        format_time(now, t),
                    ),
                )
            )
            prev = t
            number -= 1

        return self._align(rows)

    def _align(self, rows: List[Tuple[str, Tuple[str, str, str]]]) -> List[str]:
        width0 = max(len(cells[0]) for _, cells in rows) + self.padding
        width1 = max(len(cells[1]) for _, cells in rows) + self.padding

        lines = []
        for style, (first, second, third) in rows:
            text = (first.ljust(width0) + second.ljust(width1) + third).rstrip()
            if self.config.color:
                text = f"{style}{text}{RESET}"
            lines.append(text)
        return lines
