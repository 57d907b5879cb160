"""Tests for MessageListFormatter."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional

from smolmsg.config.app_config import ListConfig
from smolmsg.models.message import Author, Message
from smolmsg.services.codec.identifier import make_id
from smolmsg.services.reporting.list_formatter import (
    BOLD,
    DIM,
    RESET,
    MessageListFormatter,
    format_time,
)

NOW = datetime(2022, 8, 8, 20, 0, 0, tzinfo=timezone.utc)


def make_message(t: datetime, subject: str, sender: Optional[Author]) -> Message:
    return Message(id=make_id(t, bytes(32)), time=t, subject=subject, sender=sender)


class TestFormatTime:
    """Test relative time formatting."""

    def test_same_day(self):
        assert format_time(NOW, datetime(2022, 8, 8, 11, 9, 3)) == "11:09:03"

    def test_same_year(self):
        assert format_time(NOW, datetime(2022, 7, 4, 11, 9, 3)) == "Jul 4, 11:09"

    def test_same_day_of_other_month(self):
        assert format_time(NOW, datetime(2022, 7, 8, 11, 9, 3)) == "Jul 8, 11:09"

    def test_other_year(self):
        assert format_time(NOW, datetime(2021, 7, 4, 11, 9, 3)) == "2021, Jul 4, 11:09"


class TestMessageListFormatter:
    """Test message list layout."""

    @pytest.fixture
    def messages(self):
        """Messages newest first, spanning a day, a month and a year."""
        robin = Author("robin@address", "Robin Smith")
        sam = Author("sam@address")
        return [
            make_message(datetime(2022, 8, 8, 18, 9, 3, tzinfo=timezone.utc), "Hello hej", robin),
            make_message(datetime(2022, 8, 7, 10, 0, 0, tzinfo=timezone.utc), "Weekend", sam),
            make_message(datetime(2022, 7, 1, 9, 0, 0, tzinfo=timezone.utc), "Summer", robin),
            make_message(datetime(2021, 12, 31, 23, 59, 0, tzinfo=timezone.utc), "New year", sam),
        ]

    @pytest.fixture
    def formatter(self):
        """Create formatter without terminal colors."""
        return MessageListFormatter(ListConfig(limit=4, color=False))

    def test_header(self, formatter, messages):
        lines = formatter.format_rows(messages, now=NOW)

        assert lines[0].startswith("  # From")
        assert "Subject" in lines[0]
        assert lines[0].endswith("Time")

    def test_rows_and_separators(self, formatter, messages):
        lines = formatter.format_rows(messages, now=NOW)

        assert [line.strip() for line in lines[1:] if not line.startswith("●")] == [
            "Sunday",
            "July",
            "2021",
        ]
        rows = [line for line in lines if line.startswith("●")]
        assert rows[0].split() == ["●", "4", "Robin", "Smith", "Hello", "hej", "18:09:03"]
        assert rows[1].split()[:4] == ["●", "3", "sam@address", "Weekend"]
        assert rows[1].endswith("Aug 7, 10:00")
        assert rows[2].endswith("Jul 1, 09:00")
        assert rows[3].endswith("2021, Dec 31, 23:59")

    def test_columns_aligned(self, formatter, messages):
        lines = formatter.format_rows(messages, now=NOW)
        rows = [line for line in lines if line.startswith("●")]

        subject_column = lines[0].index("Subject")
        assert rows[0].index("Hello hej") == subject_column
        assert rows[1].index("Weekend") == subject_column

    def test_numbering_with_offset(self, messages):
        formatter = MessageListFormatter(ListConfig(limit=20, color=False))
        lines = formatter.format_rows(messages[:2], offset=20, now=NOW)
        rows = [line for line in lines if line.startswith("●")]

        assert rows[0].startswith("● 40 ")
        assert rows[1].startswith("● 39 ")

    def test_number_column_width(self, messages):
        formatter = MessageListFormatter(ListConfig(limit=10, color=False))
        rows = [line for line in formatter.format_rows(messages, now=NOW) if line.startswith("●")]

        assert rows[0].startswith("● 10 ")
        assert rows[1].startswith("●  9 ")

    def test_long_values_truncated(self):
        formatter = MessageListFormatter(ListConfig(from_width=8, subject_width=10, color=False))
        message = make_message(
            datetime(2022, 8, 8, 18, 0, 0, tzinfo=timezone.utc),
            "A rather long subject line",
            Author("robin@address", "Robin Smith-Jones"),
        )
        row = formatter.format_rows([message], now=NOW)[1]

        assert "Robin S…" in row
        assert "A rather …" in row

    def test_time_shown_in_local_zone_of_now(self, formatter):
        now = NOW.astimezone(timezone(timedelta(hours=2)))
        message = make_message(
            datetime(2022, 8, 8, 18, 9, 3, tzinfo=timezone.utc), "Hi", Author("a@b")
        )
        row = formatter.format_rows([message], now=now)[1]

        assert row.endswith("20:09:03")

    def test_message_without_sender(self, formatter):
        message = make_message(
            datetime(2022, 8, 8, 18, 0, 0, tzinfo=timezone.utc), "Anonymous", None
        )
        lines = formatter.format_rows([message], now=NOW)

        assert lines[1].split()[:3] == ["●", "4", "Anonymous"]
        assert lines[1].index("Anonymous") == lines[0].index("Subject")

    def test_empty_list(self, formatter):
        assert len(formatter.format_rows([], now=NOW)) == 1

    def test_color(self, messages):
        formatter = MessageListFormatter(ListConfig(limit=4, color=True))
        lines = formatter.format_rows(messages, now=NOW)

        assert lines[0].startswith(DIM)
        assert lines[1].startswith(BOLD)
        assert all(line.endswith(RESET) for line in lines)
