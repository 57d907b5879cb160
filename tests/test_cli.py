"""Tests for the smsg command line."""

import logging

import pytest

from cli.main import main
from smolmsg import __version__
from smolmsg.config.config_loader import MSGDIR_ENV
from smolmsg.services.codec.message_codec import parse_message_file

MESSAGE = (
    b"subject Hello hej\n"
    b"from robin@address Robin Smith\n"
    b"to sam@address\n"
    b"body 5\nHello\n"
    b"file 11 hello.txt\nHello\nworld\n"
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the user's config and logging setup out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(MSGDIR_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    logger = logging.getLogger("smolmsg")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def msgdir(tmp_path):
    """Message directory with one message in the inbox."""
    msgdir = tmp_path / "msgs"
    inbox = msgdir / "inbox"
    inbox.mkdir(parents=True)
    (inbox / "20220808-180903.msg").write_bytes(MESSAGE)
    return msgdir


class TestVersion:
    def test_version_flag(self, capsys):
        assert main(["--version"]) == 0
        assert capsys.readouterr().out.strip() == f"smsg {__version__}"

    def test_version_command(self, capsys):
        assert main(["version"]) == 0
        assert __version__ in capsys.readouterr().out


class TestListCommand:
    def test_list(self, msgdir, capsys):
        assert main(["-C", str(msgdir), "list"]) == 0

        out = capsys.readouterr().out
        assert "Robin Smith" in out
        assert "Hello hej" in out
        assert (msgdir / "smsg.db").exists()
        assert (msgdir / "outbox").is_dir()

    def test_default_command_is_list(self, msgdir, capsys):
        assert main(["-C", str(msgdir)]) == 0
        assert "Hello hej" in capsys.readouterr().out

    def test_alias(self, msgdir, capsys):
        assert main(["-C", str(msgdir), "ls", "--limit", "5"]) == 0
        assert "Hello hej" in capsys.readouterr().out

    @pytest.mark.parametrize("option", [["--limit", "0"], ["--limit", "-1"], ["--offset", "-1"]])
    def test_rejects_out_of_range_counts(self, msgdir, capsys, option):
        with pytest.raises(SystemExit) as exc_info:
            main(["-C", str(msgdir), "list", *option])

        assert exc_info.value.code == 2
        assert option[0] in capsys.readouterr().err

    def test_limit_restricts_rows(self, msgdir, capsys):
        (msgdir / "inbox" / "20220809-100000.msg").write_bytes(b"subject newer\n")

        assert main(["-C", str(msgdir), "list", "--limit", "1"]) == 0

        out = capsys.readouterr().out
        assert "newer" in out
        assert "Hello hej" not in out

    def test_nowait_skips_scan(self, msgdir, capsys):
        assert main(["-C", str(msgdir), "list", "--nowait"]) == 0
        assert "Hello hej" not in capsys.readouterr().out

    def test_msgdir_from_environment(self, msgdir, capsys, monkeypatch):
        monkeypatch.setenv(MSGDIR_ENV, str(msgdir))

        assert main(["list"]) == 0
        assert "Hello hej" in capsys.readouterr().out

    def test_broken_file_skipped(self, msgdir, capsys):
        (msgdir / "inbox" / "20220809-000000.msg").write_bytes(b"color red\n")

        assert main(["-C", str(msgdir), "list"]) == 0
        captured = capsys.readouterr()
        assert "Hello hej" in captured.out
        assert "[warning]" in captured.err


class TestReadCommand:
    def test_read(self, msgdir, capsys):
        message_id = parse_message_file(msgdir / "inbox" / "20220808-180903.msg").id_string()
        main(["-C", str(msgdir), "list"])
        capsys.readouterr()

        assert main(["-C", str(msgdir), "r", message_id]) == 0

        out = capsys.readouterr().out
        assert f"id:      {message_id}" in out
        assert "subject: Hello hej" in out

    def test_read_unknown_id(self, msgdir, capsys):
        assert main(["-C", str(msgdir), "read", "01"]) == 1
        assert "No message with id 01" in capsys.readouterr().err

    def test_read_invalid_id(self, msgdir, capsys):
        assert main(["-C", str(msgdir), "read", "not-an-id"]) == 1
        assert capsys.readouterr().err.startswith("smsg: ")


class TestParseCommand:
    def test_parse(self, msgdir, capsys):
        path = msgdir / "inbox" / "20220808-180903.msg"

        assert main(["-C", str(msgdir), "parse", str(path)]) == 0

        out = capsys.readouterr().out
        assert "subject: Hello hej" in out
        assert '"Robin Smith" robin@address' in out
        assert "hello.txt (11 bytes at offset" in out
        assert "Hello" in out

    def test_parse_without_authors(self, msgdir, tmp_path, capsys):
        path = tmp_path / "20220808-180903.msg"
        path.write_bytes(b"subject anonymous\n")

        assert main(["-C", str(msgdir), "parse", str(path)]) == 0

        out = capsys.readouterr().out
        assert "subject: anonymous" in out
        assert "from:" not in out
        assert "to:" not in out

    def test_parse_error(self, msgdir, tmp_path, capsys):
        path = tmp_path / "20220808-180903.msg"
        path.write_bytes(b"subject x\n body\n")

        assert main(["-C", str(msgdir), "parse", str(path)]) == 1
        assert f"{path}:2: invalid leading space" in capsys.readouterr().err


class TestExportCommand:
    def test_export(self, msgdir, tmp_path, capsys):
        main(["-C", str(msgdir), "list"])
        output = tmp_path / "events.json"

        assert main(["-C", str(msgdir), "export", "--output", str(output)]) == 0
        assert output.exists()
        assert "Exported 1 event" in capsys.readouterr().out
