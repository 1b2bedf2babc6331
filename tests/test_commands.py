# tests/test_commands.py

import pytest

from vlogwheel.core.commands import ParsedCommand, parse_command


@pytest.mark.parametrize("text", ["approve", "Yes", " 👍 ", "APPROVE"])
def test_approve_aliases(text):
    assert parse_command(text) == ParsedCommand("vote", ["approve"])


@pytest.mark.parametrize("text", ["reject", "no", "👎"])
def test_reject_aliases(text):
    assert parse_command(text) == ParsedCommand("vote", ["reject"])


def test_mode_words_need_no_prefix():
    assert parse_command("voice") == ParsedCommand("mode", ["voice"])
    assert parse_command("Video") == ParsedCommand("mode", ["video"])


def test_prefixed_commands():
    assert parse_command("!status") == ParsedCommand("status", [])
    assert parse_command("!LEADERBOARD") == ParsedCommand("leaderboard", [])
    assert parse_command("!addmember 444@s.whatsapp.net Dana Scully") == ParsedCommand(
        "addmember", ["444@s.whatsapp.net", "Dana", "Scully"]
    )


@pytest.mark.parametrize("text", ["", "   ", "status", "!", "!unknown", "hello approve", "/status"])
def test_unrecognized_text(text):
    assert parse_command(text) is None


def test_custom_prefix():
    assert parse_command("/pick", prefix="/") == ParsedCommand("pick", [])
    assert parse_command("!pick", prefix="/") is None
