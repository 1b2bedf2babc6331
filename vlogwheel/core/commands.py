# vlogwheel/core/commands.py

from dataclasses import dataclass, field
from typing import Optional

from ..schemas.state import RecordingMode

APPROVE_ALIASES = {"approve", "yes", "👍"}
REJECT_ALIASES = {"reject", "no", "👎"}
MODE_WORDS = {
    "video": RecordingMode.VIDEO,
    "voice": RecordingMode.VOICE,
}
COMMANDS = {"status", "pick", "sync", "leaderboard", "addmember"}


@dataclass
class ParsedCommand:
    name: str
    args: list[str] = field(default_factory=list)


def parse_command(text: str, prefix: str = "!") -> Optional[ParsedCommand]:
    """
    チャットのテキストをコマンドに変換する。該当しなければ None。
    - 投票（approve / reject とその別名）と 'video' / 'voice' は接頭辞なし
    - それ以外のコマンドは接頭辞付き（既定は "!"）: !status, !addmember <id> [name] など
    """
    stripped = (text or "").strip()
    if not stripped:
        return None

    lower = stripped.lower()
    if lower in APPROVE_ALIASES:
        return ParsedCommand("vote", ["approve"])
    if lower in REJECT_ALIASES:
        return ParsedCommand("vote", ["reject"])
    if lower in MODE_WORDS:
        return ParsedCommand("mode", [lower])

    if prefix:
        if not stripped.startswith(prefix):
            return None
        stripped = stripped[len(prefix):]

    parts = stripped.split()
    if not parts:
        return None
    name = parts[0].lower()
    if name not in COMMANDS:
        return None
    # addmember の名前は大文字小文字・空白をそのまま残す
    return ParsedCommand(name, parts[1:])
