"""Desktop notifications."""

import logging
import shutil
import subprocess
import sys
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_SOUND = "Sosumi"


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class NotificationFailed(RuntimeError):
    """The OS notification command could not be run."""


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotifier:
    """Shows notifications through osascript on macOS and notify-send elsewhere."""

    def __init__(self, sound: str | None = DEFAULT_SOUND, platform: str = sys.platform):
        self.sound = sound
        self.platform = platform

    def command(self, title: str, body: str) -> list[str]:
        if self.platform == "darwin":
            script = f"display notification {_applescript_string(body)} with title {_applescript_string(title)}"
            if self.sound:
                script += f" sound name {_applescript_string(self.sound)}"
            return ["osascript", "-e", script]
        return ["notify-send", "--app-name=clockhand", title, body]

    def notify(self, title: str, body: str) -> None:
        cmd = self.command(title, body)
        if shutil.which(cmd[0]) is None:
            raise NotificationFailed(f"{cmd[0]} not found on PATH")

        result = subprocess.run(cmd, capture_output=True, text=True, timeout=10)
        if result.returncode != 0:
            raise NotificationFailed(f"{cmd[0]} exited {result.returncode}: {result.stderr.strip()}")
        logger.info("Notification sent: %s", title)
