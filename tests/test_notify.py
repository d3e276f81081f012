"""Tests for desktop notification commands."""

import subprocess
from unittest.mock import patch

import pytest

from clockhand.notify import DesktopNotifier, NotificationFailed


class TestCommand:
    def test_macos_uses_osascript(self):
        cmd = DesktopNotifier(platform="darwin").command("Timer not running", 'Start a timer for "acme"')
        assert cmd[:2] == ["osascript", "-e"]
        assert 'display notification "Start a timer for \\"acme\\""' in cmd[2]
        assert 'with title "Timer not running"' in cmd[2]
        assert 'sound name "Sosumi"' in cmd[2]

    def test_macos_without_sound(self):
        cmd = DesktopNotifier(sound=None, platform="darwin").command("t", "b")
        assert "sound name" not in cmd[2]

    def test_linux_uses_notify_send(self):
        cmd = DesktopNotifier(platform="linux").command("t", "b")
        assert cmd == ["notify-send", "--app-name=clockhand", "t", "b"]


class TestNotify:
    def test_missing_binary(self):
        with patch("clockhand.notify.shutil.which", return_value=None):
            with pytest.raises(NotificationFailed, match="not found"):
                DesktopNotifier(platform="linux").notify("t", "b")

    def test_nonzero_exit(self):
        failed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="no bus")
        with (
            patch("clockhand.notify.shutil.which", return_value="/usr/bin/notify-send"),
            patch("clockhand.notify.subprocess.run", return_value=failed),
        ):
            with pytest.raises(NotificationFailed, match="no bus"):
                DesktopNotifier(platform="linux").notify("t", "b")

    def test_success(self):
        ok = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with (
            patch("clockhand.notify.shutil.which", return_value="/usr/bin/notify-send"),
            patch("clockhand.notify.subprocess.run", return_value=ok) as run,
        ):
            DesktopNotifier(platform="linux").notify("t", "b")
        assert run.call_args[0][0] == ["notify-send", "--app-name=clockhand", "t", "b"]
