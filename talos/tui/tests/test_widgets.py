"""Tests for TUI widgets — MessageDisplay, SecretView, StatusBar, WelcomeBanner."""

from __future__ import annotations

from talos.auth.lifecycle import AuthMethod, Mode
from talos.records.codec import HIDDEN_TOKEN, PASSWORD_MASK, decode
from talos.tui.widgets import MessageDisplay, SecretView, StatusBar, WelcomeBanner


class TestMessageDisplay:
    def test_user_input_is_escaped(self):
        msg = MessageDisplay(content="/show [bold]x", role="user")
        rendered = msg._format()
        assert rendered.startswith("[cyan]> ")
        assert "\\[bold]" in rendered

    def test_error_role(self):
        msg = MessageDisplay(content="ACCESS DENIED", role="error")
        assert msg._format() == "[red]ACCESS DENIED[/red]"

    def test_update_content(self):
        msg = MessageDisplay(content="Loading...", role="system")
        msg.update_content("Done")
        assert "Done" in msg._format()


class TestSecretView:
    def test_idle(self):
        view = SecretView()
        assert "IDLE_SYSTEM" in view._format()
        assert view.path is None

    def test_hidden_record_is_masked(self):
        view = SecretView()
        view.show_record("Work/gitlab", decode(f"{HIDDEN_TOKEN}\nUser: bob\nwork account"))
        rendered = view._format()
        assert "gitlab" in rendered
        assert "bob" in rendered
        assert "work account" in rendered
        assert PASSWORD_MASK in rendered
        assert HIDDEN_TOKEN not in rendered
        assert not view.is_revealed

    def test_revealed_hidden_token_stays_masked(self):
        view = SecretView()
        view.show_record("Work/gitlab", decode(f"{HIDDEN_TOKEN}\nUser: bob"))
        view.reveal(HIDDEN_TOKEN)
        rendered = view._format()
        assert HIDDEN_TOKEN not in rendered
        assert PASSWORD_MASK in rendered

    def test_reveal_then_mask(self):
        view = SecretView()
        view.show_record("Work/gitlab", decode("s3cret\nUser: bob"))
        assert "s3cret" not in view._format()

        view.reveal("s3cret")
        assert view.is_revealed
        assert "s3cret" in view._format()

        view.mask()
        assert "s3cret" not in view._format()
        assert PASSWORD_MASK in view._format()

    def test_opening_another_record_masks(self):
        view = SecretView()
        view.show_record("a", decode("pw-a"))
        view.reveal("pw-a")
        view.show_record("b", decode("pw-b"))
        assert not view.is_revealed
        assert "pw-a" not in view._format()

    def test_clear(self):
        view = SecretView()
        view.show_record("a", decode("pw\nUser: u"))
        view.clear()
        assert view.path is None
        assert "IDLE_SYSTEM" in view._format()

    def test_markup_in_record_is_escaped(self):
        view = SecretView()
        view.show_record("a", decode("pw\nUser: [red]x"))
        assert "\\[red]x" in view._format()


class TestStatusBar:
    def test_default_is_frozen_and_disconnected(self):
        bar = StatusBar()
        rendered = bar._format()
        assert bar.frozen
        assert "FROZEN" in rendered
        assert "disconnected" in rendered

    def test_healthy(self):
        bar = StatusBar()
        bar.set_health(True, True)
        assert not bar.frozen
        assert "FROZEN" not in bar._format()

    def test_partial_health_is_frozen(self):
        bar = StatusBar()
        bar.set_health(True, False)
        assert bar.frozen

    def test_active_session(self):
        bar = StatusBar()
        bar.set_session(Mode.ACTIVE, AuthMethod.MUTUAL_TLS, 125)
        rendered = bar._format()
        assert "DIPLOMATIC" in rendered
        assert "session 02:05" in rendered

    def test_master_key_session(self):
        bar = StatusBar()
        bar.set_session(Mode.ACTIVE, AuthMethod.MASTER_KEY, 900)
        assert "MASTER KEY" in bar._format()
        assert "15:00" in bar._format()

    def test_locked(self):
        bar = StatusBar()
        bar.set_session(Mode.AWAITING_LOGIN)
        assert "locked" in bar._format()
        assert "session" not in bar._format()

    def test_version(self):
        bar = StatusBar()
        bar.set_version("1.2.0")
        assert "v1.2.0" in bar._format()


class TestWelcomeBanner:
    def test_banner_per_mode(self):
        for mode in Mode:
            banner = WelcomeBanner(mode, "http://127.0.0.1:8080")
            assert banner.mode is mode
