"""Tests for the add-ssh-key step."""

import stat

import pytest

from bootstrapcore.errors import EmptyKeyError
from bootstrapcore.models import StepOutcome
from bootstrapcore.runner import Runner
from bootstrapcore.steps.authorized_keys import AddAuthorizedKey

KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOMqqnkVzrm0SdG6UOoqKLsabgH5C9okWi0dh2l9GKJl user@host"


class CountingProvider:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


class TestAddAuthorizedKey:

    def test_appends_to_empty_file(self, authorized_keys):
        authorized_keys.parent.mkdir(parents=True)
        authorized_keys.write_text("")
        step = AddAuthorizedKey(authorized_keys, lambda: KEY)

        assert step.check() is False
        step.apply()

        assert authorized_keys.read_text().splitlines() == [KEY]
        assert step.check() is True

    def test_rerun_leaves_file_unchanged(self, authorized_keys, root_context):
        authorized_keys.parent.mkdir(parents=True)
        authorized_keys.write_text("")

        first = Runner(root_context).run([AddAuthorizedKey(authorized_keys, lambda: KEY)])
        content = authorized_keys.read_text()
        second = Runner(root_context).run([AddAuthorizedKey(authorized_keys, lambda: KEY)])

        assert first.results[0].outcome == StepOutcome.SUCCEEDED
        assert second.results[0].outcome == StepOutcome.SKIPPED
        assert authorized_keys.read_text() == content
        assert content.splitlines().count(KEY) == 1

    def test_creates_directory_and_file(self, authorized_keys):
        AddAuthorizedKey(authorized_keys, lambda: KEY).apply()

        assert authorized_keys.read_text() == KEY + "\n"
        assert stat.S_IMODE(authorized_keys.stat().st_mode) == 0o600
        assert stat.S_IMODE(authorized_keys.parent.stat().st_mode) & 0o077 == 0

    def test_keeps_existing_keys_and_fixes_missing_newline(self, authorized_keys):
        authorized_keys.parent.mkdir(parents=True)
        authorized_keys.write_text("ssh-rsa AAAAB3 other@host")

        AddAuthorizedKey(authorized_keys, lambda: KEY).apply()

        assert authorized_keys.read_text().splitlines() == ["ssh-rsa AAAAB3 other@host", KEY]

    def test_key_is_stripped(self, authorized_keys):
        AddAuthorizedKey(authorized_keys, lambda: f"  {KEY}\n").apply()
        assert authorized_keys.read_text().splitlines() == [KEY]

    def test_existing_line_with_trailing_space_matches(self, authorized_keys):
        authorized_keys.parent.mkdir(parents=True)
        authorized_keys.write_text(KEY + "  \n")
        assert AddAuthorizedKey(authorized_keys, lambda: KEY).check() is True

    def test_partial_match_is_not_membership(self, authorized_keys):
        authorized_keys.parent.mkdir(parents=True)
        authorized_keys.write_text(KEY + " extra\n")
        assert AddAuthorizedKey(authorized_keys, lambda: KEY).check() is False

    def test_any_non_empty_string_accepted(self, authorized_keys):
        AddAuthorizedKey(authorized_keys, lambda: "not really a key").apply()
        assert authorized_keys.read_text() == "not really a key\n"

    def test_empty_key_fails(self, authorized_keys):
        step = AddAuthorizedKey(authorized_keys, lambda: "   ")
        assert step.check() is False
        with pytest.raises(EmptyKeyError):
            step.apply()
        assert not authorized_keys.exists()

    def test_provider_asked_once(self, authorized_keys):
        provider = CountingProvider(KEY)
        step = AddAuthorizedKey(authorized_keys, provider)
        step.check()
        step.apply()
        step.check()
        assert provider.calls == 1
