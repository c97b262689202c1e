"""Tests for AdminPolicy."""

import pytest

from bobbot.services.admin import AdminPolicy
from bobbot.storage import JsonStorage


@pytest.fixture
def storage(tmp_path):
    return JsonStorage(tmp_path)


@pytest.fixture
def policy(storage):
    return AdminPolicy(storage, superuser_id="1")


class TestAdminPolicy:
    def test_superuser_is_always_admin(self, policy):
        assert policy.is_superuser("1")
        assert policy.is_admin("1")

    def test_unknown_and_empty_ids_are_not_admin(self, policy):
        assert not policy.is_admin("2")
        assert not policy.is_admin("")
        assert not policy.is_admin(None)

    def test_add_and_remove_admin(self, policy):
        assert policy.add_admin("2") is True
        assert policy.add_admin("2") is False
        assert policy.is_admin("2")
        assert policy.remove_admin("2") is True
        assert policy.remove_admin("2") is False
        assert not policy.is_admin("2")

    def test_admin_changes_are_seen_by_new_policy(self, storage, policy):
        policy.add_admin("2")
        assert AdminPolicy(storage).is_admin("2")

    def test_no_superuser_configured(self, storage):
        policy = AdminPolicy(storage)
        assert not policy.is_superuser("")
        assert not policy.is_admin("1")
        assert policy.thought_recipients() == []


class TestThoughtRecipients:
    def test_defaults_to_superuser(self, policy):
        assert policy.thought_recipients() == ["1"]

    def test_toggle_opts_in_and_out(self, policy):
        policy.add_admin("2")
        assert policy.toggle_thoughts("2") is True
        assert policy.thought_recipients() == ["2"]
        assert policy.toggle_thoughts("2") is False
        assert policy.thought_recipients() == ["1"]

    def test_demoted_admin_stops_receiving(self, policy):
        policy.add_admin("2")
        policy.toggle_thoughts("2")
        policy.remove_admin("2")
        assert policy.thought_recipients() == []

    def test_recipients_are_sorted(self, policy):
        for uid in ("3", "2"):
            policy.add_admin(uid)
            policy.toggle_thoughts(uid)
        policy.toggle_thoughts("1")
        assert policy.thought_recipients() == ["1", "2", "3"]
