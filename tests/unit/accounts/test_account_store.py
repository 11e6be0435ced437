"""Tests for the Account Status Store."""

import threading

import pytest

from riskgate.accounts.schemas import Account, AccountStatus
from riskgate.accounts.store import InMemoryAccountStore, load_accounts_file
from riskgate.common.exceptions import ConfigurationError


class TestInMemoryAccountStore:
    """get/set semantics and credential checks."""

    def test_get_unknown_user(self, account_store):
        assert account_store.get("ghost") is None
        assert not account_store.exists("ghost")

    def test_set_overwrites_status(self, account_store):
        assert account_store.set("user_01", AccountStatus.MEDIUM)
        assert account_store.get("user_01") == AccountStatus.MEDIUM

    def test_set_unknown_user_is_noop(self, account_store):
        assert account_store.set("ghost", AccountStatus.BLOCKED) is False
        assert account_store.get("ghost") is None
        assert len(account_store) == 4

    def test_set_keeps_credential(self, account_store):
        account_store.set("user_01", AccountStatus.BLOCKED)
        assert account_store.verify_credential("user_01", "12345678")

    def test_verify_credential(self, account_store):
        assert account_store.verify_credential("user_02", "12341234")
        assert not account_store.verify_credential("user_02", "12345678")
        assert not account_store.verify_credential("user_02", None)
        assert not account_store.verify_credential("ghost", "12341234")

    def test_credential_not_in_repr(self):
        account = Account(user_id="u1", credential_secret="s3cret")
        assert "s3cret" not in repr(account)

    def test_concurrent_writes_last_writer_wins(self, account_store):
        statuses = [AccountStatus.NORMAL, AccountStatus.MEDIUM, AccountStatus.BLOCKED] * 20
        threads = [
            threading.Thread(target=account_store.set, args=("user_01", s)) for s in statuses
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert account_store.get("user_01") in set(AccountStatus)


class TestLoadAccountsFile:
    """YAML seed loading."""

    def test_loads_seed(self, tmp_path):
        path = tmp_path / "accounts.yaml"
        path.write_text(
            "accounts:\n"
            "  - id: user_01\n"
            "    credential: \"12345678\"\n"
            "  - id: user_09\n"
            "    credential: pw\n"
            "    status: MEDIUM\n"
        )

        store = load_accounts_file(path)

        assert len(store) == 2
        assert store.get("user_01") == AccountStatus.NORMAL
        assert store.get("user_09") == AccountStatus.MEDIUM

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_accounts_file(tmp_path / "nope.yaml")

    def test_invalid_status(self, tmp_path):
        path = tmp_path / "accounts.yaml"
        path.write_text("accounts:\n  - id: u\n    credential: c\n    status: SUSPENDED\n")
        with pytest.raises(ConfigurationError):
            load_accounts_file(path)

    def test_empty_file_gives_empty_store(self, tmp_path):
        path = tmp_path / "accounts.yaml"
        path.write_text("")
        assert len(load_accounts_file(path)) == 0
