"""Tests for identity resolution and just-in-time provisioning."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
import threading
from unittest.mock import MagicMock

import pytest

from helpdesk.core.database import SessionLocal
from helpdesk.core.directory import DirectoryClient, UserInfo
from helpdesk.core.identity import (
    Credentials,
    IdentityResolver,
    bearer_token,
    normalize_account_name,
    sso_account_name,
)
from helpdesk.core.security import create_access_token
from helpdesk.models.user import User


@pytest.fixture
def directory():
    fake = MagicMock(spec=DirectoryClient)
    fake.configured.return_value = True
    fake.lookup_by_account_name.return_value = UserInfo("jdoe", "John Doe", "jdoe@corp.example")
    return fake


@pytest.fixture
def offline_directory():
    fake = MagicMock(spec=DirectoryClient)
    fake.configured.return_value = False
    return fake


class TestNormalizeAccountName:
    @pytest.mark.parametrize(
        "raw",
        ["CORP\\jdoe", "jdoe@corp.example", "jdoe", " CORP\\jdoe@corp.example "],
    )
    def test_domain_parts_are_stripped(self, raw):
        assert normalize_account_name(raw) == "jdoe"

    def test_case_is_preserved(self):
        assert normalize_account_name("CORP\\JDoe") == "JDoe"

    def test_first_present_header_wins(self):
        headers = {"remote-user": "CORP\\second", "x-remote-user": "first@corp.example"}
        names = ["x-remote-user", "remote-user", "x-forwarded-user", "remote_user"]
        assert sso_account_name(headers, names) == "first"

    def test_no_header_yields_nothing(self):
        assert sso_account_name({"x-other": "jdoe"}, ["x-remote-user"]) is None


class TestBearerTokenParsing:
    def test_extracts_bearer_token(self):
        assert bearer_token("Bearer abc.def") == "abc.def"
        assert bearer_token("bearer abc") == "abc"

    def test_rejects_other_schemes(self):
        assert bearer_token("Basic dXNlcjpwdw==") is None
        assert bearer_token("Bearer ") is None
        assert bearer_token(None) is None


class TestBearerStrategy:
    def test_valid_token_resolves_same_user_as_store(self, db, make_user, offline_directory):
        alice = make_user("alice", password="pw")
        resolver = IdentityResolver(offline_directory)

        user = resolver.resolve(Credentials(token=create_access_token(alice.id, "alice")), db)

        assert user.id == db.get(User, alice.id).id
        assert user.username == "alice"

    def test_expired_token_falls_through_to_headers(self, db, make_user, offline_directory):
        alice = make_user("alice", password="pw")
        make_user("bob")
        expired = create_access_token(alice.id, "alice", expires_delta=timedelta(seconds=-5))

        user = IdentityResolver(offline_directory).resolve(
            Credentials(token=expired, headers={"x-remote-user": "bob"}), db
        )

        assert user.username == "bob"

    def test_malformed_token_without_headers_is_anonymous(self, db, offline_directory):
        assert IdentityResolver(offline_directory).resolve(Credentials(token="garbage"), db) is None

    def test_token_for_unknown_user_falls_through(self, db, offline_directory):
        token = create_access_token(999, "ghost")
        assert IdentityResolver(offline_directory).resolve(Credentials(token=token), db) is None

    def test_token_takes_priority_over_headers(self, db, make_user, offline_directory):
        alice = make_user("alice", password="pw")
        make_user("bob")
        user = IdentityResolver(offline_directory).resolve(
            Credentials(token=create_access_token(alice.id, "alice"), headers={"x-remote-user": "bob"}),
            db,
        )
        assert user.username == "alice"


class TestSSOHeaderStrategy:
    def test_existing_user_is_returned_without_directory_lookup(self, db, make_user, directory):
        existing = make_user("jdoe", display_name="Existing")

        user = IdentityResolver(directory).resolve(Credentials(headers={"x-remote-user": "CORP\\jdoe"}), db)

        assert user.id == existing.id
        directory.lookup_by_account_name.assert_not_called()

    def test_new_user_is_provisioned_with_directory_display_name(self, db, directory):
        user = IdentityResolver(directory).resolve(
            Credentials(headers={"x-forwarded-user": "jdoe@corp.example"}), db
        )

        assert user.username == "jdoe"
        assert user.display_name == "John Doe"
        assert user.external is True
        assert user.password_hash is None
        directory.lookup_by_account_name.assert_called_once_with("jdoe")

    def test_directory_miss_still_provisions(self, db, directory):
        directory.lookup_by_account_name.return_value = None

        user = IdentityResolver(directory).resolve(Credentials(headers={"remote-user": "newbie"}), db)

        assert user.username == "newbie"
        assert user.display_name == "newbie"
        assert user.external is True

    def test_unconfigured_directory_still_provisions(self, db, offline_directory):
        user = IdentityResolver(offline_directory).resolve(Credentials(headers={"remote_user": "kiosk"}), db)

        assert user.username == "kiosk"
        offline_directory.lookup_by_account_name.assert_not_called()

    def test_header_names_are_case_insensitive(self, db, offline_directory):
        user = IdentityResolver(offline_directory).resolve(Credentials(headers={"X-Remote-User": "jdoe"}), db)
        assert user.username == "jdoe"

    def test_header_that_normalizes_to_nothing_is_anonymous(self, db, offline_directory):
        assert IdentityResolver(offline_directory).resolve(Credentials(headers={"x-remote-user": "CORP\\"}), db) is None
        assert db.query(User).count() == 0

    def test_repeat_resolution_does_not_duplicate(self, db, offline_directory):
        resolver = IdentityResolver(offline_directory)
        first = resolver.resolve(Credentials(headers={"x-remote-user": "jdoe"}), db)
        second = resolver.resolve(Credentials(headers={"x-remote-user": "CORP\\jdoe"}), db)

        assert first.id == second.id
        assert db.query(User).filter(User.username == "jdoe").count() == 1

    def test_concurrent_first_requests_create_exactly_one_user(self, offline_directory):
        resolver = IdentityResolver(offline_directory)
        barrier = threading.Barrier(5)

        def resolve_once():
            session = SessionLocal()
            try:
                barrier.wait()
                user = resolver.resolve(Credentials(headers={"x-remote-user": "CORP\\racer"}), session)
                return user.id
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=5) as pool:
            ids = list(pool.map(lambda _: resolve_once(), range(5)))

        session = SessionLocal()
        try:
            assert session.query(User).filter(User.username == "racer").count() == 1
        finally:
            session.close()
        assert len(set(ids)) == 1


class TestStrategyList:
    def test_strategies_run_in_order_until_one_succeeds(self, db, make_user, offline_directory):
        carol = make_user("carol")
        calls = []

        def never(credentials, session):
            calls.append("never")
            return None

        def always(credentials, session):
            calls.append("always")
            return carol

        def unreachable(credentials, session):
            calls.append("unreachable")
            return None

        resolver = IdentityResolver(offline_directory, strategies=[never, always, unreachable])

        assert resolver.resolve(Credentials(), db).id == carol.id
        assert calls == ["never", "always"]
