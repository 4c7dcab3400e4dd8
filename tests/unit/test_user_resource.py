"""
Unit tests for tenablevm/core/user_resource.py

Covers the create/read/update/delete workflow, the post-create enabled
correction, update diffing and the state-level helpers.
"""
from unittest.mock import MagicMock

import pytest

from tenablevm.core.tenable import (
    InvalidIdentifierError,
    PartialCreateError,
    TenableAPIError,
    TenableDecodeError,
    User,
    UserNotFoundError,
)
from tenablevm.core.user_resource import (
    UserChanges,
    UserReconciler,
    UserSpec,
    UserState,
    diff_user,
)
from tests.fakes import body_of


ALICE = {
    "id": 1,
    "uuid": "uuid-1",
    "username": "alice",
    "name": "Alice",
    "email": "a@x.com",
    "permissions": 16,
    "enabled": True,
}


@pytest.fixture
def reconciler(client):
    return UserReconciler(client)


# ============================================================================
# create
# ============================================================================

class TestCreate:
    def test_post_payload(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 7, "username": "bob", "permissions": 16, "enabled": True})
        reconciler.create("bob", "S3cret!pass", 16, name="Bob", email="bob@x.com")

        (post,) = session.calls("POST", "/users")
        assert body_of(post) == {
            "username": "bob",
            "password": "S3cret!pass",
            "permissions": 16,
            "type": "local",
            "name": "Bob",
            "email": "bob@x.com",
        }

    def test_empty_name_and_email_are_omitted(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 7, "username": "bob", "permissions": 16})
        reconciler.create("bob", "pw", 16, name="", email=None, account_type="saml")

        payload = body_of(session.calls("POST", "/users")[0])
        assert "name" not in payload
        assert "email" not in payload
        assert payload["type"] == "saml"

    def test_disabled_request_triggers_enable_call(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 7, "username": "bob", "permissions": 16, "enabled": True})
        session.add("PUT", "/users/7/enabled", status_code=200, text="")

        user = reconciler.create("bob", "pw", 16, enabled=False)

        assert user.enabled is False
        assert user.id == 7
        (put,) = session.calls("PUT", "/users/7/enabled")
        assert body_of(put) == {"enabled": False}

    def test_missing_enabled_defaults_to_true_and_needs_no_correction(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 8, "username": "carol", "permissions": 32})

        user = reconciler.create("carol", "pw", 32, enabled=True)

        assert user.enabled is True
        assert session.calls("PUT") == []

    def test_server_disabled_but_enabled_requested(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 9, "username": "dan", "permissions": 16, "enabled": False})
        session.add("PUT", "/users/9/enabled", text="")

        user = reconciler.create("dan", "pw", 16, enabled=True)

        assert user.enabled is True
        assert body_of(session.calls("PUT", "/users/9/enabled")[0]) == {"enabled": True}

    def test_failed_correction_reports_half_applied_create(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 7, "username": "bob", "permissions": 16, "enabled": True})
        session.add("PUT", "/users/7/enabled", status_code=500, text="internal error")

        with pytest.raises(PartialCreateError) as excinfo:
            reconciler.create("bob", "pw", 16, enabled=False)

        err = excinfo.value
        assert err.user.id == 7
        assert err.user.enabled is True
        assert err.requested_enabled is False
        assert isinstance(err.cause, TenableAPIError)
        assert "id=7" in str(err)
        assert session.calls("DELETE") == []

    def test_create_error_propagates(self, reconciler, session):
        session.add("POST", "/users", status_code=400, text='{"error":"Username already exists"}')
        with pytest.raises(TenableAPIError, match="already exists"):
            reconciler.create("bob", "pw", 16)

    def test_response_without_id_fails_before_enable_correction(self, reconciler, session):
        session.add("POST", "/users", payload={"username": "bob", "permissions": 16, "enabled": True})

        with pytest.raises(TenableDecodeError, match="did not include a user id"):
            reconciler.create("bob", "pw", 16, enabled=False)

        assert session.calls("PUT") == []

    def test_account_type_taken_from_request_when_not_echoed(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 7, "username": "bob", "permissions": 16})

        user = reconciler.create("bob", "pw", 16, account_type="saml")

        assert user.account_type == "saml"
        assert body_of(session.calls("POST", "/users")[0])["type"] == "saml"

    def test_password_is_not_kept_on_the_record(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 7, "username": "bob", "permissions": 16})
        user = reconciler.create("bob", "S3cret!pass", 16)
        assert "S3cret!pass" not in repr(user)
        assert "password" not in user.to_dict()

    def test_two_steps_are_separate_calls(self, client):
        reconciler = UserReconciler(client)
        reconciler.users = MagicMock()
        reconciler.users.create_user.return_value = User(id=3, username="eve", permissions=16, enabled=True)

        user = reconciler.create("eve", "pw", 16, enabled=True)

        assert user.id == 3
        reconciler.users.create_user.assert_called_once_with(
            "eve", "pw", 16, name="", email="", account_type="local"
        )
        reconciler.users.set_user_enabled.assert_not_called()


# ============================================================================
# read / update / delete / set_enabled
# ============================================================================

class TestRead:
    def test_returns_user(self, reconciler, session):
        session.add("GET", "/users/1", payload=ALICE)
        assert reconciler.read(1).username == "alice"

    def test_404_means_absent(self, reconciler, session):
        session.add("GET", "/users/1", status_code=404, text="")
        assert reconciler.read("1") is None

    def test_other_errors_propagate(self, reconciler, session):
        session.add("GET", "/users/1", status_code=503, text="maintenance")
        with pytest.raises(TenableAPIError):
            reconciler.read(1)


class TestUpdate:
    def test_full_payload_is_sent_with_unchanged_fields(self, reconciler, session):
        session.add("GET", "/users/1", payload=ALICE)
        session.add("GET", "/users/1", payload=dict(ALICE, permissions=32))
        session.add("PUT", "/users/1", payload={})

        updated = reconciler.update(1, permissions=32)

        (put,) = session.calls("PUT", "/users/1")
        assert body_of(put) == {"permissions": 32, "enabled": True, "email": "a@x.com", "name": "Alice"}
        assert updated.permissions == 32

    def test_result_comes_from_re_read_not_put_response(self, reconciler, session):
        session.add("GET", "/users/1", payload=ALICE)
        session.add("GET", "/users/1", payload=dict(ALICE, name="Alice Liddell", enabled=False))
        session.add("PUT", "/users/1", payload={"name": "ignored"})

        updated = reconciler.update(1, name="Alice Liddell", enabled=False)

        assert updated.name == "Alice Liddell"
        assert updated.enabled is False
        assert len(session.calls("GET", "/users/1")) == 2

    def test_empty_string_clears_field(self, reconciler, session):
        session.add("GET", "/users/1", payload=ALICE)
        session.add("PUT", "/users/1", text="")

        reconciler.update(1, email="")

        assert body_of(session.calls("PUT", "/users/1")[0])["email"] == ""

    def test_missing_user(self, reconciler, session):
        session.add("GET", "/users/4", status_code=404, text="")
        with pytest.raises(UserNotFoundError):
            reconciler.update(4, permissions=64)
        assert session.calls("PUT") == []


class TestDeleteAndEnable:
    def test_delete(self, reconciler, session):
        session.add("DELETE", "/users/1", text="")
        reconciler.delete(1)
        assert len(session.calls("DELETE", "/users/1")) == 1

    def test_second_delete_surfaces_server_error(self, reconciler, session):
        session.add("DELETE", "/users/1", text="")
        session.add("DELETE", "/users/1", status_code=404, text='{"error":"not found"}', reason="Not Found")

        reconciler.delete(1)
        with pytest.raises(TenableAPIError) as excinfo:
            reconciler.delete(1)
        assert excinfo.value.status_code == 404
        assert excinfo.value.body == '{"error":"not found"}'

    def test_set_enabled(self, reconciler, session):
        session.add("PUT", "/users/5/enabled", text="")
        reconciler.set_enabled("5", False)
        assert body_of(session.calls("PUT", "/users/5/enabled")[0]) == {"enabled": False}

    def test_invalid_id_never_reaches_server(self, reconciler, session):
        with pytest.raises(InvalidIdentifierError):
            reconciler.delete("not-a-number")
        assert session.sent == []


# ============================================================================
# diffing and state helpers
# ============================================================================

def _state(**overrides):
    base = dict(id="1", username="alice", permissions=16, name="Alice", email="a@x.com",
                account_type="local", enabled=True)
    base.update(overrides)
    return UserState(**base)


def _spec(**overrides):
    base = dict(username="alice", permissions=16, name="Alice", email="a@x.com",
                account_type="local", enabled=True)
    base.update(overrides)
    return UserSpec(**base)


class TestDiffUser:
    def test_no_changes(self):
        changes = diff_user(_spec(), _state())
        assert changes == UserChanges()
        assert not changes.has_updates

    def test_none_and_empty_are_equivalent(self):
        changes = diff_user(_spec(name=None, email=""), _state(name="", email=None))
        assert not changes.has_updates

    def test_only_changed_fields_are_marked(self):
        changes = diff_user(_spec(permissions=32, email=None), _state())
        assert changes.permissions == 32
        assert changes.email == ""
        assert changes.name is None
        assert changes.enabled is None
        assert changes.changed_fields() == ["permissions", "email"]

    def test_enabled_false_is_a_change(self):
        assert diff_user(_spec(enabled=False), _state()).enabled is False

    def test_write_once_fields_require_replace(self):
        changes = diff_user(_spec(username="alice2", account_type="saml"), _state())
        assert changes.requires_replace == ["username", "account_type"]


class TestApply:
    def test_creates_when_untracked(self, reconciler, session):
        session.add("POST", "/users", payload={"id": 5, "username": "alice", "permissions": 16, "enabled": True})
        state = reconciler.apply(_spec(password="pw"))
        assert state == UserState(id="5", username="alice", permissions=16, name=None, email=None,
                                  account_type="local", enabled=True)

    def test_noop_when_nothing_changed(self, reconciler, session):
        state = _state()
        assert reconciler.apply(_spec(), state) is state
        assert session.sent == []

    def test_updates_mutable_fields(self, reconciler, session):
        session.add("GET", "/users/1", payload=ALICE)
        session.add("GET", "/users/1", payload=dict(ALICE, permissions=64))
        session.add("PUT", "/users/1", text="")

        state = reconciler.apply(_spec(permissions=64, account_type="ldap"), _state(account_type="ldap"))

        assert state.permissions == 64
        assert state.account_type == "ldap"
        assert body_of(session.calls("PUT", "/users/1")[0])["permissions"] == 64

    def test_replaces_on_username_change(self, reconciler, session):
        session.add("DELETE", "/users/1", text="")
        session.add("POST", "/users", payload={"id": 2, "username": "alice2", "permissions": 16, "enabled": True})

        state = reconciler.apply(_spec(username="alice2", password="pw"), _state())

        assert state.id == "2"
        assert [r.method for r in session.sent] == ["DELETE", "POST"]


class TestStateHelpers:
    def test_from_user_maps_empty_strings_to_none(self):
        state = UserState.from_user(User(id=3, username="x", permissions=16, enabled=False))
        assert state.id == "3"
        assert state.name is None
        assert state.email is None
        assert state.enabled is False

    def test_refresh_keeps_tracked_account_type(self, reconciler, session):
        session.add("GET", "/users/1", payload=dict(ALICE, name=""))
        refreshed = reconciler.refresh(_state(account_type="saml"))
        assert refreshed.account_type == "saml"
        assert refreshed.name is None

    def test_refresh_returns_none_when_deleted_out_of_band(self, reconciler, session):
        session.add("GET", "/users/1", status_code=404, text="")
        assert reconciler.refresh(_state()) is None

    def test_import_state(self, reconciler, session):
        session.add("GET", "/users/12", payload=dict(ALICE, id=12))
        state = reconciler.import_state("12")
        assert state.id == "12"
        assert state.username == "alice"

    def test_import_state_rejects_non_numeric(self, reconciler):
        with pytest.raises(InvalidIdentifierError, match="expected numeric ID"):
            reconciler.import_state("alice")

    def test_import_state_missing_user(self, reconciler, session):
        session.add("GET", "/users/12", status_code=404, text="")
        with pytest.raises(UserNotFoundError):
            reconciler.import_state("12")

    def test_destroy_deletes_tracked_id(self, reconciler, session):
        session.add("DELETE", "/users/1", text="")
        reconciler.destroy(_state())
        assert [r.method for r in session.sent] == ["DELETE"]
