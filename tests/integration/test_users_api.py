"""Integration tests for user accounts and memberships."""

import pytest

from solchap.handlers import memberships_handler, users_handler
from solchap.handlers.models.env_vars import UsersEnvVars

USER = {"id": "u1", "email": "ada@example.com", "password": "s3cret", "username": "ada", "membershipTier": "FREE"}


@pytest.fixture(autouse=True)
def service(install_service):
    install_service(memberships_handler)
    return install_service(users_handler, UsersEnvVars, PASSWORD_HASH_ROUNDS=4)


def _register(call_api, **overrides):
    status, body = call_api(users_handler, "POST", "/users", {**USER, **overrides})
    assert status == 201, body


def _profile(aws, cipher):
    return aws.table().get_item(Key={"PK": f"USER#{cipher.encrypt('u1')}", "SK": cipher.encrypt("METADATA")})["Item"]


class TestRegister:
    def test_password_is_hashed_then_encrypted(self, call_api, aws, cipher):
        _register(call_api)

        item = _profile(aws, cipher)
        stored_hash = cipher.decrypt(item["password"])
        assert stored_hash.startswith("$2")
        assert "s3cret" not in stored_hash
        assert item["GSI1PK"] == f"EMAIL#{cipher.encrypt('ada@example.com')}"
        assert aws.events.details("UserCreateEvent")[0]["_source"] == "auth.service"

    def test_email_must_be_unique(self, call_api, aws):
        _register(call_api)

        status, body = call_api(users_handler, "POST", "/users", {**USER, "id": "u2", "email": "ADA@example.com"})

        assert status == 400
        assert body["message"] == "Email already exists"
        assert len(aws.items()) == 1


class TestLoginLogout:
    def test_login_starts_a_session(self, call_api, aws, cipher):
        _register(call_api)

        status, body = call_api(users_handler, "POST", "/users/login", {"email": "ada@example.com", "password": "s3cret"})

        assert status == 200
        assert body["userId"] == "u1"
        item = _profile(aws, cipher)
        assert cipher.decrypt(item["sessionId"]) == body["session"]["sessionId"]
        assert item["lastEvent"] == "LOGIN"
        assert aws.events.details("LoginEvent")

    def test_wrong_password(self, call_api, aws, cipher):
        _register(call_api)

        status, body = call_api(users_handler, "POST", "/users/login", {"email": "ada@example.com", "password": "nope"})

        assert status == 401
        assert body["error"] == "INVALID_CREDENTIALS"
        assert "sessionId" not in _profile(aws, cipher)

    def test_unknown_email(self, call_api):
        status, _ = call_api(users_handler, "POST", "/users/login", {"email": "bob@example.com", "password": "x"})
        assert status == 404

    def test_membership_row_does_not_count_as_account(self, call_api):
        call_api(memberships_handler, "POST", "/memberships",
                 {"userId": "u9", "membershipLevel": "GOLD", "email": "bob@example.com"})

        status, _ = call_api(users_handler, "POST", "/users/login", {"email": "bob@example.com", "password": "x"})
        assert status == 404

    def test_logout_clears_session(self, call_api, aws, cipher):
        _register(call_api)
        call_api(users_handler, "POST", "/users/login", {"email": "ada@example.com", "password": "s3cret"})

        status, _ = call_api(users_handler, "POST", "/users/logout", {"userId": "u1", "email": "ada@example.com"})

        assert status == 200
        item = _profile(aws, cipher)
        assert "sessionId" not in item
        assert "sessionCreatedAt" not in item
        assert item["lastEvent"] == "LOGOUT"

    def test_logout_with_other_email_is_forbidden(self, call_api):
        _register(call_api)

        status, _ = call_api(users_handler, "POST", "/users/logout", {"userId": "u1", "email": "eve@example.com"})
        assert status == 403

    def test_logout_unknown_user(self, call_api):
        status, _ = call_api(users_handler, "POST", "/users/logout", {"userId": "u404", "email": "ada@example.com"})
        assert status == 404


class TestProfile:
    def test_profile_is_decrypted_without_password(self, call_api, aws):
        _register(call_api)

        status, body = call_api(users_handler, "GET", "/users/u1")

        assert status == 200
        assert body["data"]["email"] == "ada@example.com"
        assert body["data"]["username"] == "ada"
        assert "password" not in body["data"]
        [event] = aws.events.details("Profile Read")
        assert event["_source"] == "custom.user.profile"
        assert event["action"] == "profileRead"

    def test_unknown_profile(self, call_api):
        status, _ = call_api(users_handler, "GET", "/users/u404")
        assert status == 404


def test_delete_removes_profile_and_membership(call_api, aws):
    _register(call_api)
    call_api(memberships_handler, "POST", "/memberships",
             {"userId": "u1", "membershipLevel": "GOLD", "email": "ada@example.com"})
    assert len(aws.items()) == 2

    status, body = call_api(users_handler, "DELETE", "/users/u1")

    assert status == 200
    assert body["deletedItems"] == 2
    assert aws.items() == []
    assert aws.events.details("UserDeleted")


def test_delete_unknown_user(call_api):
    status, _ = call_api(users_handler, "DELETE", "/users/u404")
    assert status == 404


class TestMemberships:
    def test_upgrade(self, call_api, aws, cipher):
        status, _ = call_api(memberships_handler, "POST", "/memberships",
                             {"userId": "u1", "membershipLevel": "GOLD", "email": "ada@example.com"})

        assert status == 201
        [item] = aws.items()
        assert item["PK"] == f"USER#{cipher.encrypt('u1')}"
        assert item["SK"] == cipher.encrypt("MEMBERSHIP")
        assert item["membershipTier"] == cipher.encrypt("GOLD")
        assert item["GSI1SK"] == item["PK"]
        assert aws.events.details("UpgradeMembership")[0]["_source"] == "aws.membership"

    def test_second_upgrade_is_rejected(self, call_api):
        request = {"userId": "u1", "membershipLevel": "GOLD", "email": "ada@example.com"}
        call_api(memberships_handler, "POST", "/memberships", request)

        status, _ = call_api(memberships_handler, "POST", "/memberships", {**request, "membershipLevel": "PLATINUM"})
        assert status == 400

    def test_missing_email(self, call_api, aws):
        status, _ = call_api(memberships_handler, "POST", "/memberships", {"userId": "u1", "membershipLevel": "GOLD"})

        assert status == 400
        assert aws.items() == []
