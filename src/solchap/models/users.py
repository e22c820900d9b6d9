"""Request models for user accounts and memberships."""

from typing import Annotated

from pydantic import Field, field_validator

from solchap.models.base import NonEmptyStr, RequestModel


def _normalize_email(v: str) -> str:
    if '@' not in v:
        raise ValueError('email must contain @')
    return v.lower()


class RegisterUserRequest(RequestModel):
    id: NonEmptyStr
    email: NonEmptyStr
    password: Annotated[str, Field(min_length=1, description='Plaintext password, hashed before storage')]
    username: NonEmptyStr
    membership_tier: NonEmptyStr

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(RequestModel):
    email: NonEmptyStr
    password: Annotated[str, Field(min_length=1)]

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LogoutRequest(RequestModel):
    user_id: NonEmptyStr
    email: NonEmptyStr

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserIdRequest(RequestModel):
    id: NonEmptyStr


class UpgradeMembershipRequest(RequestModel):
    user_id: NonEmptyStr
    membership_level: NonEmptyStr
    email: NonEmptyStr

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)
