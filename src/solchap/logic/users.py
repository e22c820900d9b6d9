"""
User accounts.

A user's rows share ``USER#<enc(id)>``: the profile under ``enc(METADATA)`` and
the membership under ``enc(MEMBERSHIP)``. Both carry ``EMAIL#<enc(email)>`` as
GSI1PK, so the email index resolves either; only the profile holds a password.
"""

import uuid
from typing import Any, Dict, Optional

import bcrypt

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification, Notifier
from solchap.handlers.utils.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidCredentialsError,
    ResourceNotFoundError,
)
from solchap.handlers.utils.observability import logger, tracer
from solchap.logic.keys import METADATA, prefixed
from solchap.logic.read_path import RecordReader
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.record import Record, utc_now_iso
from solchap.models.users import LoginRequest, LogoutRequest, RegisterUserRequest, UserIdRequest

PROFILE_FIELDS = ('id', 'email', 'username', 'membershipTier')
SESSION_FIELDS = ['sessionId', 'sessionCreatedAt']


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')


def password_matches(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


class UserService:
    def __init__(self, store: RecordStore, gateway: CryptoGateway, notifier: Notifier, email_index: str,
                 hash_rounds: int = 10):
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self.email_index = email_index
        self.hash_rounds = hash_rounds
        self.writer = RecordWriter(store, gateway, notifier)
        self.reader = RecordReader(gateway)

    def profile_key(self, user_id: str) -> Dict[str, str]:
        sealed = self.gateway.encrypt_fields({'id': user_id, 'sk': METADATA})
        return {'PK': prefixed('USER', sealed['id']), 'SK': sealed['sk']}

    def _profile(self, user_id: str) -> Dict[str, Any]:
        item = self.store.get(self.profile_key(user_id))
        if item is None:
            raise ResourceNotFoundError('User', 'User not found')
        return item

    def _profile_by_email(self, email_key: str) -> Optional[Dict[str, Any]]:
        for item in self.store.query('GSI1PK', email_key, index_name=self.email_index):
            if 'password' in item:
                return item
        return None

    @tracer.capture_method
    def register_user(self, request: RegisterUserRequest) -> WriteResult:
        email_key = prefixed('EMAIL', self.gateway.encrypt_text(request.email))
        if self._profile_by_email(email_key) is not None:
            raise AlreadyExistsError('Email already exists', resource_type='User')

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            user_key = prefixed('USER', sealed['id'])
            return Record(
                partition_key=user_key,
                sort_key=sealed['sk'],
                attributes={
                    'id': sealed['id'],
                    'email': sealed['email'],
                    'password': sealed['password'],
                    'username': sealed['username'],
                    'membershipTier': sealed['membershipTier'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('EMAIL', sealed['email']), user_key)},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='REGISTER',
                detail_type=DetailType.USER_CREATED,
                source=EventSource.AUTH,
                payload={
                    'userId': sealed['id'],
                    'email': sealed['email'],
                    'membershipTier': sealed['membershipTier'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.id,
                'sk': METADATA,
                'email': request.email,
                'password': hash_password(request.password, self.hash_rounds),
                'username': request.username,
                'membershipTier': request.membership_tier,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='User already exists',
        )

    @tracer.capture_method
    def login_user(self, request: LoginRequest) -> Dict[str, Any]:
        email_key = prefixed('EMAIL', self.gateway.encrypt_text(request.email))
        profile = self._profile_by_email(email_key)
        if profile is None:
            raise ResourceNotFoundError('User', 'User not found')

        opened = self.reader.open(profile, ('id', 'password'))
        if not password_matches(request.password, opened['password']):
            logger.warning('Login rejected')
            raise InvalidCredentialsError('Invalid email or password')

        session_id = str(uuid.uuid4())
        session_created_at = utc_now_iso()

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='LOGIN',
                detail_type=DetailType.USER_LOGIN,
                source=EventSource.AUTH,
                payload={'userId': profile['id'], 'sessionCreatedAt': session_created_at},
            )

        self.writer.update(
            key={'PK': profile['PK'], 'SK': profile['SK']},
            sensitive={'sessionId': session_id},
            plain={'sessionCreatedAt': session_created_at, 'lastEvent': 'LOGIN'},
            announce=announce,
            resource_type='User',
        )
        return {'userId': opened['id'], 'session': {'sessionId': session_id, 'createdAt': session_created_at}}

    @tracer.capture_method
    def logout_user(self, request: LogoutRequest) -> WriteResult:
        profile = self._profile(request.user_id)
        email_key = prefixed('EMAIL', self.gateway.encrypt_text(request.email))
        if profile.get('GSI1PK') != email_key:
            raise ForbiddenError('Unauthorized: email does not match user')

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='LOGOUT',
                detail_type=DetailType.USER_LOGOUT,
                source=EventSource.AUTH,
                payload={'userId': profile['id'], 'updatedAt': item['updatedAt']},
            )

        return self.writer.update(
            key={'PK': profile['PK'], 'SK': profile['SK']},
            sensitive={},
            plain={'lastEvent': 'LOGOUT'},
            announce=announce,
            resource_type='User',
            remove=SESSION_FIELDS,
        )

    @tracer.capture_method
    def get_user_profile(self, request: UserIdRequest) -> Dict[str, Any]:
        profile = self._profile(request.id)
        opened = self.reader.open(profile, PROFILE_FIELDS)

        self.notifier.notify(Notification(
            action='profileRead',
            detail_type=DetailType.PROFILE_READ,
            source=EventSource.USER_PROFILE,
            payload={'userId': profile['id'], 'readAt': utc_now_iso()},
        ))
        return {
            'id': opened['id'],
            'email': opened['email'],
            'username': opened['username'],
            'membershipTier': opened['membershipTier'],
            'createdAt': opened.get('createdAt'),
            'updatedAt': opened.get('updatedAt'),
        }

    @tracer.capture_method
    def delete_user(self, request: UserIdRequest) -> int:
        """Delete the profile and every other row of the user; returns how many were removed."""
        sealed_id = self.gateway.encrypt_text(request.id)
        items = self.store.query('PK', prefixed('USER', sealed_id))
        if not items:
            raise ResourceNotFoundError('User', 'User not found')

        for item in items:
            self.writer.delete(item)
        self.notifier.notify(Notification(
            action='DELETE_USER',
            detail_type=DetailType.USER_DELETED,
            source=EventSource.AUTH,
            payload={'userId': sealed_id, 'deletedAt': utc_now_iso()},
        ))
        logger.info('User deleted', extra={'rows': len(items)})
        return len(items)
