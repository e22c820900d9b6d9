"""Membership upgrades, stored beside the user profile under ``USER#<enc(id)>``."""

from typing import Any, Dict

from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification
from solchap.handlers.utils.observability import tracer
from solchap.logic.keys import prefixed
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.record import Record
from solchap.models.users import UpgradeMembershipRequest

MEMBERSHIP = 'MEMBERSHIP'


class MembershipService:
    def __init__(self, writer: RecordWriter):
        self.writer = writer

    @tracer.capture_method
    def upgrade_membership(self, request: UpgradeMembershipRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            user_key = prefixed('USER', sealed['userId'])
            return Record(
                partition_key=user_key,
                sort_key=sealed['sk'],
                attributes={
                    'membershipTier': sealed['membershipTier'],
                    'email': sealed['email'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('EMAIL', sealed['email']), user_key)},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='UPGRADE_MEMBERSHIP',
                detail_type=DetailType.MEMBERSHIP_UPGRADED,
                source=EventSource.MEMBERSHIP,
                payload={
                    'userId': sealed['userId'],
                    'membershipTier': sealed['membershipTier'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'userId': request.user_id,
                'sk': MEMBERSHIP,
                'membershipTier': request.membership_level,
                'email': request.email,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Membership already exists for this user',
        )
