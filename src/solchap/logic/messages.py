"""
Messaging and moderation operations.

Direct messages live under ``MESSAGE#<enc(id)>`` with one row per concern
(status, details, subject, circumvention check, replies, contact-info flags).
Outbox messages and message filters encrypt their whole key strings.
"""

import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import DeliveryOutcome, Notification, Notifier
from solchap.handlers.utils.errors import ResourceNotFoundError
from solchap.handlers.utils.observability import logger, tracer
from solchap.logic.keys import METADATA, prefixed, strip_prefix
from solchap.logic.read_path import RecordReader
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.messages import (
    CheckCircumventionRequest,
    CreateMessageRequest,
    FilterContactInfoRequest,
    PostMessageRequest,
    ReplyToMessageRequest,
    ReviewMessageDetailsRequest,
    ReviewMessageRequest,
    ReviewSubjectRequest,
    UpdateMessageFilterRequest,
)
from solchap.models.record import Record

PENDING = 'PENDING'
FLAGGED = 'FLAGGED'

CONTACT_INFO_PATTERN = re.compile(r'(email|phone|contact|@|\d{10,})', re.IGNORECASE)

PENDING_FIELDS = ('PK', 'senderId', 'receiverId', 'message', 'subject', 'policy')


def contains_contact_info(text: str) -> bool:
    return CONTACT_INFO_PATTERN.search(text) is not None


def _pending_view(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'messageId': strip_prefix(item['PK'], 'MESSAGE'),
        'senderId': item.get('senderId'),
        'receiverId': item.get('receiverId'),
        'message': item.get('message'),
        'subject': item.get('subject'),
        'policy': item.get('policy'),
        'status': item.get('status'),
        'createdAt': item.get('createdAt'),
    }


@dataclass
class PendingMessages:
    messages: List[Dict[str, Any]] = field(default_factory=list)
    forwarded: List[DeliveryOutcome] = field(default_factory=list)


class MessageService:
    def __init__(self, store: RecordStore, filter_store: RecordStore, gateway: CryptoGateway, notifier: Notifier,
                 review_queue_url: Optional[str] = None):
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self.review_queue_url = review_queue_url
        self.writer = RecordWriter(store, gateway, notifier)
        self.filter_writer = RecordWriter(filter_store, gateway, notifier)
        self.reader = RecordReader(gateway)

    def _message_key(self, message_id: str, marker: str) -> Dict[str, str]:
        sealed = self.gateway.encrypt_fields({'id': message_id, 'sk': marker})
        return {'PK': prefixed('MESSAGE', sealed['id']), 'SK': sealed['sk']}

    @tracer.capture_method
    def create_message(self, request: CreateMessageRequest) -> WriteResult:
        status = request.status

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            user_key = prefixed('USER', sealed['userId'])
            return Record(
                partition_key=prefixed('MESSAGE', sealed['id']),
                sort_key=user_key,
                attributes={
                    'content': sealed['content'],
                    'status': status,
                    'timestamp': request.timestamp or ts,
                    'createdAt': ts,
                },
                secondary_keys={
                    'GSI1': (prefixed('STATUS', status), prefixed('CREATED_AT', ts)),
                    'GSI2': (user_key, prefixed('CREATED_AT', ts)),
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CREATE_MESSAGE',
                detail_type=DetailType.MESSAGE_CREATED,
                source=EventSource.MESSAGES,
                payload={
                    'messageId': sealed['id'],
                    'userId': sealed['userId'],
                    'status': status,
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={'id': request.id, 'userId': request.user_id, 'content': request.content},
            build=build,
            announce=announce,
        )

    @tracer.capture_method
    def post_message(self, request: PostMessageRequest) -> WriteResult:
        message_id = str(uuid.uuid4())

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=sealed['pk'],
                sort_key=sealed['sk'],
                attributes={
                    'senderId': sealed['senderId'],
                    'receiverId': sealed['receiverId'],
                    'message': sealed['message'],
                    'subject': sealed['subject'],
                    'policy': sealed['policy'],
                    'status': PENDING,
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={
                    'GSI1': (sealed['sk'], prefixed('CREATED_AT', ts)),
                    'GSI2': (sealed['receiverId'], prefixed('CREATED_AT', ts)),
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='POST_MESSAGE',
                detail_type=DetailType.MESSAGE_POSTED,
                source=EventSource.MESSAGES,
                payload={
                    'messageKey': sealed['pk'],
                    'senderId': sealed['senderId'],
                    'receiverId': sealed['receiverId'],
                    'status': PENDING,
                    'createdAt': item['createdAt'],
                },
            )

        result = self.writer.create(
            sensitive={
                'pk': prefixed('MESSAGE', message_id),
                'sk': prefixed('STATUS', PENDING),
                'senderId': request.sender_id,
                'receiverId': request.receiver_id,
                'message': request.message,
                'subject': request.subject,
                'policy': request.policy,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Message already exists',
        )
        result.item['messageId'] = message_id
        return result

    @tracer.capture_method
    def get_pending_messages(self) -> PendingMessages:
        """
        Decrypt every pending outbox message and forward it to the review queue.

        Messages that fail decryption are left out. A failed forward is logged
        and does not drop the message from the result.
        """
        items = self.store.scan(Attr('status').eq(PENDING) & Attr('senderId').exists())
        if not items:
            return PendingMessages()

        messages = [_pending_view(item) for item in self.reader.open_all(items, PENDING_FIELDS)]
        forwarded = [
            self.notifier.send_to_queue({'action': 'REVIEW_PENDING', **message}, queue_url=self.review_queue_url)
            for message in messages
        ]
        logger.info('Pending messages forwarded for review', extra={
            'count': len(messages),
            'forwarded': sum(1 for outcome in forwarded if outcome.sent),
        })
        return PendingMessages(messages=messages, forwarded=forwarded)

    @tracer.capture_method
    def reply_to_message(self, request: ReplyToMessageRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('MESSAGE', sealed['id']),
                sort_key=prefixed('REPLIES', ts),
                attributes={
                    'senderId': sealed['senderId'],
                    'receiverId': sealed['receiverId'],
                    'messageText': sealed['messageText'],
                    'createdAt': ts,
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='REPLY',
                detail_type=DetailType.MESSAGE_REPLIED,
                source=EventSource.MESSAGE_TRAFFIC,
                payload={
                    'messageId': sealed['id'],
                    'senderId': sealed['senderId'],
                    'receiverId': sealed['receiverId'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.id,
                'senderId': request.sender_id,
                'receiverId': request.receiver_id,
                'messageText': request.text,
            },
            build=build,
            announce=announce,
        )

    @tracer.capture_method
    def review_message(self, request: ReviewMessageRequest) -> WriteResult:
        key = self._message_key(request.id, 'STATUS')
        status = request.status.value

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='REVIEW',
                detail_type=DetailType.MESSAGE_REVIEWED,
                source=EventSource.MESSAGES,
                payload={
                    'messageKey': key['PK'],
                    'status': status,
                    'reviewedBy': sealed['reviewedBy'],
                    'updatedAt': item['updatedAt'],
                },
            )

        return self.writer.update(
            key=key,
            sensitive={'reviewedBy': request.admin_id},
            plain={'status': status, 'GSI1PK': prefixed('STATUS', status), 'GSI1SK': key['PK']},
            announce=announce,
            must_exist=False,
        )

    @tracer.capture_method
    def review_message_details(self, request: ReviewMessageDetailsRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('MESSAGE', sealed['id']),
                sort_key=sealed['sk'],
                attributes={
                    'fromUserId': sealed['fromUserId'],
                    'toUserId': sealed['toUserId'],
                    'notes': sealed['notes'],
                    'reviewedBy': sealed['reviewedBy'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='DETAILS',
                detail_type=DetailType.MESSAGE_DETAILS,
                source=EventSource.MESSAGES,
                payload={
                    'messageId': sealed['id'],
                    'fromUserId': sealed['fromUserId'],
                    'toUserId': sealed['toUserId'],
                    'reviewedBy': sealed['reviewedBy'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.id,
                'sk': 'DETAILS',
                'fromUserId': request.from_user_id,
                'toUserId': request.to_user_id,
                'notes': request.notes,
                'reviewedBy': request.admin_id,
            },
            build=build,
            announce=announce,
        )

    @tracer.capture_method
    def review_subject(self, request: ReviewSubjectRequest) -> WriteResult:
        key = self._message_key(request.id, 'SUBJECT')
        if not self.store.query('PK', key['PK']):
            raise ResourceNotFoundError('Message', 'Message not found')

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='SUBJECT_UPDATED',
                detail_type=DetailType.MESSAGE_SUBJECT_UPDATED,
                source=EventSource.MESSAGES,
                payload={'messageKey': key['PK'], 'subject': sealed['subject'], 'updatedAt': item['updatedAt']},
            )

        return self.writer.update(
            key=key,
            sensitive={'subject': request.subject},
            announce=announce,
            must_exist=False,
        )

    @tracer.capture_method
    def check_circumvention(self, request: CheckCircumventionRequest) -> WriteResult:
        outcome = 'CIRCUMVENTED' if request.circumvent_detected else 'CLEAR'

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            message_key = prefixed('MESSAGE', sealed['id'])
            return Record(
                partition_key=message_key,
                sort_key=sealed['sk'],
                attributes={
                    'circumventDetected': request.circumvent_detected,
                    'reviewedBy': sealed['reviewedBy'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('STATUS', outcome), message_key)},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CHECK_CIRCUMVENTION',
                detail_type=DetailType.CIRCUMVENTION_CHECKED,
                source=EventSource.MESSAGES,
                payload={
                    'messageId': sealed['id'],
                    'circumventDetected': request.circumvent_detected,
                    'reviewedBy': sealed['reviewedBy'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={'id': request.id, 'sk': 'CIRCUMVENT', 'reviewedBy': request.admin_id},
            build=build,
            announce=announce,
        )

    @tracer.capture_method
    def filter_contact_info(self, request: FilterContactInfoRequest) -> Optional[WriteResult]:
        """Store and announce the message only when it carries contact details."""
        if not contains_contact_info(request.message_text):
            logger.info('Message passed contact-info filter')
            return None

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            message_key = prefixed('MESSAGE', sealed['messageId'])
            return Record(
                partition_key=message_key,
                sort_key=prefixed('FILTER', ts),
                attributes={
                    'senderId': sealed['senderId'],
                    'receiverId': sealed['receiverId'],
                    'messageText': sealed['messageText'],
                    'status': FLAGGED,
                    'createdAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('STATUS', FLAGGED), message_key)},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='FILTER_CONTACT_INFO',
                detail_type=DetailType.CONTACT_INFO_FLAGGED,
                source=EventSource.MESSAGE_TRAFFIC,
                payload={
                    'messageId': sealed['messageId'],
                    'senderId': sealed['senderId'],
                    'receiverId': sealed['receiverId'],
                    'status': FLAGGED,
                    'createdAt': item['createdAt'],
                },
            )

        result = self.writer.create(
            sensitive={
                'messageId': request.message_id,
                'senderId': request.sender_id,
                'receiverId': request.receiver_id,
                'messageText': request.message_text,
            },
            build=build,
            announce=announce,
        )
        logger.warning('Message flagged for contact information')
        return result

    @tracer.capture_method
    def update_message_filter(self, request: UpdateMessageFilterRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=sealed['pk'],
                sort_key=sealed['sk'],
                attributes={
                    'name': sealed['name'],
                    'pattern': sealed['pattern'],
                    'action': sealed['action'],
                    'enabled': sealed['enabled'],
                    'metadata': sealed['metadata'],
                    'updatedAt': ts,
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='UPDATE_FILTER',
                detail_type=DetailType.MESSAGE_FILTER_UPDATED,
                source=EventSource.MESSAGE_FILTERS,
                payload={'filterKey': sealed['pk'], 'name': sealed['name'], 'updatedAt': item['updatedAt']},
            )

        return self.filter_writer.create(
            sensitive={
                'pk': prefixed('FILTER', request.id),
                'sk': METADATA,
                'name': request.name,
                'pattern': request.pattern,
                'action': request.action,
                'enabled': request.enabled,
                'metadata': request.metadata,
            },
            build=build,
            announce=announce,
        )
