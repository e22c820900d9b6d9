"""
Card operations.

Cards live under ``CARD#<enc(id)>``. The sort key tells the rows of one card
apart: ``enc(METADATA)`` for the card itself, ``enc(REVIEW)`` for its review
and ``enc(DETAILS)`` once it has been uncovered.
"""

from typing import Any, Dict

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification, Notifier
from solchap.handlers.utils.errors import ForbiddenError, ResourceNotFoundError
from solchap.handlers.utils.observability import logger, tracer
from solchap.logic.keys import METADATA, prefixed
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.cards import (
    CreateCardRequest,
    ImportCardSchemaRequest,
    ReviewCardRequest,
    UncoverCardRequest,
    UpdateCardRequest,
)
from solchap.models.record import Record

REVIEW = 'REVIEW'
DETAILS = 'DETAILS'


class CardService:
    def __init__(self, store: RecordStore, schema_store: RecordStore, gateway: CryptoGateway, notifier: Notifier):
        self.store = store
        self.gateway = gateway
        self.writer = RecordWriter(store, gateway, notifier)
        self.schema_writer = RecordWriter(schema_store, gateway, notifier)

    def card_key(self, card_id: str) -> Dict[str, str]:
        sealed = self.gateway.encrypt_fields({'id': card_id, 'sk': METADATA})
        return {'PK': prefixed('CARD', sealed['id']), 'SK': sealed['sk']}

    @tracer.capture_method
    def create_card(self, request: CreateCardRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('CARD', sealed['id']),
                sort_key=sealed['sk'],
                attributes={
                    'id': sealed['id'],
                    'title': sealed['title'],
                    'description': sealed['description'],
                    'userId': sealed['userId'],
                    'status': request.status.value,
                    'paymentType': request.payment_type,
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={
                    'GSI1': (prefixed('STATUS', request.status.value), prefixed('CARD', sealed['id'])),
                    'GSI2': (prefixed('USER', sealed['userId']), prefixed('CREATED_AT', ts)),
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CREATE',
                detail_type=DetailType.CARD_CREATED,
                source=EventSource.CARDS,
                payload={
                    'id': sealed['id'],
                    'title': sealed['title'],
                    'userId': sealed['userId'],
                    'status': request.status.value,
                    'createdAt': item['createdAt'],
                },
            )

        result = self.writer.create(
            sensitive={
                'id': request.id,
                'title': request.title,
                'description': request.description,
                'userId': request.user_id,
                'sk': METADATA,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Card already exists',
        )
        logger.info('Card created', extra={'status': request.status.value})
        return result

    @tracer.capture_method
    def update_card(self, request: UpdateCardRequest) -> WriteResult:
        key = self.card_key(request.id)
        existing = self.store.get(key)
        if existing is None:
            raise ResourceNotFoundError('Card', 'Card not found')
        if existing.get('userId') != self.gateway.encrypt_text(request.user_id):
            raise ForbiddenError('Unauthorized: card belongs to another user')

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='UPDATE',
                detail_type=DetailType.CARD_UPDATED,
                source=EventSource.CARDS,
                payload={'id': item['id'], **sealed, 'updatedAt': item['updatedAt']},
            )

        return self.writer.update(
            key=key,
            sensitive={'title': request.title, 'description': request.description},
            announce=announce,
            resource_type='Card',
        )

    @tracer.capture_method
    def review_card(self, request: ReviewCardRequest) -> WriteResult:
        status = request.status.value

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('CARD', sealed['id']),
                sort_key=sealed['sk'],
                attributes={
                    'userId': sealed['userId'],
                    'title': sealed['title'],
                    'description': sealed['description'],
                    'reviewStatus': status,
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('REVIEW', status), prefixed('CARD', sealed['id']))},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CARD_REVIEWED',
                detail_type=DetailType.CARD_REVIEWED,
                source=EventSource.CARD_REVIEW,
                payload={
                    'cardId': sealed['id'],
                    'userId': sealed['userId'],
                    'status': status,
                    'timestamp': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.id,
                'userId': request.user_id,
                'title': request.title,
                'description': request.description,
                'sk': REVIEW,
            },
            build=build,
            announce=announce,
        )

    @tracer.capture_method
    def uncover_card(self, request: UncoverCardRequest) -> WriteResult:
        payment_type = request.payment_type.value

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('CARD', sealed['id']),
                sort_key=sealed['sk'],
                attributes={
                    'userId': sealed['userId'],
                    'paymentType': payment_type,
                    'uncoveredAt': ts,
                },
                secondary_keys={'GSI2': (prefixed('USER', sealed['userId']), prefixed('UNCOVERED_AT', ts))},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='UNCOVER',
                detail_type=DetailType.CARD_UNCOVERED,
                source=EventSource.CARD_UNCOVER,
                payload={
                    'cardId': sealed['id'],
                    'userId': sealed['userId'],
                    'paymentType': payment_type,
                    'timestamp': item['uncoveredAt'],
                },
            )

        return self.writer.create(
            sensitive={'id': request.id, 'userId': request.user_id, 'sk': DETAILS},
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Card is already uncovered.',
        )

    @tracer.capture_method
    def import_card_schema(self, request: ImportCardSchemaRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            schema_key = prefixed('SCHEMA', sealed['schemaId'])
            section_key = prefixed('SECTION', sealed['sectionId'])
            return Record(
                partition_key=schema_key,
                sort_key=section_key,
                attributes={
                    'schemaName': sealed['schemaName'],
                    'attributes': sealed['attributes'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (section_key, schema_key)},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='IMPORT_SCHEMA',
                detail_type=DetailType.CARD_SCHEMA_IMPORTED,
                source=EventSource.CARD_SCHEMAS,
                payload={
                    'schemaId': sealed['schemaId'],
                    'sectionId': sealed['sectionId'],
                    'schemaName': sealed['schemaName'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.schema_writer.create(
            sensitive={
                'schemaId': request.schema_id,
                'sectionId': request.section_id,
                'schemaName': request.schema_name,
                'attributes': request.attributes,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Card schema already exists',
        )
