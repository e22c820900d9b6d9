"""
Marketplace operations.

A marketplace lives under ``MARKETPLACE#<enc(id)>`` / ``enc(METADATA)`` and is
indexed by status on GSI1 so that only ACTIVE marketplaces can be deleted.
"""

from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import FanOutResult, Notification, Notifier
from solchap.handlers.utils.errors import BadRequestError, ResourceNotFoundError
from solchap.handlers.utils.observability import logger, tracer
from solchap.logic.keys import METADATA, prefixed
from solchap.logic.read_path import RecordReader
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.marketplaces import CreateMarketplaceRequest, MarketplaceStatus, UpdateMarketplaceRequest
from solchap.models.record import Record, utc_now_iso

SEALED_FIELDS = ('id', 'name', 'description')


class MarketplaceService:
    def __init__(self, store: RecordStore, gateway: CryptoGateway, notifier: Notifier, status_index: str):
        self.store = store
        self.gateway = gateway
        self.status_index = status_index
        self.writer = RecordWriter(store, gateway, notifier)
        self.reader = RecordReader(gateway)

    def marketplace_key(self, marketplace_id: str) -> Dict[str, str]:
        sealed = self.gateway.encrypt_fields({'id': marketplace_id, 'sk': METADATA})
        return {'PK': prefixed('MARKETPLACE', sealed['id']), 'SK': sealed['sk']}

    @tracer.capture_method
    def create_marketplace(self, request: CreateMarketplaceRequest) -> WriteResult:
        status = request.status.value

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('MARKETPLACE', sealed['id']),
                sort_key=sealed['sk'],
                attributes={
                    'id': sealed['id'],
                    'name': sealed['name'],
                    'description': sealed['description'],
                    'status': status,
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('STATUS', status), prefixed('MARKETPLACE', sealed['id']))},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CREATE',
                detail_type=DetailType.MARKETPLACE_CREATED,
                source=EventSource.MARKETPLACE_SYSTEM,
                payload={
                    'marketplaceId': sealed['id'],
                    'name': sealed['name'],
                    'description': sealed['description'],
                    'status': status,
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.marketplace_id,
                'name': request.name,
                'description': request.description,
                'sk': METADATA,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Marketplace already exists',
        )

    @tracer.capture_method
    def update_marketplace(self, request: UpdateMarketplaceRequest) -> WriteResult:
        key = self.marketplace_key(request.id)
        if self.store.get(key) is None:
            raise ResourceNotFoundError('Marketplace', 'Marketplace not found')

        plain: Dict[str, Any] = {}
        if request.status is not None:
            plain['status'] = request.status.value
            plain['GSI1PK'] = prefixed('STATUS', request.status.value)

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='UPDATE',
                detail_type=DetailType.MARKETPLACE_UPDATED,
                source=EventSource.MARKETPLACE_UPDATES,
                payload={'marketplaceId': item['id'], **sealed, **plain, 'updatedAt': item['updatedAt']},
            )

        return self.writer.update(
            key=key,
            sensitive={'name': request.name, 'description': request.description, 'settings': request.settings},
            plain=plain,
            announce=announce,
            resource_type='Marketplace',
        )

    @tracer.capture_method
    def delete_marketplace(self, marketplace_id: str) -> Optional[FanOutResult]:
        key = self.marketplace_key(marketplace_id)
        existing = self.store.get(key)
        if existing is None:
            raise ResourceNotFoundError('Marketplace', 'Marketplace not found')

        active = self.store.query(
            'GSI1PK',
            prefixed('STATUS', MarketplaceStatus.ACTIVE.value),
            index_name=self.status_index,
            sort_key_name='GSI1SK',
            sort_value=key['PK'],
        )
        if not active:
            logger.info('Refusing to delete marketplace that is not active')
            raise BadRequestError('Cannot delete marketplace: status is not ACTIVE')

        return self.writer.delete(existing, Notification(
            action='DELETE',
            detail_type=DetailType.MARKETPLACE_DELETED,
            source=EventSource.MARKETPLACE_SERVICE,
            payload={'marketplaceId': existing['id'], 'deletedAt': utc_now_iso()},
        ))

    @tracer.capture_method
    def list_marketplaces(self) -> List[Dict[str, Any]]:
        items = self.store.scan(Attr('PK').begins_with('MARKETPLACE#'))
        opened = self.reader.open_all(items, SEALED_FIELDS)
        return [
            {
                'marketplaceId': item['id'],
                'name': item.get('name'),
                'description': item.get('description'),
                'status': item.get('status'),
                'createdAt': item.get('createdAt'),
                'updatedAt': item.get('updatedAt'),
            }
            for item in opened
        ]
