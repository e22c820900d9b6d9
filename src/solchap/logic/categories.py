"""
Category and subcategory operations.

Both tables encrypt the whole prefixed key string: a category is stored under
``enc("CATEGORY#<id>")`` / ``enc("MARKETPLACE#<marketplaceId>")`` and a
subcategory under ``enc("SUBCATEGORY#<id>")`` / ``enc("CATEGORY#<categoryId>")``.
Reads decrypt the keys back to recover the ids.
"""

import uuid
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import FanOutResult, Notification, Notifier
from solchap.handlers.utils.errors import ForbiddenError, ResourceNotFoundError
from solchap.handlers.utils.observability import logger, tracer
from solchap.logic.keys import order_key, prefixed, strip_prefix
from solchap.logic.read_path import RecordReader
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.categories import (
    CreateCategoryRequest,
    CreateSubcategoryRequest,
    UpdateCategoryRequest,
    UpdateSubcategoryRequest,
)
from solchap.models.record import Record, utc_now_iso

CATEGORY_FIELDS = ('PK', 'SK', 'name', 'description')
SUBCATEGORY_FIELDS = ('PK', 'SK', 'name', 'description')


def _category_view(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'categoryId': strip_prefix(item['PK'], 'CATEGORY'),
        'marketplaceId': strip_prefix(item['SK'], 'MARKETPLACE'),
        'name': item.get('name'),
        'description': item.get('description'),
        'createdAt': item.get('createdAt'),
        'updatedAt': item.get('updatedAt'),
    }


def _subcategory_view(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'subcategoryId': strip_prefix(item['PK'], 'SUBCATEGORY'),
        'categoryId': strip_prefix(item['SK'], 'CATEGORY'),
        'name': item.get('name'),
        'description': item.get('description'),
        'displayOrder': item.get('displayOrder'),
        'createdAt': item.get('createdAt'),
        'updatedAt': item.get('updatedAt'),
    }


class CategoryService:
    def __init__(self, store: RecordStore, subcategory_store: RecordStore, gateway: CryptoGateway,
                 notifier: Notifier, marketplace_index: str):
        self.store = store
        self.subcategory_store = subcategory_store
        self.gateway = gateway
        self.marketplace_index = marketplace_index
        self.writer = RecordWriter(store, gateway, notifier)
        self.subcategory_writer = RecordWriter(subcategory_store, gateway, notifier)
        self.reader = RecordReader(gateway)

    # Categories

    @tracer.capture_method
    def create_category(self, request: CreateCategoryRequest) -> WriteResult:
        category_id = str(uuid.uuid4())

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=sealed['pk'],
                sort_key=sealed['sk'],
                attributes={
                    'name': sealed['name'],
                    'description': sealed['description'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CATEGORY_CREATED',
                detail_type=DetailType.CATEGORY_CREATED,
                source=EventSource.CATEGORIES,
                payload={
                    'categoryKey': sealed['pk'],
                    'marketplaceKey': sealed['sk'],
                    'name': sealed['name'],
                    'createdAt': item['createdAt'],
                },
            )

        result = self.writer.create(
            sensitive={
                'pk': prefixed('CATEGORY', category_id),
                'sk': prefixed('MARKETPLACE', request.marketplace_id),
                'name': request.name,
                'description': request.description,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Category already exists',
        )
        result.item['categoryId'] = category_id
        return result

    @tracer.capture_method
    def list_categories(self) -> List[Dict[str, Any]]:
        items = self.store.scan()
        if not items:
            raise ResourceNotFoundError('Category', 'No categories found')
        return [_category_view(item) for item in self.reader.open_all(items, CATEGORY_FIELDS)]

    @tracer.capture_method
    def list_marketplace_categories(self, marketplace_id: str) -> List[Dict[str, Any]]:
        sealed_sk = self.gateway.encrypt_text(prefixed('MARKETPLACE', marketplace_id))
        items = self.store.query('SK', sealed_sk, index_name=self.marketplace_index)
        return [_category_view(item) for item in self.reader.open_all(items, CATEGORY_FIELDS)]

    def _find_category(self, category_id: str) -> Dict[str, Any]:
        sealed_pk = self.gateway.encrypt_text(prefixed('CATEGORY', category_id))
        matches = self.store.query('PK', sealed_pk)
        if not matches:
            raise ResourceNotFoundError('Category', 'Category not found')
        return matches[0]

    @tracer.capture_method
    def update_category(self, request: UpdateCategoryRequest) -> WriteResult:
        existing = self._find_category(request.id)
        if existing['SK'] != self.gateway.encrypt_text(prefixed('MARKETPLACE', request.marketplace_id)):
            raise ForbiddenError('Unauthorized: Marketplace ID does not match')

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='CATEGORY_UPDATED',
                detail_type=DetailType.CATEGORY_UPDATED,
                source=EventSource.CATEGORY_SERVICE,
                payload={
                    'categoryKey': item['PK'],
                    'marketplaceKey': item['SK'],
                    'name': sealed['name'],
                    'description': sealed['description'],
                    'updatedAt': item['updatedAt'],
                },
            )

        return self.writer.update(
            key={'PK': existing['PK'], 'SK': existing['SK']},
            sensitive={'name': request.name, 'description': request.description},
            announce=announce,
            resource_type='Category',
        )

    @tracer.capture_method
    def delete_category(self, category_id: str) -> Optional[FanOutResult]:
        existing = self._find_category(category_id)
        return self.writer.delete(existing, Notification(
            action='deleteCategory',
            detail_type=DetailType.CATEGORY_DELETED,
            source=EventSource.CATEGORY_SERVICE,
            payload={'categoryKey': existing['PK'], 'deletedAt': utc_now_iso()},
        ))

    # Subcategories

    def _subcategory_key(self, subcategory_id: str, category_id: str) -> Dict[str, str]:
        sealed = self.gateway.encrypt_fields({
            'pk': prefixed('SUBCATEGORY', subcategory_id),
            'sk': prefixed('CATEGORY', category_id),
        })
        return {'PK': sealed['pk'], 'SK': sealed['sk']}

    @tracer.capture_method
    def create_subcategory(self, request: CreateSubcategoryRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=sealed['pk'],
                sort_key=sealed['sk'],
                attributes={
                    'name': sealed['name'],
                    'description': sealed['description'],
                    'displayOrder': request.display_order,
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (sealed['sk'], order_key(request.display_order))},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='create_subcategory',
                detail_type=DetailType.SUBCATEGORY_CREATED,
                source=EventSource.SUBCATEGORIES,
                payload={
                    'subcategoryKey': sealed['pk'],
                    'categoryKey': sealed['sk'],
                    'name': sealed['name'],
                    'displayOrder': request.display_order,
                    'createdAt': item['createdAt'],
                },
            )

        return self.subcategory_writer.create(
            sensitive={
                'pk': prefixed('SUBCATEGORY', request.subcategory_id),
                'sk': prefixed('CATEGORY', request.category_id),
                'name': request.name,
                'description': request.description,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Subcategory already exists',
        )

    @tracer.capture_method
    def update_subcategory(self, request: UpdateSubcategoryRequest) -> WriteResult:
        key = self._subcategory_key(request.id, request.category_id)
        if self.subcategory_store.get(key) is None:
            raise ResourceNotFoundError('Subcategory', 'Subcategory not found')

        plain: Dict[str, Any] = {}
        if request.display_order is not None:
            plain['displayOrder'] = request.display_order
            plain['GSI1SK'] = order_key(request.display_order)

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='update_subcategory',
                detail_type=DetailType.SUBCATEGORY_UPDATED,
                source=EventSource.SUBCATEGORIES,
                payload={'subcategoryKey': item['PK'], **sealed, **plain, 'updatedAt': item['updatedAt']},
            )

        return self.subcategory_writer.update(
            key=key,
            sensitive={'name': request.name, 'description': request.description},
            plain=plain,
            announce=announce,
            resource_type='Subcategory',
        )

    @tracer.capture_method
    def delete_subcategory(self, subcategory_id: str) -> Optional[FanOutResult]:
        sealed_pk = self.gateway.encrypt_text(prefixed('SUBCATEGORY', subcategory_id))
        matches = self.subcategory_store.query('PK', sealed_pk)
        if not matches:
            raise ResourceNotFoundError('Subcategory', 'Subcategory not found')
        return self.subcategory_writer.delete(matches[0], Notification(
            action='delete_subcategory',
            detail_type=DetailType.SUBCATEGORY_DELETED,
            source=EventSource.SUBCATEGORIES,
            payload={'subcategoryKey': sealed_pk, 'deletedAt': utc_now_iso()},
        ))

    @tracer.capture_method
    def list_subcategories(self, category_id: str) -> List[Dict[str, Any]]:
        sealed_sk = self.gateway.encrypt_text(prefixed('CATEGORY', category_id))
        items = self.subcategory_store.scan(Attr('SK').eq(sealed_sk))
        if not items:
            raise ResourceNotFoundError('Subcategory', 'No subcategories found for this category')
        opened = self.reader.open_all(items, SUBCATEGORY_FIELDS)
        logger.debug('Subcategories decrypted', extra={'found': len(items), 'returned': len(opened)})
        views = [_subcategory_view(item) for item in opened]
        return sorted(views, key=lambda view: view['displayOrder'] if view['displayOrder'] is not None else 0)
