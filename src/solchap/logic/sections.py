"""
Section operations.

Rows of one section share ``SECTION#<enc(id)>``. Assigned subcategories use
``SUBCATEGORY#<enc(id)>`` as sort key; display rules and organization use the
encrypted markers DISPLAY and ORGANIZATION.
"""

from typing import Any, Dict

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification, Notifier
from solchap.handlers.utils.observability import tracer
from solchap.logic.keys import order_key, prefixed
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.record import Record
from solchap.models.sections import AssignSubcategoryRequest, OrganizeContentRequest, SetDisplayRulesRequest

DISPLAY = 'DISPLAY'
ORGANIZATION = 'ORGANIZATION'


class SectionService:
    def __init__(self, store: RecordStore, gateway: CryptoGateway, notifier: Notifier):
        self.gateway = gateway
        self.writer = RecordWriter(store, gateway, notifier)

    @tracer.capture_method
    def assign_subcategory(self, request: AssignSubcategoryRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            section_key = prefixed('SECTION', sealed['sectionId'])
            subcategory_key = prefixed('SUBCATEGORY', sealed['subcategoryId'])
            return Record(
                partition_key=section_key,
                sort_key=subcategory_key,
                attributes={
                    'name': sealed['name'],
                    'displayRules': sealed['displayRules'],
                    'filters': sealed['filters'],
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (subcategory_key, section_key)},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='ASSIGN_SUBCATEGORY',
                detail_type=DetailType.SUBCATEGORY_ASSIGNED,
                source=EventSource.SECTIONS,
                payload={
                    'sectionId': sealed['sectionId'],
                    'subcategoryId': sealed['subcategoryId'],
                    'createdAt': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'sectionId': request.section_id,
                'subcategoryId': request.subcategory_id,
                'name': request.name,
                'displayRules': request.display_rules,
                'filters': request.filters,
            },
            build=build,
            announce=announce,
        )

    @tracer.capture_method
    def set_display_rules(self, request: SetDisplayRulesRequest) -> WriteResult:
        sealed_key = self.gateway.encrypt_fields({'id': request.id, 'sk': DISPLAY})
        section_key = prefixed('SECTION', sealed_key['id'])

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='SET_DISPLAY_RULES',
                detail_type=DetailType.DISPLAY_RULES_UPDATED,
                source=EventSource.DISPLAY_RULES,
                payload={
                    'sectionId': sealed_key['id'],
                    'displayRules': sealed['displayRules'],
                    'updatedAt': item['updatedAt'],
                },
            )

        return self.writer.update(
            key={'PK': section_key, 'SK': sealed_key['sk']},
            sensitive={'displayRules': request.display_rules},
            announce=announce,
            must_exist=False,
        )

    @tracer.capture_method
    def organize_content(self, request: OrganizeContentRequest) -> WriteResult:
        status = request.status.value
        metadata = request.merged_metadata()

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('SECTION', sealed['id']),
                sort_key=sealed['sk'],
                attributes={
                    'name': sealed['name'],
                    'description': sealed['description'],
                    'parentId': sealed['parentId'],
                    'status': status,
                    'order': request.order,
                    'metadata': metadata,
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={'GSI1': (prefixed('STATUS', status), order_key(request.order))},
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='section_organize',
                detail_type=DetailType.SECTION_UPDATED,
                source=EventSource.SECTION_ORGANIZER,
                payload={
                    'sectionId': sealed['id'],
                    'name': sealed['name'],
                    'status': status,
                    'order': request.order,
                    'updatedAt': item['updatedAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.id,
                'sk': ORGANIZATION,
                'name': request.name,
                'description': request.description,
                'parentId': request.parent_id,
            },
            build=build,
            announce=announce,
        )
