"""Notification templates, one row per ``TEMPLATE#<enc(id)>`` and template type."""

from typing import Any, Dict

from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification
from solchap.handlers.utils.observability import tracer
from solchap.logic.keys import prefixed
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.record import Record
from solchap.models.templates import UpdateTemplateRequest


class TemplateService:
    def __init__(self, writer: RecordWriter):
        self.writer = writer

    @tracer.capture_method
    def update_template(self, request: UpdateTemplateRequest) -> WriteResult:
        status = request.status.value

        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('TEMPLATE', sealed['id']),
                sort_key=request.type,
                attributes={
                    'name': sealed['name'],
                    'content': sealed['content'],
                    'variables': sealed['variables'],
                    'metadata': sealed['metadata'],
                    'updatedBy': sealed['updatedBy'],
                    'status': status,
                    'updatedAt': ts,
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='UPDATE_TEMPLATE',
                detail_type=DetailType.TEMPLATE_UPDATED,
                source=EventSource.NOTIFICATIONS,
                payload={
                    'templateId': sealed['id'],
                    'type': request.type,
                    'status': status,
                    'updatedBy': sealed['updatedBy'],
                    'updatedAt': item['updatedAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'id': request.id,
                'name': request.name,
                'content': request.content,
                'variables': request.variables,
                'metadata': request.metadata,
                'updatedBy': request.admin_id,
            },
            build=build,
            announce=announce,
        )
