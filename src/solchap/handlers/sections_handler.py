"""
Sections API and subcategory assignment queue consumer.
"""

import json
from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.batch import BatchProcessor, EventType, process_partial_response
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import ServiceEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.sections import SectionService
from solchap.models.sections import AssignSubcategoryRequest, OrganizeContentRequest, SetDisplayRulesRequest

app = APIGatewayRestResolver()
processor = BatchProcessor(event_type=EventType.SQS)

_service: Optional[SectionService] = None


def build_service(env: ServiceEnvVars, clients: Optional[AwsClients] = None) -> SectionService:
    clients = clients or AwsClients(env)
    return SectionService(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.SECTIONS),
    )


def get_service() -> SectionService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=ServiceEnvVars))
    return _service


@app.post('/sections/<section_id>/subcategories')
@tracer.capture_method
@handle_service_errors
def assign_subcategory(section_id: str) -> Response:
    request = parse_request(app.current_event, AssignSubcategoryRequest, sectionId=section_id)
    result = get_service().assign_subcategory(request)
    return json_response(201, {
        'message': 'Subcategory assigned successfully',
        'sectionId': request.section_id,
        'subcategoryId': request.subcategory_id,
        'createdAt': result.timestamp,
    })


@app.put('/sections/<section_id>/display-rules')
@tracer.capture_method
@handle_service_errors
def set_display_rules(section_id: str) -> Response:
    request = parse_request(app.current_event, SetDisplayRulesRequest, id=section_id)
    result = get_service().set_display_rules(request)
    return json_response(200, {
        'message': 'Display rules updated successfully',
        'sectionId': request.id,
        'updatedAt': result.timestamp,
    })


@app.put('/sections/<section_id>/organization')
@tracer.capture_method
@handle_service_errors
def organize_content(section_id: str) -> Response:
    request = parse_request(app.current_event, OrganizeContentRequest, id=section_id)
    result = get_service().organize_content(request)
    return json_response(200, {
        'message': 'Section organized successfully',
        'sectionId': request.id,
        'status': request.status.value,
        'order': request.order,
        'updatedAt': result.timestamp,
    })


@tracer.capture_method
def assign_subcategory_record(record: SQSRecord) -> None:
    try:
        request = AssignSubcategoryRequest.model_validate(json.loads(record.body))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning('Skipping invalid assignment message', extra={'message_id': record.message_id, 'error': str(exc)})
        metrics.add_metric(name='InvalidAssignmentMessage', unit=MetricUnit.Count, value=1)
        return
    get_service().assign_subcategory(request)


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def queue_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return process_partial_response(
        event=event,
        record_handler=assign_subcategory_record,
        processor=processor,
        context=context,
    )
