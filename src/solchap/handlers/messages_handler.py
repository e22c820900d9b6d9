"""
Messages API.

Covers direct messages, the outbox and its moderation queue, admin reviews and
the contact-info filter.
"""

from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import MessagesEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.messages import MessageService
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

app = APIGatewayRestResolver()

_service: Optional[MessageService] = None


def build_service(env: MessagesEnvVars, clients: Optional[AwsClients] = None) -> MessageService:
    clients = clients or AwsClients(env)
    return MessageService(
        store=clients.store(),
        filter_store=clients.store(env.MESSAGE_FILTERS_TABLE_NAME),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.MESSAGES),
        review_queue_url=env.REVIEW_QUEUE_URL,
    )


def get_service() -> MessageService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=MessagesEnvVars))
    return _service


@app.post('/messages')
@tracer.capture_method
@handle_service_errors
def create_message() -> Response:
    request = parse_request(app.current_event, CreateMessageRequest)
    result = get_service().create_message(request)
    return json_response(201, {'message': 'Message created successfully', 'id': request.id, 'PK': result.item['PK']})


@app.post('/messages/outbox')
@tracer.capture_method
@handle_service_errors
def post_message() -> Response:
    request = parse_request(app.current_event, PostMessageRequest)
    result = get_service().post_message(request)
    return json_response(201, {'message': 'Message posted successfully', 'messageId': result.item['messageId']})


@app.get('/messages/pending')
@tracer.capture_method
@handle_service_errors
def get_pending_messages() -> Response:
    pending = get_service().get_pending_messages()
    if not pending.messages:
        return json_response(200, {'message': 'No pending messages found', 'count': 0, 'data': []})
    return json_response(200, {
        'message': 'Pending messages retrieved successfully',
        'count': len(pending.messages),
        'data': pending.messages,
    })


@app.post('/messages/<message_id>/replies')
@tracer.capture_method
@handle_service_errors
def reply_to_message(message_id: str) -> Response:
    request = parse_request(app.current_event, ReplyToMessageRequest, id=message_id)
    result = get_service().reply_to_message(request)
    return json_response(201, {'message': 'Reply sent successfully', 'id': request.id, 'createdAt': result.timestamp})


@app.post('/messages/<message_id>/review')
@tracer.capture_method
@handle_service_errors
def review_message(message_id: str) -> Response:
    request = parse_request(app.current_event, ReviewMessageRequest, id=message_id)
    get_service().review_message(request)
    return json_response(200, {'message': 'Message review recorded', 'id': request.id, 'status': request.status.value})


@app.post('/messages/<message_id>/details')
@tracer.capture_method
@handle_service_errors
def review_message_details(message_id: str) -> Response:
    request = parse_request(app.current_event, ReviewMessageDetailsRequest, id=message_id)
    get_service().review_message_details(request)
    return json_response(201, {'message': 'Message details recorded', 'id': request.id})


@app.put('/messages/<message_id>/subject')
@tracer.capture_method
@handle_service_errors
def review_subject(message_id: str) -> Response:
    request = parse_request(app.current_event, ReviewSubjectRequest, id=message_id)
    result = get_service().review_subject(request)
    return json_response(200, {'message': 'Subject updated successfully', 'id': request.id, 'updatedAt': result.timestamp})


@app.post('/messages/<message_id>/circumvention')
@tracer.capture_method
@handle_service_errors
def check_circumvention(message_id: str) -> Response:
    request = parse_request(app.current_event, CheckCircumventionRequest, id=message_id)
    get_service().check_circumvention(request)
    return json_response(201, {
        'message': 'Circumvention check recorded',
        'id': request.id,
        'circumventDetected': request.circumvent_detected,
    })


@app.post('/messages/filter')
@tracer.capture_method
@handle_service_errors
def filter_contact_info() -> Response:
    request = parse_request(app.current_event, FilterContactInfoRequest)
    result = get_service().filter_contact_info(request)
    if result is None:
        return json_response(201, {'message': 'Message processed successfully', 'flagged': False})
    return json_response(201, {'message': 'Message flagged for contact information', 'flagged': True})


@app.put('/message-filters/<filter_id>')
@tracer.capture_method
@handle_service_errors
def update_message_filter(filter_id: str) -> Response:
    request = parse_request(app.current_event, UpdateMessageFilterRequest, id=filter_id)
    result = get_service().update_message_filter(request)
    return json_response(200, {
        'message': 'Message filter updated successfully',
        'filterId': request.id,
        'PK': result.item['PK'],
        'SK': result.item['SK'],
    })


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
