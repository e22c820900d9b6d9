"""
Cards API.

Routes card creation, updates, reviews, uncovering and schema imports. The
service is built from CardsEnvVars on first use and reused for the lifetime of
the execution environment.
"""

from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import CardsEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.cards import CardService
from solchap.models.cards import (
    CreateCardRequest,
    ImportCardSchemaRequest,
    ReviewCardRequest,
    UncoverCardRequest,
    UpdateCardRequest,
)

app = APIGatewayRestResolver()

_service: Optional[CardService] = None


def build_service(env: CardsEnvVars, clients: Optional[AwsClients] = None) -> CardService:
    clients = clients or AwsClients(env)
    return CardService(
        store=clients.store(),
        schema_store=clients.store(env.CARD_SCHEMAS_TABLE_NAME),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.CARDS),
    )


def get_service() -> CardService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=CardsEnvVars))
    return _service


@app.post('/cards')
@tracer.capture_method
@handle_service_errors
def create_card() -> Response:
    request = parse_request(app.current_event, CreateCardRequest)
    get_service().create_card(request)
    return json_response(201, {'message': 'Card created successfully', 'id': request.id})


@app.put('/cards/<card_id>')
@tracer.capture_method
@handle_service_errors
def update_card(card_id: str) -> Response:
    request = parse_request(app.current_event, UpdateCardRequest, id=card_id)
    result = get_service().update_card(request)
    return json_response(200, {'message': 'Card updated successfully', 'id': request.id, 'updatedItem': result.item})


@app.post('/cards/<card_id>/review')
@tracer.capture_method
@handle_service_errors
def review_card(card_id: str) -> Response:
    request = parse_request(app.current_event, ReviewCardRequest, id=card_id)
    get_service().review_card(request)
    return json_response(201, {
        'message': 'Card review status updated successfully',
        'cardId': request.id,
        'status': request.status.value,
    })


@app.post('/cards/<card_id>/uncover')
@tracer.capture_method
@handle_service_errors
def uncover_card(card_id: str) -> Response:
    request = parse_request(app.current_event, UncoverCardRequest, id=card_id)
    result = get_service().uncover_card(request)
    return json_response(200, {
        'message': 'Card uncovered successfully',
        'cardId': request.id,
        'paymentType': request.payment_type.value,
        'timestamp': result.timestamp,
    })


@app.post('/card-schemas')
@tracer.capture_method
@handle_service_errors
def import_card_schema() -> Response:
    request = parse_request(app.current_event, ImportCardSchemaRequest)
    result = get_service().import_card_schema(request)
    return json_response(201, {
        'message': 'Card schema imported successfully',
        'schemaId': request.schema_id,
        'PK': result.item['PK'],
        'SK': result.item['SK'],
    })


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
