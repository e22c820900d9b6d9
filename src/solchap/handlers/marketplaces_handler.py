"""Marketplaces API."""

from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import MarketplacesEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.marketplaces import MarketplaceService
from solchap.models.marketplaces import CreateMarketplaceRequest, UpdateMarketplaceRequest

app = APIGatewayRestResolver()

_service: Optional[MarketplaceService] = None


def build_service(env: MarketplacesEnvVars, clients: Optional[AwsClients] = None) -> MarketplaceService:
    clients = clients or AwsClients(env)
    return MarketplaceService(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.MARKETPLACE_SYSTEM),
        status_index=env.STATUS_INDEX_NAME,
    )


def get_service() -> MarketplaceService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=MarketplacesEnvVars))
    return _service


@app.post('/marketplaces')
@tracer.capture_method
@handle_service_errors
def create_marketplace() -> Response:
    request = parse_request(app.current_event, CreateMarketplaceRequest)
    result = get_service().create_marketplace(request)
    return json_response(201, {
        'message': 'Marketplace created successfully',
        'marketplaceId': request.marketplace_id,
        'status': result.item['status'],
    })


@app.get('/marketplaces')
@tracer.capture_method
@handle_service_errors
def list_marketplaces() -> Response:
    marketplaces = get_service().list_marketplaces()
    return json_response(200, {
        'message': 'Marketplaces retrieved successfully',
        'count': len(marketplaces),
        'data': marketplaces,
    })


@app.put('/marketplaces/<marketplace_id>')
@tracer.capture_method
@handle_service_errors
def update_marketplace(marketplace_id: str) -> Response:
    request = parse_request(app.current_event, UpdateMarketplaceRequest, id=marketplace_id)
    result = get_service().update_marketplace(request)
    return json_response(200, {
        'message': 'Marketplace updated successfully',
        'marketplaceId': request.id,
        'updatedAt': result.timestamp,
    })


@app.delete('/marketplaces/<marketplace_id>')
@tracer.capture_method
@handle_service_errors
def delete_marketplace(marketplace_id: str) -> Response:
    get_service().delete_marketplace(marketplace_id)
    return json_response(200, {'message': 'Marketplace deleted successfully', 'marketplaceId': marketplace_id})


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
