"""Auctions API."""

from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import ServiceEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.auctions import AuctionService
from solchap.models.auctions import PlaceBidRequest

app = APIGatewayRestResolver()

_service: Optional[AuctionService] = None


def build_service(env: ServiceEnvVars, clients: Optional[AwsClients] = None) -> AuctionService:
    clients = clients or AwsClients(env)
    return AuctionService(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.AUCTIONS),
    )


def get_service() -> AuctionService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=ServiceEnvVars))
    return _service


@app.post('/auctions/<auction_id>/bids')
@tracer.capture_method
@handle_service_errors
def place_bid(auction_id: str) -> Response:
    request = parse_request(app.current_event, PlaceBidRequest, auctionId=auction_id)
    result = get_service().place_bid(request)
    return json_response(201, {
        'message': 'Bid placed successfully',
        'bidId': request.bid_id,
        'auctionId': request.auction_id,
        'createdAt': result.timestamp,
    })


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
