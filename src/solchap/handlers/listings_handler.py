"""
Listings API and verification queue consumer.

Listings reach verification either through the API or as SQS messages. The
queue consumer reports failures per message so only failed records are retried;
a message that does not validate is dropped after logging.
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
from solchap.handlers.utils.errors import BaseServiceError
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.listings import ListingService
from solchap.models.listings import ReviewListingRequest, VerifyListingRequest

app = APIGatewayRestResolver()
processor = BatchProcessor(event_type=EventType.SQS)

_service: Optional[ListingService] = None


def build_service(env: ServiceEnvVars, clients: Optional[AwsClients] = None) -> ListingService:
    clients = clients or AwsClients(env)
    return ListingService(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.LISTINGS),
    )


def get_service() -> ListingService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=ServiceEnvVars))
    return _service


@app.post('/listings/verify')
@tracer.capture_method
@handle_service_errors
def verify_listing() -> Response:
    request = parse_request(app.current_event, VerifyListingRequest)
    result = get_service().verify_listing(request)
    return json_response(200, {
        'message': 'Listing verification initiated',
        'listingId': request.listing_id,
        'status': result.item['status'],
    })


@app.post('/listings/<listing_id>/review')
@tracer.capture_method
@handle_service_errors
def review_listing(listing_id: str) -> Response:
    request = parse_request(app.current_event, ReviewListingRequest, id=listing_id)
    get_service().review_listing(request)
    return json_response(200, {'message': 'Review recorded', 'id': request.id, 'status': request.status.value})


@tracer.capture_method
def verify_listing_record(record: SQSRecord) -> None:
    try:
        request = VerifyListingRequest.model_validate(json.loads(record.body))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning('Skipping invalid listing message', extra={'message_id': record.message_id, 'error': str(exc)})
        metrics.add_metric(name='InvalidListingMessage', unit=MetricUnit.Count, value=1)
        return

    service = get_service()
    try:
        service.verify_listing(request)
    except BaseServiceError as exc:
        service.report_processing_error(exc)
        raise


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
        record_handler=verify_listing_record,
        processor=processor,
        context=context,
    )
