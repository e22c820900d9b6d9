"""
HTTP helpers shared by the API Gateway handlers.

Request bodies are decoded and validated into pydantic models, and every route
is wrapped by ``handle_service_errors`` so service errors, validation errors and
unexpected exceptions all come back as JSON responses carrying ``message``.
"""

import json
from decimal import Decimal
from functools import wraps
from typing import Any, Dict, Type, TypeVar

from aws_lambda_powertools.event_handler import Response, content_types
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEvent
from pydantic import BaseModel, ValidationError

from solchap.handlers.utils.errors import (
    BadRequestError,
    BaseServiceError,
    format_error_response,
    get_http_status_code,
    log_error_metrics,
)
from solchap.handlers.utils.observability import logger, metrics

ModelT = TypeVar('ModelT', bound=BaseModel)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET,PUT,DELETE',
}


def _json_default(value: Any) -> Any:
    # DynamoDB hands numbers back as Decimal
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f'Object of type {type(value).__name__} is not JSON serializable')


def to_json(payload: Any) -> str:
    return json.dumps(payload, default=_json_default)


def json_response(status_code: int, body: Dict[str, Any]) -> Response:
    """Create a JSON API Gateway response with CORS headers."""
    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=to_json(body),
        headers=dict(CORS_HEADERS),
    )


def parse_body(event: APIGatewayProxyEvent) -> Dict[str, Any]:
    """Decode the request body into a JSON object."""
    raw = event.decoded_body
    if not raw:
        raise BadRequestError('Request body is required')
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BadRequestError('Invalid JSON format in request body') from exc
    if not isinstance(payload, dict):
        raise BadRequestError('Request body must be a JSON object')
    return payload


def parse_request(event: APIGatewayProxyEvent, model: Type[ModelT], **path_params: str) -> ModelT:
    """
    Validate the request body, merged with path parameters, into ``model``.

    Path parameters win over body fields with the same name.

    Raises:
        BadRequestError: malformed JSON
        pydantic.ValidationError: missing or invalid fields
    """
    payload = parse_body(event)
    payload.update(path_params)
    return model.model_validate(payload)


def validation_error_to_bad_request(error: ValidationError) -> BadRequestError:
    field_errors = [
        {'field': '.'.join(str(part) for part in err['loc']) or 'body', 'message': err['msg']}
        for err in error.errors()
    ]
    fields = ', '.join(dict.fromkeys(item['field'] for item in field_errors))
    return BadRequestError(message=f'Missing or invalid required fields: {fields}', field_errors=field_errors)


def handle_service_errors(func):
    """Decorator to handle service errors and convert to HTTP responses."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaseServiceError as e:
            log_error_metrics(e)
            return json_response(get_http_status_code(e), format_error_response(e))

        except ValidationError as e:
            logger.warning('Request validation failed', extra={
                'validation_errors': str(e),
                'error_count': e.error_count(),
            })
            bad_request = validation_error_to_bad_request(e)
            log_error_metrics(bad_request)
            return json_response(400, format_error_response(bad_request))

        except Exception as e:
            logger.exception('Unexpected error in handler', extra={
                'error': str(e),
                'function_name': func.__name__,
            })
            metrics.add_metric(name='UnexpectedError', unit=MetricUnit.Count, value=1)
            return json_response(500, {'message': 'Internal server error', 'error': 'INTERNAL_SERVER_ERROR'})

    return wrapper
