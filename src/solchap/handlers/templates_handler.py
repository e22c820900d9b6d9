"""Notification templates API."""

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
from solchap.logic.templates import TemplateService
from solchap.logic.write_path import RecordWriter
from solchap.models.templates import UpdateTemplateRequest

app = APIGatewayRestResolver()

_service: Optional[TemplateService] = None


def build_service(env: ServiceEnvVars, clients: Optional[AwsClients] = None) -> TemplateService:
    clients = clients or AwsClients(env)
    return TemplateService(RecordWriter(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.NOTIFICATIONS),
    ))


def get_service() -> TemplateService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=ServiceEnvVars))
    return _service


@app.put('/templates/<template_id>')
@tracer.capture_method
@handle_service_errors
def update_template(template_id: str) -> Response:
    request = parse_request(app.current_event, UpdateTemplateRequest, id=template_id)
    result = get_service().update_template(request)
    return json_response(200, {
        'message': 'Template updated successfully',
        'templateId': request.id,
        'type': request.type,
        'updatedAt': result.timestamp,
    })


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
