"""Memberships API."""

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
from solchap.logic.memberships import MembershipService
from solchap.logic.write_path import RecordWriter
from solchap.models.users import UpgradeMembershipRequest

app = APIGatewayRestResolver()

_service: Optional[MembershipService] = None


def build_service(env: ServiceEnvVars, clients: Optional[AwsClients] = None) -> MembershipService:
    clients = clients or AwsClients(env)
    return MembershipService(RecordWriter(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.MEMBERSHIP),
    ))


def get_service() -> MembershipService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=ServiceEnvVars))
    return _service


@app.post('/memberships')
@tracer.capture_method
@handle_service_errors
def upgrade_membership() -> Response:
    request = parse_request(app.current_event, UpgradeMembershipRequest)
    result = get_service().upgrade_membership(request)
    return json_response(201, {
        'message': 'Membership upgraded successfully',
        'userId': request.user_id,
        'membershipLevel': request.membership_level,
        'createdAt': result.timestamp,
    })


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
