"""
Users API.

Registration, login and logout, profile reads and account deletion. Passwords
are bcrypt-hashed and the hash is encrypted like any other sensitive field.
"""

from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import UsersEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.users import UserService
from solchap.models.users import LoginRequest, LogoutRequest, RegisterUserRequest, UserIdRequest

app = APIGatewayRestResolver()

_service: Optional[UserService] = None


def build_service(env: UsersEnvVars, clients: Optional[AwsClients] = None) -> UserService:
    clients = clients or AwsClients(env)
    return UserService(
        store=clients.store(),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.AUTH),
        email_index=env.EMAIL_INDEX_NAME,
        hash_rounds=env.PASSWORD_HASH_ROUNDS,
    )


def get_service() -> UserService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=UsersEnvVars))
    return _service


@app.post('/users')
@tracer.capture_method
@handle_service_errors
def register_user() -> Response:
    request = parse_request(app.current_event, RegisterUserRequest)
    get_service().register_user(request)
    return json_response(201, {'message': 'User registered successfully', 'id': request.id})


@app.post('/users/login')
@tracer.capture_method
@handle_service_errors
def login_user() -> Response:
    request = parse_request(app.current_event, LoginRequest)
    result = get_service().login_user(request)
    return json_response(200, {'message': 'Login successful', **result})


@app.post('/users/logout')
@tracer.capture_method
@handle_service_errors
def logout_user() -> Response:
    request = parse_request(app.current_event, LogoutRequest)
    get_service().logout_user(request)
    return json_response(200, {'message': 'Logout successful', 'userId': request.user_id})


@app.get('/users/<user_id>')
@tracer.capture_method
@handle_service_errors
def get_user_profile(user_id: str) -> Response:
    profile = get_service().get_user_profile(UserIdRequest(id=user_id))
    return json_response(200, {'message': 'User profile retrieved successfully', 'data': profile})


@app.delete('/users/<user_id>')
@tracer.capture_method
@handle_service_errors
def delete_user(user_id: str) -> Response:
    removed = get_service().delete_user(UserIdRequest(id=user_id))
    return json_response(200, {'message': 'User deleted successfully', 'id': user_id, 'deletedItems': removed})


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
