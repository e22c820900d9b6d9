"""Categories and subcategories API."""

from typing import Any, Dict, Optional

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.events.catalog import EventSource
from solchap.handlers.models.env_vars import CategoriesEnvVars
from solchap.handlers.utils.dependencies import AwsClients
from solchap.handlers.utils.http import handle_service_errors, json_response, parse_request
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.logic.categories import CategoryService
from solchap.models.categories import (
    CreateCategoryRequest,
    CreateSubcategoryRequest,
    UpdateCategoryRequest,
    UpdateSubcategoryRequest,
)

app = APIGatewayRestResolver()

_service: Optional[CategoryService] = None


def build_service(env: CategoriesEnvVars, clients: Optional[AwsClients] = None) -> CategoryService:
    clients = clients or AwsClients(env)
    return CategoryService(
        store=clients.store(),
        subcategory_store=clients.store(env.SUBCATEGORIES_TABLE_NAME),
        gateway=clients.gateway(),
        notifier=clients.notifier(EventSource.CATEGORIES),
        marketplace_index=env.MARKETPLACE_INDEX_NAME,
    )


def get_service() -> CategoryService:
    global _service
    if _service is None:
        _service = build_service(get_environment_variables(model=CategoriesEnvVars))
    return _service


@app.post('/categories')
@tracer.capture_method
@handle_service_errors
def create_category() -> Response:
    request = parse_request(app.current_event, CreateCategoryRequest)
    result = get_service().create_category(request)
    return json_response(201, {
        'message': 'Category created successfully',
        'categoryId': result.item['categoryId'],
        'marketplaceId': request.marketplace_id,
    })


@app.get('/categories')
@tracer.capture_method
@handle_service_errors
def list_categories() -> Response:
    categories = get_service().list_categories()
    return json_response(200, {'message': 'Categories retrieved successfully', 'count': len(categories), 'data': categories})


@app.get('/marketplaces/<marketplace_id>/categories')
@tracer.capture_method
@handle_service_errors
def list_marketplace_categories(marketplace_id: str) -> Response:
    categories = get_service().list_marketplace_categories(marketplace_id)
    return json_response(200, {'message': 'Categories retrieved successfully', 'count': len(categories), 'data': categories})


@app.put('/categories/<category_id>')
@tracer.capture_method
@handle_service_errors
def update_category(category_id: str) -> Response:
    request = parse_request(app.current_event, UpdateCategoryRequest, id=category_id)
    result = get_service().update_category(request)
    return json_response(200, {
        'message': 'Category updated successfully',
        'categoryId': request.id,
        'updatedAt': result.timestamp,
    })


@app.delete('/categories/<category_id>')
@tracer.capture_method
@handle_service_errors
def delete_category(category_id: str) -> Response:
    get_service().delete_category(category_id)
    return json_response(200, {'message': 'Category deleted successfully', 'categoryId': category_id})


@app.post('/subcategories')
@tracer.capture_method
@handle_service_errors
def create_subcategory() -> Response:
    request = parse_request(app.current_event, CreateSubcategoryRequest)
    get_service().create_subcategory(request)
    return json_response(201, {
        'message': 'Subcategory created successfully',
        'subcategoryId': request.subcategory_id,
        'categoryId': request.category_id,
        'displayOrder': request.display_order,
    })


@app.get('/categories/<category_id>/subcategories')
@tracer.capture_method
@handle_service_errors
def list_subcategories(category_id: str) -> Response:
    subcategories = get_service().list_subcategories(category_id)
    return json_response(200, {
        'message': 'Subcategories retrieved successfully',
        'count': len(subcategories),
        'data': subcategories,
    })


@app.put('/subcategories/<subcategory_id>')
@tracer.capture_method
@handle_service_errors
def update_subcategory(subcategory_id: str) -> Response:
    request = parse_request(app.current_event, UpdateSubcategoryRequest, id=subcategory_id)
    result = get_service().update_subcategory(request)
    return json_response(200, {
        'message': 'Subcategory updated successfully',
        'subcategoryId': request.id,
        'updatedAt': result.timestamp,
    })


@app.delete('/subcategories/<subcategory_id>')
@tracer.capture_method
@handle_service_errors
def delete_subcategory(subcategory_id: str) -> Response:
    get_service().delete_subcategory(subcategory_id)
    return json_response(200, {'message': 'Subcategory deleted successfully', 'subcategoryId': subcategory_id})


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
