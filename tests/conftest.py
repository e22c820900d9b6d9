"""
Pytest configuration and shared fixtures for the marketplace services.

DynamoDB, SQS and EventBridge are mocked with moto. The encryption and
decryption Lambdas are not mocked: FakeLambdaClient runs the real crypto
handlers in-process, so every test exercises the actual ciphertexts.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

# Set before any solchap import so Powertools and the cipher pick them up
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SECURITY_TOKEN": "testing",
    "AWS_SESSION_TOKEN": "testing",
    "POWERTOOLS_SERVICE_NAME": "test-marketplace",
    "POWERTOOLS_METRICS_NAMESPACE": "TestSolChapMarketplace",
    "POWERTOOLS_TRACE_DISABLED": "true",
    "POWERTOOLS_LOG_LEVEL": "DEBUG",
    "AES_SECRET_KEY": "test-secret-key",
    "AES_SECRET_IV": "test-secret-iv",
    "AES_ENCRYPTION_METHOD": "aes-256-cbc",
    "TABLE_NAME": "test-marketplace",
})

from solchap.crypto.cipher import DeterministicCipher  # noqa: E402
from solchap.handlers import crypto_handler  # noqa: E402
from solchap.handlers.models.env_vars import ServiceEnvVars  # noqa: E402
from solchap.handlers.utils.dependencies import AwsClients  # noqa: E402
from tests.fakes import DECRYPTION_FUNCTION, ENCRYPTION_FUNCTION, FakeLambdaClient, RecordingEventsClient  # noqa: E402

REGION = "us-east-1"
TABLE_NAME = "test-marketplace"
CARD_SCHEMAS_TABLE = "test-card-schemas"
SUBCATEGORIES_TABLE = "test-subcategories"
MESSAGE_FILTERS_TABLE = "test-message-filters"
EVENT_BUS_NAME = "test-marketplace-bus"

INDEXES = {
    "GSI1": ("GSI1PK", "GSI1SK"),
    "GSI2": ("GSI2PK", "GSI2SK"),
    "Dev-StatusIndex": ("GSI1PK", "GSI1SK"),
    "Dev-EmailIndex": ("GSI1PK", "GSI1SK"),
    "Dev-MarketplaceIndex": ("SK", "PK"),
}


def create_table(dynamodb, name: str):
    attributes = ["PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK"]
    return dynamodb.create_table(
        TableName=name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[{"AttributeName": attr, "AttributeType": "S"} for attr in attributes],
        GlobalSecondaryIndexes=[
            {
                "IndexName": index_name,
                "KeySchema": [
                    {"AttributeName": pk, "KeyType": "HASH"},
                    {"AttributeName": sk, "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }
            for index_name, (pk, sk) in INDEXES.items()
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@dataclass
class MockAws:
    dynamodb: Any
    sqs: Any
    events: RecordingEventsClient
    queue_url: str
    review_queue_url: str
    env_values: Dict[str, Any] = field(default_factory=dict)

    def table(self, name: str = TABLE_NAME):
        return self.dynamodb.Table(name)

    def items(self, name: str = TABLE_NAME) -> List[Dict[str, Any]]:
        return self.table(name).scan()["Items"]

    def queue_messages(self, queue_url: Optional[str] = None) -> List[Dict[str, Any]]:
        messages = []
        while True:
            response = self.sqs.receive_message(QueueUrl=queue_url or self.queue_url, MaxNumberOfMessages=10)
            batch = response.get("Messages", [])
            if not batch:
                return messages
            messages.extend(json.loads(message["Body"]) for message in batch)


@pytest.fixture
def aws():
    """Mocked tables, queues and event bus."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name=REGION)
        for name in (TABLE_NAME, CARD_SCHEMAS_TABLE, SUBCATEGORIES_TABLE, MESSAGE_FILTERS_TABLE):
            create_table(dynamodb, name)

        sqs = boto3.client("sqs", region_name=REGION)
        queue_url = sqs.create_queue(QueueName="test-notifications")["QueueUrl"]
        review_queue_url = sqs.create_queue(QueueName="test-review")["QueueUrl"]

        events = boto3.client("events", region_name=REGION)
        events.create_event_bus(Name=EVENT_BUS_NAME)

        yield MockAws(
            dynamodb=dynamodb,
            sqs=sqs,
            events=RecordingEventsClient(events),
            queue_url=queue_url,
            review_queue_url=review_queue_url,
            env_values={
                "TABLE_NAME": TABLE_NAME,
                "QUEUE_URL": queue_url,
                "EVENT_BUS_NAME": EVENT_BUS_NAME,
                "ENCRYPTION_FUNCTION_NAME": ENCRYPTION_FUNCTION,
                "DECRYPTION_FUNCTION_NAME": DECRYPTION_FUNCTION,
                "AWS_REGION": REGION,
            },
        )


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-lambda-function"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-lambda-function"
    context.memory_limit_in_mb = 512
    context.get_remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-lambda-function"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    return context


@pytest.fixture
def cipher() -> DeterministicCipher:
    """The same cipher the crypto handlers use, for computing expected keys."""
    return crypto_handler.get_cipher()


@pytest.fixture
def crypto_client(lambda_context) -> FakeLambdaClient:
    return FakeLambdaClient(lambda_context)


@pytest.fixture
def make_env(aws):
    def _make(model=ServiceEnvVars, **overrides):
        return model(**{**aws.env_values, **overrides})
    return _make


@pytest.fixture
def make_clients(aws, crypto_client):
    def _make(env, lambda_client=None) -> AwsClients:
        return AwsClients(
            env,
            dynamodb=aws.dynamodb,
            lambda_client=lambda_client or crypto_client,
            sqs=aws.sqs,
            events=aws.events,
        )
    return _make


@pytest.fixture
def install_service(monkeypatch, make_env, make_clients):
    """Replace a handler module's cached service with one wired to the mocks."""

    def _install(handler_module, model=ServiceEnvVars, lambda_client=None, **overrides):
        env = make_env(model, **overrides)
        service = handler_module.build_service(env, make_clients(env, lambda_client))
        monkeypatch.setattr(handler_module, "_service", service)
        return service

    return _install


@pytest.fixture
def api_event() -> Callable[..., Dict[str, Any]]:
    """Build an API Gateway REST proxy event."""

    def _build(method: str, path: str, body: Any = None, raw_body: Optional[str] = None) -> Dict[str, Any]:
        if raw_body is None and body is not None:
            raw_body = json.dumps(body)
        return {
            "resource": path,
            "path": path,
            "httpMethod": method,
            "headers": {"Content-Type": "application/json"},
            "multiValueHeaders": {},
            "queryStringParameters": None,
            "multiValueQueryStringParameters": None,
            "pathParameters": None,
            "stageVariables": None,
            "body": raw_body,
            "isBase64Encoded": False,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": path,
                "resourcePath": path,
                "protocol": "HTTP/1.1",
                "identity": {"sourceIp": "127.0.0.1"},
            },
        }

    return _build


@pytest.fixture
def call_api(api_event, lambda_context):
    """Invoke a handler module's lambda_handler and decode the JSON body."""

    def _call(handler_module, method: str, path: str, body: Any = None, raw_body: Optional[str] = None):
        response = handler_module.lambda_handler(api_event(method, path, body, raw_body), lambda_context)
        return response["statusCode"], json.loads(response["body"])

    return _call


@pytest.fixture
def sqs_event() -> Callable[..., Dict[str, Any]]:
    """Build an SQS batch event from message bodies."""

    def _build(*bodies: Any) -> Dict[str, Any]:
        return {
            "Records": [
                {
                    "messageId": f"message-{index}",
                    "receiptHandle": f"handle-{index}",
                    "body": body if isinstance(body, str) else json.dumps(body),
                    "attributes": {
                        "ApproximateReceiveCount": "1",
                        "SentTimestamp": "1704110400000",
                        "SenderId": "123456789012",
                        "ApproximateFirstReceiveTimestamp": "1704110400000",
                    },
                    "messageAttributes": {},
                    "md5OfBody": "",
                    "eventSource": "aws:sqs",
                    "eventSourceARN": "arn:aws:sqs:us-east-1:123456789012:test-queue",
                    "awsRegion": REGION,
                }
                for index, body in enumerate(bodies)
            ]
        }

    return _build


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
