"""
AWS client wiring for the handler layer.

Clients are built once per cold start from the handler's environment model and
handed to the services; tests pass their own clients in.
"""

from typing import Optional

import boto3

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import EventSource
from solchap.events.notifier import Notifier
from solchap.handlers.models.env_vars import ServiceEnvVars


class AwsClients:
    def __init__(self, env: ServiceEnvVars, dynamodb=None, lambda_client=None, sqs=None, events=None):
        self.env = env
        self.dynamodb = dynamodb or boto3.resource(
            'dynamodb', region_name=env.AWS_REGION, endpoint_url=env.DYNAMODB_ENDPOINT
        )
        self.lambda_client = lambda_client or boto3.client('lambda', region_name=env.AWS_REGION)
        self.sqs = sqs or boto3.client('sqs', region_name=env.AWS_REGION)
        self.events = events or boto3.client('events', region_name=env.AWS_REGION)

    def store(self, table_name: Optional[str] = None) -> RecordStore:
        return RecordStore(table_name or self.env.TABLE_NAME, dynamodb_resource=self.dynamodb)

    def gateway(self) -> CryptoGateway:
        return CryptoGateway(
            lambda_client=self.lambda_client,
            encryption_function=self.env.ENCRYPTION_FUNCTION_NAME,
            decryption_function=self.env.DECRYPTION_FUNCTION_NAME,
        )

    def notifier(self, source: EventSource, queue_url: Optional[str] = None) -> Notifier:
        return Notifier(
            sqs_client=self.sqs,
            events_client=self.events,
            event_bus_name=self.env.EVENT_BUS_NAME,
            source=source,
            queue_url=queue_url or self.env.QUEUE_URL,
        )
