"""
DynamoDB record store.

Thin table wrapper that turns DynamoDB failures into the service error
taxonomy: a failed condition becomes ConditionalWriteError so callers can map
it to their own message, everything else becomes StorageFailedError.
"""

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Mapping, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from solchap.handlers.utils.errors import StorageFailedError
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.models.record import PARTITION_KEY


class ConditionalWriteError(StorageFailedError):
    """A put/update/delete precondition did not hold."""

    def __init__(self, table_name: str, operation: str):
        super().__init__(message=f'Condition check failed on {table_name}', operation=operation)
        self.table_name = table_name


def to_dynamodb_value(value: Any) -> Any:
    """DynamoDB rejects floats; store them as Decimal."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamodb_value(v) for v in value]
    return value


class RecordStore:
    """Get, put, update, delete, query and scan on one table."""

    def __init__(self, table_name: str, dynamodb_resource=None, region_name: Optional[str] = None,
                 endpoint_url: Optional[str] = None):
        self.table_name = table_name
        if dynamodb_resource is None:
            dynamodb_resource = boto3.resource('dynamodb', region_name=region_name, endpoint_url=endpoint_url)
        self.table = dynamodb_resource.Table(table_name)

    @contextmanager
    def _dynamodb_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except ClientError as e:
            error_code = e.response['Error']['Code']
            metrics.add_metric(name=f'DynamoDB{operation}Error', unit=MetricUnit.Count, value=1)
            if error_code == 'ConditionalCheckFailedException':
                logger.info('DynamoDB condition check failed', extra={
                    'table_name': self.table_name,
                    'operation': operation,
                })
                raise ConditionalWriteError(self.table_name, operation) from e
            logger.error(f'DynamoDB {operation} error', extra={
                'error_code': error_code,
                'error_message': e.response['Error'].get('Message'),
                'table_name': self.table_name,
            })
            raise StorageFailedError(message=f'DynamoDB {operation} failed: {error_code}', operation=operation) from e
        except BotoCoreError as e:
            metrics.add_metric(name=f'DynamoDB{operation}Error', unit=MetricUnit.Count, value=1)
            logger.error(f'DynamoDB connection error during {operation}', extra={
                'error': str(e),
                'table_name': self.table_name,
            })
            raise StorageFailedError(message=f'DynamoDB {operation} failed: {e}', operation=operation) from e

    @tracer.capture_method
    def get(self, key: Mapping[str, str]) -> Optional[Dict[str, Any]]:
        with self._dynamodb_errors('GetItem'):
            response = self.table.get_item(Key=dict(key))
        return response.get('Item')

    @tracer.capture_method
    def put(self, item: Mapping[str, Any], if_absent: bool = False) -> None:
        """
        Write a whole item.

        Args:
            item: item including PK and SK
            if_absent: refuse to overwrite an existing item with the same key

        Raises:
            ConditionalWriteError: ``if_absent`` and the key already exists
            StorageFailedError: any other DynamoDB failure
        """
        kwargs: Dict[str, Any] = {'Item': to_dynamodb_value(dict(item))}
        if if_absent:
            kwargs['ConditionExpression'] = Attr(PARTITION_KEY).not_exists()
        with self._dynamodb_errors('PutItem'):
            self.table.put_item(**kwargs)
        logger.debug('Item written', extra={'table_name': self.table_name})

    @tracer.capture_method
    def update(self, key: Mapping[str, str], changes: Mapping[str, Any], must_exist: bool = False,
               remove: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        SET the given attributes (and REMOVE others) on one item.

        Returns:
            the item as stored after the update
        """
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        set_parts = []
        for index, (name, value) in enumerate(changes.items()):
            names[f'#f{index}'] = name
            values[f':v{index}'] = to_dynamodb_value(value)
            set_parts.append(f'#f{index} = :v{index}')

        expression = f"SET {', '.join(set_parts)}" if set_parts else ''
        if remove:
            remove_parts = []
            for index, name in enumerate(remove):
                names[f'#r{index}'] = name
                remove_parts.append(f'#r{index}')
            expression = f"{expression} REMOVE {', '.join(remove_parts)}".strip()

        kwargs: Dict[str, Any] = {
            'Key': dict(key),
            'UpdateExpression': expression,
            'ExpressionAttributeNames': names,
            'ReturnValues': 'ALL_NEW',
        }
        if values:
            kwargs['ExpressionAttributeValues'] = values
        if must_exist:
            kwargs['ConditionExpression'] = Attr(PARTITION_KEY).exists()

        with self._dynamodb_errors('UpdateItem'):
            response = self.table.update_item(**kwargs)
        return response.get('Attributes', {})

    @tracer.capture_method
    def delete(self, key: Mapping[str, str]) -> None:
        with self._dynamodb_errors('DeleteItem'):
            self.table.delete_item(Key=dict(key))

    @tracer.capture_method
    def query(self, key_name: str, value: str, index_name: Optional[str] = None,
              sort_key_name: Optional[str] = None, sort_value: Optional[str] = None) -> List[Dict[str, Any]]:
        """Query by partition key (and optionally exact sort key), following pagination."""
        condition = Key(key_name).eq(value)
        if sort_key_name and sort_value is not None:
            condition = condition & Key(sort_key_name).eq(sort_value)

        kwargs: Dict[str, Any] = {'KeyConditionExpression': condition}
        if index_name:
            kwargs['IndexName'] = index_name
        return self._paginate('Query', self.table.query, kwargs)

    @tracer.capture_method
    def scan(self, filter_expression=None) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {}
        if filter_expression is not None:
            kwargs['FilterExpression'] = filter_expression
        return self._paginate('Scan', self.table.scan, kwargs)

    def _paginate(self, operation: str, call, kwargs: Dict[str, Any]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        with self._dynamodb_errors(operation):
            while True:
                response = call(**kwargs)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                kwargs['ExclusiveStartKey'] = last_key
        logger.debug(f'{operation} completed', extra={'table_name': self.table_name, 'items_count': len(items)})
        return items
