"""
Best-effort notification fan-out.

After a record is written, one SQS message and one EventBridge event describe
the mutation. Both are attempted, in parallel; neither failure is raised. The
caller gets a FanOutResult with a tagged outcome per channel to log or return.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from solchap.events.catalog import DetailType, EventSource
from solchap.handlers.utils.http import to_json
from solchap.handlers.utils.observability import logger, metrics, tracer


class DeliveryStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one queue send or one event publish."""

    channel: str
    status: DeliveryStatus
    reference: Optional[str] = None
    reason: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == DeliveryStatus.SENT


@dataclass(frozen=True)
class FanOutResult:
    queue: DeliveryOutcome
    event: DeliveryOutcome

    @property
    def failures(self) -> list:
        return [outcome for outcome in (self.queue, self.event) if outcome.status == DeliveryStatus.FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'queue': self.queue.status.value,
            'event': self.event.status.value,
        }


@dataclass(frozen=True)
class Notification:
    """What to announce about one mutation."""

    action: str
    detail_type: Union[DetailType, str]
    payload: Dict[str, Any] = field(default_factory=dict)
    source: Optional[EventSource] = None

    def body(self) -> Dict[str, Any]:
        return {'action': self.action, **self.payload}


def _value(item: Union[str, Enum]) -> str:
    return item.value if isinstance(item, Enum) else item


class Notifier:
    """Sends to one SQS queue and one EventBridge bus on behalf of a domain."""

    def __init__(self, sqs_client, events_client, event_bus_name: str, source: EventSource,
                 queue_url: Optional[str] = None):
        self.sqs = sqs_client
        self.events = events_client
        self.event_bus_name = event_bus_name
        self.source = source
        self.queue_url = queue_url

    def send_to_queue(self, body: Dict[str, Any], queue_url: Optional[str] = None) -> DeliveryOutcome:
        target = queue_url or self.queue_url
        if not target:
            return DeliveryOutcome(channel='queue', status=DeliveryStatus.SKIPPED, reason='queue not configured')
        try:
            response = self.sqs.send_message(QueueUrl=target, MessageBody=to_json(body))
        except (ClientError, BotoCoreError) as exc:
            logger.error('Queue send failed', extra={'queue_url': target, 'error': str(exc)})
            metrics.add_metric(name='NotificationFailed', unit=MetricUnit.Count, value=1)
            return DeliveryOutcome(channel='queue', status=DeliveryStatus.FAILED, reason=str(exc))
        return DeliveryOutcome(channel='queue', status=DeliveryStatus.SENT, reference=response.get('MessageId'))

    def publish_event(self, detail_type: Union[DetailType, str], detail: Dict[str, Any],
                      source: Optional[EventSource] = None) -> DeliveryOutcome:
        entry = {
            'Source': _value(source or self.source),
            'DetailType': _value(detail_type),
            'Detail': to_json(detail),
            'EventBusName': self.event_bus_name,
        }
        try:
            response = self.events.put_events(Entries=[entry])
        except (ClientError, BotoCoreError) as exc:
            logger.error('Event publish failed', extra={'detail_type': entry['DetailType'], 'error': str(exc)})
            metrics.add_metric(name='NotificationFailed', unit=MetricUnit.Count, value=1)
            return DeliveryOutcome(channel='event_bus', status=DeliveryStatus.FAILED, reason=str(exc))

        result = (response.get('Entries') or [{}])[0]
        if response.get('FailedEntryCount', 0) > 0 or result.get('ErrorCode'):
            reason = result.get('ErrorMessage') or result.get('ErrorCode') or 'entry rejected'
            logger.error('Event rejected by EventBridge', extra={'detail_type': entry['DetailType'], 'reason': reason})
            metrics.add_metric(name='NotificationFailed', unit=MetricUnit.Count, value=1)
            return DeliveryOutcome(channel='event_bus', status=DeliveryStatus.FAILED, reason=reason)
        return DeliveryOutcome(channel='event_bus', status=DeliveryStatus.SENT, reference=result.get('EventId'))

    @tracer.capture_method
    def notify(self, notification: Notification) -> FanOutResult:
        """Send the queue message and publish the event; both are always attempted."""
        body = notification.body()
        with ThreadPoolExecutor(max_workers=2) as pool:
            queue_future = pool.submit(self.send_to_queue, body)
            event_future = pool.submit(self.publish_event, notification.detail_type, body, notification.source)
            result = FanOutResult(queue=queue_future.result(), event=event_future.result())

        logger.info('Notification fan-out finished', extra={
            'action': notification.action,
            'detail_type': _value(notification.detail_type),
            **result.to_dict(),
        })
        return result
