"""Unit tests for best-effort notification fan-out."""

import json
from unittest.mock import Mock

from botocore.exceptions import ClientError

from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import DeliveryStatus, Notification, Notifier


def _notifier(queue_url="https://sqs.test/queue", sqs=None, events=None) -> Notifier:
    sqs = sqs or Mock()
    events = events or Mock()
    sqs.send_message.return_value = {"MessageId": "msg-1"}
    if not events.put_events.side_effect:
        events.put_events.return_value = {"FailedEntryCount": 0, "Entries": [{"EventId": "evt-1"}]}
    return Notifier(sqs, events, "test-bus", EventSource.CARDS, queue_url=queue_url)


def _client_error(operation):
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, operation)


def test_notification_body_carries_action_and_payload():
    note = Notification(action="CREATE", detail_type=DetailType.CARD_CREATED, payload={"id": "enc"})
    assert note.body() == {"action": "CREATE", "id": "enc"}


class TestNotify:
    def test_sends_both_channels(self):
        notifier = _notifier()

        result = notifier.notify(Notification("CREATE", DetailType.CARD_CREATED, {"id": "enc"}))

        assert result.queue.status == DeliveryStatus.SENT
        assert result.event.status == DeliveryStatus.SENT
        assert result.failures == []

        entry = notifier.events.put_events.call_args.kwargs["Entries"][0]
        assert entry["Source"] == "marketplace.cards"
        assert entry["DetailType"] == "CardCreated"
        assert entry["EventBusName"] == "test-bus"
        assert json.loads(entry["Detail"]) == {"action": "CREATE", "id": "enc"}

    def test_notification_source_overrides_default(self):
        notifier = _notifier()

        notifier.notify(Notification("UNCOVER", DetailType.CARD_UNCOVERED, {}, source=EventSource.CARD_UNCOVER))

        entry = notifier.events.put_events.call_args.kwargs["Entries"][0]
        assert entry["Source"] == "marketplace.card.uncover"

    def test_queue_failure_does_not_stop_event(self):
        sqs = Mock()
        notifier = _notifier(sqs=sqs)
        sqs.send_message.side_effect = _client_error("SendMessage")

        result = notifier.notify(Notification("CREATE", DetailType.CARD_CREATED, {}))

        assert result.queue.status == DeliveryStatus.FAILED
        assert result.event.status == DeliveryStatus.SENT
        assert [outcome.channel for outcome in result.failures] == ["queue"]

    def test_rejected_entry_is_a_failure(self):
        events = Mock()
        events.put_events.return_value = {
            "FailedEntryCount": 1,
            "Entries": [{"ErrorCode": "InternalFailure", "ErrorMessage": "try again"}],
        }
        events.put_events.side_effect = None
        notifier = Notifier(Mock(), events, "test-bus", EventSource.CARDS, queue_url=None)

        outcome = notifier.publish_event(DetailType.CARD_CREATED, {})

        assert outcome.status == DeliveryStatus.FAILED
        assert outcome.reason == "try again"

    def test_unset_queue_is_skipped(self):
        notifier = _notifier(queue_url=None)

        result = notifier.notify(Notification("CREATE", DetailType.CARD_CREATED, {}))

        assert result.queue.status == DeliveryStatus.SKIPPED
        assert result.failures == []
        notifier.sqs.send_message.assert_not_called()

    def test_explicit_queue_url_wins(self):
        notifier = _notifier()

        notifier.send_to_queue({"a": 1}, queue_url="https://sqs.test/review")

        assert notifier.sqs.send_message.call_args.kwargs["QueueUrl"] == "https://sqs.test/review"
