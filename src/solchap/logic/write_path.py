"""
The encrypted write path shared by every create and update.

parse and validate happen in the handler; this module runs the rest in order:
encrypt, build the record, persist, notify. Encryption happens before any store
call, so an encryption failure leaves nothing behind. Fan-out runs only after
the write succeeds and its failures are reported, not raised.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from aws_lambda_powertools.metrics import MetricUnit

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import ConditionalWriteError, RecordStore
from solchap.events.notifier import FanOutResult, Notification, Notifier
from solchap.handlers.utils.errors import AlreadyExistsError, ResourceNotFoundError
from solchap.handlers.utils.observability import logger, metrics, tracer
from solchap.models.record import Record, utc_now_iso

Sealed = Dict[str, Any]
BuildRecord = Callable[[Sealed, str], Record]
Announce = Callable[[Sealed, Dict[str, Any]], Notification]


@dataclass
class WriteResult:
    sealed: Sealed
    item: Dict[str, Any]
    timestamp: str
    fan_out: Optional[FanOutResult] = None


def present(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop fields the request did not carry."""
    return {name: value for name, value in fields.items() if value is not None}


class RecordWriter:
    """Encrypt, persist and announce records in one table."""

    def __init__(self, store: RecordStore, gateway: CryptoGateway, notifier: Notifier):
        self.store = store
        self.gateway = gateway
        self.notifier = notifier

    def seal(self, fields: Mapping[str, Any]) -> Sealed:
        return self.gateway.encrypt_fields(fields)

    def _announce(self, announce: Optional[Announce], sealed: Sealed, item: Dict[str, Any]) -> Optional[FanOutResult]:
        if announce is None:
            return None
        fan_out = self.notifier.notify(announce(sealed, item))
        if fan_out.failures:
            logger.warning('Record stored but notification incomplete', extra={
                'table_name': self.store.table_name,
                'failures': [f'{outcome.channel}: {outcome.reason}' for outcome in fan_out.failures],
            })
        return fan_out

    @tracer.capture_method
    def create(self, sensitive: Mapping[str, Any], build: BuildRecord, announce: Optional[Announce] = None,
               if_absent: bool = False, conflict_message: str = 'Record already exists') -> WriteResult:
        """
        Encrypt ``sensitive``, build the record from the ciphertexts and put it.

        Args:
            sensitive: plaintext values, keyed by name, to encrypt in one round trip
            build: turns (ciphertexts, timestamp) into the record to store
            announce: turns (ciphertexts, stored item) into the notification
            if_absent: refuse to overwrite an existing key
            conflict_message: message for AlreadyExistsError when ``if_absent`` trips

        Raises:
            EncryptionFailedError: before anything is written
            AlreadyExistsError: ``if_absent`` and the key exists
            StorageFailedError: the put failed
        """
        timestamp = utc_now_iso()
        sealed = self.seal(sensitive)
        item = build(sealed, timestamp).to_item()

        try:
            self.store.put(item, if_absent=if_absent)
        except ConditionalWriteError as exc:
            raise AlreadyExistsError(conflict_message) from exc

        metrics.add_metric(name='RecordCreated', unit=MetricUnit.Count, value=1)
        return WriteResult(sealed=sealed, item=item, timestamp=timestamp,
                           fan_out=self._announce(announce, sealed, item))

    @tracer.capture_method
    def update(self, key: Mapping[str, str], sensitive: Mapping[str, Any], plain: Optional[Mapping[str, Any]] = None,
               announce: Optional[Announce] = None, resource_type: str = 'Record', must_exist: bool = True,
               remove: Optional[List[str]] = None) -> WriteResult:
        """
        Encrypt and SET only the fields present in the request.

        ``key`` must already be built from re-encrypted ids. With ``must_exist``
        a missing item is a ResourceNotFoundError rather than an upsert.
        """
        timestamp = utc_now_iso()
        sealed = self.seal(present(sensitive))
        changes = {**sealed, **present(plain or {}), 'updatedAt': timestamp}

        try:
            item = self.store.update(key, changes, must_exist=must_exist, remove=remove)
        except ConditionalWriteError as exc:
            raise ResourceNotFoundError(resource_type) from exc

        metrics.add_metric(name='RecordUpdated', unit=MetricUnit.Count, value=1)
        return WriteResult(sealed=sealed, item=item, timestamp=timestamp,
                           fan_out=self._announce(announce, sealed, item))

    @tracer.capture_method
    def delete(self, item: Dict[str, Any], notification: Optional[Notification] = None) -> Optional[FanOutResult]:
        """Delete an item a prior read has returned, then announce it."""
        self.store.delete({'PK': item['PK'], 'SK': item['SK']})
        metrics.add_metric(name='RecordDeleted', unit=MetricUnit.Count, value=1)
        if notification is None:
            return None
        return self._announce(lambda _sealed, _item: notification, {}, item)
