"""
The decrypting read path.

Listings tolerate partial failure: a record whose fields cannot be decrypted is
logged and left out instead of failing the whole request.
"""

from typing import Any, Dict, Iterable, List, Sequence

from aws_lambda_powertools.metrics import MetricUnit

from solchap.crypto.gateway import CryptoGateway
from solchap.handlers.utils.errors import DecryptionFailedError
from solchap.handlers.utils.observability import logger, metrics, tracer


class RecordReader:
    def __init__(self, gateway: CryptoGateway):
        self.gateway = gateway

    def open(self, item: Dict[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
        """
        Return a copy of ``item`` with ``fields`` decrypted.

        Raises:
            DecryptionFailedError: any field could not be decrypted
        """
        sealed = {name: item[name] for name in fields if name in item}
        return {**item, **self.gateway.decrypt_fields(sealed)}

    @tracer.capture_method
    def open_all(self, items: Iterable[Dict[str, Any]], fields: Sequence[str]) -> List[Dict[str, Any]]:
        opened: List[Dict[str, Any]] = []
        skipped = 0
        for item in items:
            try:
                opened.append(self.open(item, fields))
            except DecryptionFailedError as exc:
                skipped += 1
                logger.warning('Skipping record that failed decryption', extra={'error': exc.message})
        if skipped:
            metrics.add_metric(name='RecordSkipped', unit=MetricUnit.Count, value=skipped)
        return opened
