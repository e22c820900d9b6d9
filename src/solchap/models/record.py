"""
Generic record shape shared by every table.

A record is addressed by PK/SK. Secondary index keys live in numbered slots
(GSI1, GSI2, ...) stored as ``<slot>PK`` / ``<slot>SK`` attributes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

PARTITION_KEY = 'PK'
SORT_KEY = 'SK'


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Record:
    """One DynamoDB item with its key parts kept apart from its attributes."""

    partition_key: str
    sort_key: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    secondary_keys: Dict[str, Tuple[str, str]] = field(default_factory=dict)

    @property
    def key(self) -> Dict[str, str]:
        return {PARTITION_KEY: self.partition_key, SORT_KEY: self.sort_key}

    def to_item(self) -> Dict[str, Any]:
        item: Dict[str, Any] = dict(self.key)
        for slot, (pk, sk) in self.secondary_keys.items():
            item[f'{slot}PK'] = pk
            item[f'{slot}SK'] = sk
        for name, value in self.attributes.items():
            if value is not None:
                item[name] = value
        return item
