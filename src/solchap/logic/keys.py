"""
Key construction helpers.

Two key shapes exist. Most tables keep the entity prefix in clear text in front
of the ciphertext (``CARD#<enc(id)>``); categories, subcategories, message
filters and posted messages encrypt the whole prefixed string
(``enc("CATEGORY#<id>")``). Either way the ciphertext is deterministic, so the
key can be rebuilt from the plaintext id for later lookups.
"""

METADATA = 'METADATA'


def prefixed(prefix: str, value: str) -> str:
    return f'{prefix}#{value}'


def strip_prefix(value: str, prefix: str) -> str:
    marker = f'{prefix}#'
    return value[len(marker):] if value.startswith(marker) else value


def order_key(display_order: int) -> str:
    """Zero-padded so lexical order on the index matches numeric order."""
    return f'ORDER#{display_order:05d}'
