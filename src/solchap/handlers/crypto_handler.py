"""
Encryption and decryption Lambda functions.

These are the only functions holding the AES secrets. Every other handler
reaches them through CryptoGateway. Requests come either as a direct invoke
payload or wrapped in an API Gateway style ``body`` string:

- encrypt: ``{"text": ...}`` or ``{"data": {field: value}}`` → ``encryptedData``
- decrypt: ``{"encryptedText": ...}`` or ``{"data": {field: value}}`` → ``decryptedData``
"""

import json
from functools import lru_cache
from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from solchap.crypto.cipher import CipherError, DeterministicCipher
from solchap.handlers.models.env_vars import get_crypto_env_vars
from solchap.handlers.utils.http import to_json
from solchap.handlers.utils.observability import logger, metrics, tracer


@lru_cache(maxsize=1)
def get_cipher() -> DeterministicCipher:
    env = get_crypto_env_vars()
    return DeterministicCipher.from_secrets(env.AES_SECRET_KEY, env.AES_SECRET_IV, env.AES_ENCRYPTION_METHOD)


def _result(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': to_json(body)}


def _unwrap(event: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(event, dict):
        return None
    body = event.get('body')
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return None
    if isinstance(body, dict):
        return body
    return event


def _convert(event: Any, text_key: str, output_key: str, encrypting: bool) -> Dict[str, Any]:
    failure = 'Encryption failed' if encrypting else 'Decryption failed'
    request = _unwrap(event)
    if request is None:
        return _result(400, {'message': 'Invalid request payload'})

    data = request.get('data')
    text = request.get(text_key)
    if not isinstance(data, dict) and (text is None or text == ''):
        return _result(400, {'message': f'Either {text_key} or data is required'})

    cipher = get_cipher()
    try:
        if isinstance(data, dict):
            converted: Any = cipher.encrypt_fields(data) if encrypting else cipher.decrypt_fields(data)
            count = len(data)
        else:
            converted = cipher.encrypt_value(text) if encrypting else cipher.decrypt_value(text)
            count = 1
    except CipherError as exc:
        logger.warning(failure, extra={'error': str(exc)})
        metrics.add_metric(name='DecryptionFailed' if not encrypting else 'EncryptionFailed',
                           unit=MetricUnit.Count, value=1)
        return _result(500, {'message': failure, 'error': str(exc)})

    metrics.add_metric(name='FieldsEncrypted' if encrypting else 'FieldsDecrypted', unit=MetricUnit.Count, value=count)
    return _result(200, {output_key: converted})


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def encrypt_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return _convert(event, 'text', 'encryptedData', encrypting=True)


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def decrypt_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return _convert(event, 'encryptedText', 'decryptedData', encrypting=False)
