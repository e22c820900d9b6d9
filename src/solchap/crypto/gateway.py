"""
Client side of the encryption indirection.

Handlers never hold the AES secrets. They invoke the encryption and decryption
Lambdas synchronously; a mapping of fields goes out in one round trip.
"""

import json
from typing import Any, Dict, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from solchap.crypto.cipher import is_blank
from solchap.handlers.utils.errors import DecryptionFailedError, EncryptionFailedError
from solchap.handlers.utils.observability import logger, tracer


class CryptoGateway:
    """Invokes the encryption/decryption functions and validates their replies."""

    def __init__(self, lambda_client, encryption_function: str, decryption_function: str):
        self.lambda_client = lambda_client
        self.encryption_function = encryption_function
        self.decryption_function = decryption_function

    def _invoke(self, function_name: str, payload: Dict[str, Any], error_cls) -> Dict[str, Any]:
        try:
            response = self.lambda_client.invoke(
                FunctionName=function_name,
                InvocationType='RequestResponse',
                Payload=json.dumps(payload),
            )
            raw = response['Payload'].read()
        except (ClientError, BotoCoreError) as exc:
            logger.error('Crypto function invocation failed', extra={'function_name': function_name, 'error': str(exc)})
            raise error_cls(f'{function_name} invocation failed') from exc

        if response.get('FunctionError'):
            logger.error('Crypto function raised', extra={'function_name': function_name})
            raise error_cls(f'{function_name} returned a function error')

        try:
            result = json.loads(raw)
            body = result.get('body')
            if isinstance(body, str):
                body = json.loads(body)
        except (ValueError, AttributeError) as exc:
            raise error_cls(f'{function_name} returned a malformed payload') from exc

        if not isinstance(result, dict) or result.get('statusCode') != 200 or not isinstance(body, dict):
            logger.error('Crypto function returned failure', extra={
                'function_name': function_name,
                'status_code': result.get('statusCode') if isinstance(result, dict) else None,
            })
            raise error_cls(f'{function_name} returned a non-success status')
        return body

    def _convert(self, kind: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        encrypting = kind == 'encrypt'
        error_cls = EncryptionFailedError if encrypting else DecryptionFailedError
        function_name = self.encryption_function if encrypting else self.decryption_function
        output_key = 'encryptedData' if encrypting else 'decryptedData'

        present = {name: value for name, value in fields.items() if not is_blank(value)}
        result = dict(fields)
        if not present:
            return result

        body = self._invoke(function_name, {'data': present}, error_cls)
        converted = body.get(output_key)
        if not isinstance(converted, dict) or any(name not in converted for name in present):
            raise error_cls(f'{function_name} response is missing {output_key} fields')
        result.update({name: converted[name] for name in present})
        return result

    @tracer.capture_method
    def encrypt_fields(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Encrypt every non-blank value; blank values are returned unchanged."""
        return self._convert('encrypt', fields)

    @tracer.capture_method
    def decrypt_fields(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return self._convert('decrypt', fields)

    def encrypt_text(self, text: str) -> str:
        return self.encrypt_fields({'text': text})['text']

    def decrypt_text(self, text: str) -> str:
        return self.decrypt_fields({'text': text})['text']

