"""Unit tests for the client side of the encryption indirection."""

import io
import json
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from solchap.crypto.gateway import CryptoGateway
from solchap.handlers.utils.errors import DecryptionFailedError, EncryptionFailedError
from tests.fakes import DECRYPTION_FUNCTION, ENCRYPTION_FUNCTION, FakeLambdaClient


def _gateway(client) -> CryptoGateway:
    return CryptoGateway(client, ENCRYPTION_FUNCTION, DECRYPTION_FUNCTION)


def _reply(result) -> dict:
    return {"StatusCode": 200, "Payload": io.BytesIO(json.dumps(result).encode())}


class TestCryptoGateway:
    def test_encrypts_fields_in_one_invocation(self, crypto_client, cipher):
        gateway = _gateway(crypto_client)

        sealed = gateway.encrypt_fields({"id": "c1", "title": "Foo"})

        assert sealed == {"id": cipher.encrypt("c1"), "title": cipher.encrypt("Foo")}
        assert len(crypto_client.calls) == 1
        assert crypto_client.calls[0]["function_name"] == ENCRYPTION_FUNCTION

    def test_blank_values_are_not_sent(self, crypto_client):
        gateway = _gateway(crypto_client)

        sealed = gateway.encrypt_fields({"id": "c1", "notes": None, "tag": ""})

        assert sealed["notes"] is None
        assert sealed["tag"] == ""
        assert crypto_client.calls[0]["payload"] == {"data": {"id": "c1"}}

    def test_nothing_to_encrypt_skips_invocation(self, crypto_client):
        assert _gateway(crypto_client).encrypt_fields({"notes": None}) == {"notes": None}
        assert crypto_client.calls == []

    def test_text_round_trip(self, crypto_client):
        gateway = _gateway(crypto_client)
        assert gateway.decrypt_text(gateway.encrypt_text("u1")) == "u1"

    def test_function_error_raises_encryption_failed(self, lambda_context):
        gateway = _gateway(FakeLambdaClient(lambda_context, fail_on=ENCRYPTION_FUNCTION))

        with pytest.raises(EncryptionFailedError):
            gateway.encrypt_fields({"id": "c1"})

    def test_client_error_raises_decryption_failed(self):
        client = Mock()
        client.invoke.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "Invoke"
        )

        with pytest.raises(DecryptionFailedError):
            _gateway(client).decrypt_fields({"id": "abc"})

    def test_non_success_status_raises(self):
        client = Mock()
        client.invoke.return_value = _reply({"statusCode": 500, "body": json.dumps({"message": "Encryption failed"})})

        with pytest.raises(EncryptionFailedError):
            _gateway(client).encrypt_fields({"id": "c1"})

    def test_missing_fields_in_reply_raise(self):
        client = Mock()
        client.invoke.return_value = _reply({"statusCode": 200, "body": json.dumps({"encryptedData": {"id": "x"}})})

        with pytest.raises(EncryptionFailedError, match="missing"):
            _gateway(client).encrypt_fields({"id": "c1", "title": "Foo"})

    def test_malformed_payload_raises(self):
        client = Mock()
        client.invoke.return_value = {"StatusCode": 200, "Payload": io.BytesIO(b"not json")}

        with pytest.raises(DecryptionFailedError, match="malformed"):
            _gateway(client).decrypt_fields({"id": "abc"})
