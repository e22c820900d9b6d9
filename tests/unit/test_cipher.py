"""Unit tests for the deterministic field cipher."""

import base64
import hashlib

import pytest

from solchap.crypto.cipher import CipherError, DeterministicCipher, derive_key_material, serialize_value


@pytest.fixture
def field_cipher():
    return DeterministicCipher.from_secrets("unit-key", "unit-iv")


class TestDeriveKeyMaterial:
    def test_key_and_iv_are_hex_prefixes_of_sha512(self):
        key, iv = derive_key_material("secret", "vector")

        assert key == hashlib.sha512(b"secret").hexdigest()[:32].encode("ascii")
        assert iv == hashlib.sha512(b"vector").hexdigest()[:16].encode("ascii")
        assert len(key) == 32
        assert len(iv) == 16

    def test_unsupported_method_is_rejected(self):
        with pytest.raises(CipherError, match="Unsupported encryption method"):
            derive_key_material("secret", "vector", "aes-128-gcm")


class TestDeterministicCipher:
    def test_same_plaintext_gives_same_ciphertext(self, field_cipher):
        """Keys are rebuilt from plaintext ids, so encryption must be repeatable."""
        assert field_cipher.encrypt("c1") == field_cipher.encrypt("c1")
        assert field_cipher.encrypt("c1") != field_cipher.encrypt("c2")

    def test_ciphertext_is_base64(self, field_cipher):
        ciphertext = field_cipher.encrypt("METADATA")
        assert len(base64.b64decode(ciphertext)) % 16 == 0

    def test_round_trip(self, field_cipher):
        assert field_cipher.decrypt(field_cipher.encrypt("Grüße, 世界")) == "Grüße, 世界"

    def test_other_secrets_give_other_ciphertext(self, field_cipher):
        other = DeterministicCipher.from_secrets("another-key", "unit-iv")
        assert other.encrypt("c1") != field_cipher.encrypt("c1")

    def test_non_string_values_are_encrypted_as_json(self, field_cipher):
        ciphertext = field_cipher.encrypt_value({"b": 2, "a": [1, 2]})
        assert field_cipher.decrypt(ciphertext) == '{"a":[1,2],"b":2}'
        assert field_cipher.decrypt(field_cipher.encrypt_value(150)) == "150"

    @pytest.mark.parametrize("blank", [None, ""])
    def test_blank_values_pass_through(self, field_cipher, blank):
        assert field_cipher.encrypt_value(blank) == blank
        assert field_cipher.decrypt_value(blank) == blank

    def test_decrypting_garbage_raises(self, field_cipher):
        with pytest.raises(CipherError):
            field_cipher.decrypt("not base64 at all!")

    def test_decrypting_wrong_key_ciphertext_raises(self, field_cipher):
        other = DeterministicCipher.from_secrets("another-key", "another-iv")
        with pytest.raises(CipherError):
            field_cipher.decrypt(other.encrypt("c1"))

    def test_decrypt_value_requires_a_string(self, field_cipher):
        with pytest.raises(CipherError, match="must be a string"):
            field_cipher.decrypt_value(42)

    def test_field_maps(self, field_cipher):
        sealed = field_cipher.encrypt_fields({"id": "c1", "note": None})

        assert sealed["note"] is None
        assert field_cipher.decrypt_fields(sealed) == {"id": "c1", "note": None}


def test_serialize_value_keeps_strings():
    assert serialize_value("plain") == "plain"
    assert serialize_value(True) == "true"
