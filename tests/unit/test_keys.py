"""Unit tests for storage key generation."""

import re
from unittest.mock import patch

import pytest

from src.core.media.errors import InternalUploadError
from src.core.media.keys import generate_key
from src.core.media.models import KeyEncoding

BASE64URL_TOKEN = re.compile(r"^[A-Za-z0-9_-]{43}$")  # 32 bytes, unpadded
HEX_TOKEN = re.compile(r"^[0-9a-f]{64}$")


class TestGenerateKey:

    def test_base64url_token_uses_url_safe_alphabet(self):
        key = generate_key("png", KeyEncoding.BASE64URL)

        assert BASE64URL_TOKEN.match(key.token)
        assert "=" not in key.token

    def test_hex_token_is_64_lowercase_hex_digits(self):
        key = generate_key("mp4", KeyEncoding.HEX)
        assert HEX_TOKEN.match(key.token)

    def test_name_appends_suffix(self):
        key = generate_key("jpg")

        assert key.name == f"{key.token}.jpg"
        assert str(key) == key.name

    @pytest.mark.parametrize("encoding", list(KeyEncoding))
    def test_many_keys_are_distinct(self, encoding):
        """10k draws from a 256-bit space should never collide."""
        tokens = {generate_key("png", encoding).token for _ in range(10_000)}
        assert len(tokens) == 10_000

    def test_entropy_failure_is_internal_error(self):
        with patch("src.core.media.keys.secrets.token_bytes", side_effect=OSError("no entropy")):
            with pytest.raises(InternalUploadError):
                generate_key("png")
