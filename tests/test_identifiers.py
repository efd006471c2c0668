import re

import pytest

from todo_cli import identifiers
from todo_cli.errors import RandomSourceError
from todo_cli.identifiers import ID_BYTES, generate_id


class TestGenerateId:
    def test_shape_is_twelve_lowercase_hex_chars(self):
        value = generate_id()
        assert len(value) == ID_BYTES * 2 == 12
        assert re.fullmatch(r"[0-9a-f]{12}", value)

    def test_ids_differ(self):
        values = {generate_id() for _ in range(200)}
        assert len(values) == 200

    def test_uses_secure_random_bytes(self, monkeypatch):
        monkeypatch.setattr(identifiers.secrets, "token_bytes", lambda n: bytes(range(n)))
        assert generate_id() == "000102030405"

    @pytest.mark.parametrize("exc", [OSError("no entropy"), NotImplementedError()])
    def test_missing_entropy_raises_random_source_error(self, monkeypatch, exc):
        def broken(n):
            raise exc

        monkeypatch.setattr(identifiers.secrets, "token_bytes", broken)
        with pytest.raises(RandomSourceError):
            generate_id()
