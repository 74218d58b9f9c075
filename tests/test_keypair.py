"""Tests for keypair file loading."""

from pathlib import Path

import pytest
from helpers import write_keypair
from solders.keypair import Keypair

from scilla.errors import KeypairError
from scilla.keypair import MAX_KEYPAIR_FILE_SIZE, read_keypair_from_path


class TestReadKeypair:
    """Tests for read_keypair_from_path."""

    def test_reads_cli_format(self, tmp_path: Path):
        """Should load a keypair written as a JSON byte array."""
        keypair = Keypair()
        path = write_keypair(keypair, tmp_path / "id.json")
        assert read_keypair_from_path(path).pubkey() == keypair.pubkey()

    def test_expands_home(self, tmp_path: Path, monkeypatch):
        """Should expand a leading '~/'."""
        monkeypatch.setenv("HOME", str(tmp_path))
        keypair = Keypair()
        write_keypair(keypair, tmp_path / ".config" / "solana" / "id.json")
        assert read_keypair_from_path("~/.config/solana/id.json").pubkey() == keypair.pubkey()

    def test_missing_file(self, tmp_path: Path):
        """Should name the path of a missing file."""
        path = tmp_path / "missing.json"
        with pytest.raises(KeypairError, match="missing.json") as exc:
            read_keypair_from_path(path)
        assert exc.value.path == path

    @pytest.mark.parametrize(
        "content",
        [b"\xff\xfe\x00garbage", b"\x80\x81\x82", "[1, 2, 3]".encode("utf-16")],
    )
    def test_binary_file(self, tmp_path: Path, content):
        """Should report a file that is not UTF-8 text as a keypair error."""
        path = tmp_path / "id.json"
        path.write_bytes(content)
        with pytest.raises(KeypairError, match="not a UTF-8 JSON keypair file"):
            read_keypair_from_path(path)

    def test_invalid_json(self, tmp_path: Path):
        """Should reject text that is not JSON."""
        path = tmp_path / "id.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(KeypairError, match="invalid JSON"):
            read_keypair_from_path(path)

    @pytest.mark.parametrize("content", ["[]", "[1, 2, 3]", '{"secret": 1}', str(list(range(65)))])
    def test_wrong_shape(self, tmp_path: Path, content):
        """Should require exactly 64 bytes."""
        path = tmp_path / "id.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(KeypairError, match="64 bytes"):
            read_keypair_from_path(path)

    def test_out_of_range_byte(self, tmp_path: Path):
        """Should reject values outside 0..255."""
        path = tmp_path / "id.json"
        path.write_text(str([256] * 64), encoding="utf-8")
        with pytest.raises(KeypairError, match="0..255"):
            read_keypair_from_path(path)

    def test_oversized_file(self, tmp_path: Path):
        """Should refuse to read a file far larger than a keypair."""
        path = tmp_path / "id.json"
        path.write_text(" " * (MAX_KEYPAIR_FILE_SIZE + 1), encoding="utf-8")
        with pytest.raises(KeypairError, match="too large"):
            read_keypair_from_path(path)
