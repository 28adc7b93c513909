"""Tests for formstream.aio module."""

import asyncio
import threading

import pytest
from formstream import aio
from formstream.aio import write_multipart_body_async
from formstream.errors import InputUnreadableError


class TestWriteMultipartBodyAsync:
    """Tests for the asyncio wrapper."""

    @pytest.mark.asyncio
    async def test_writes_same_body(self, photo_file, output_path):
        """Test the async wrapper produces the same bytes as the sync writer."""
        written = await write_multipart_body_async(
            photo_file, output_path, "avatar", "photo.jpg", "image/jpeg", "BOUND123", {"user": "alice"}
        )
        body = output_path.read_bytes()
        assert written == len(body)
        assert body.startswith(b'--BOUND123\r\nContent-Disposition: form-data; name="user"')
        assert body.endswith(b"\xff\xd8\xff\r\n--BOUND123--\r\n")

    @pytest.mark.asyncio
    async def test_runs_off_event_loop_thread(self, mocker, photo_file, output_path):
        """Test the blocking writer runs in a worker thread."""
        loop_thread = threading.get_ident()
        seen = {}

        def fake_write(*args, **kwargs):
            seen["thread"] = threading.get_ident()
            seen["kwargs"] = kwargs
            return 42

        mocker.patch.object(aio, "write_multipart_body", side_effect=fake_write)
        result = await write_multipart_body_async(
            photo_file, output_path, "f", "photo.jpg", "image/jpeg", "B", chunk_size=128
        )
        assert result == 42
        assert seen["thread"] != loop_thread
        assert seen["kwargs"] == {"chunk_size": 128}

    @pytest.mark.asyncio
    async def test_errors_propagate(self, tmp_path, output_path):
        """Test typed errors reach the awaiting caller."""
        with pytest.raises(InputUnreadableError):
            await write_multipart_body_async(
                tmp_path / "missing", output_path, "f", "missing", "text/plain", "B"
            )
        assert not output_path.exists()

    @pytest.mark.asyncio
    async def test_concurrent_uploads(self, tmp_path):
        """Test independent bodies can be written concurrently."""
        sources = []
        for i in range(4):
            src = tmp_path / f"in{i}.bin"
            src.write_bytes(bytes([i]) * 10_000)
            sources.append(src)
        results = await asyncio.gather(*[
            write_multipart_body_async(src, tmp_path / f"out{i}.bin", "f", src.name, None, f"B{i}")
            for i, src in enumerate(sources)
        ])
        for i, written in enumerate(results):
            body = (tmp_path / f"out{i}.bin").read_bytes()
            assert len(body) == written
            assert bytes([i]) * 10_000 in body
            assert body.endswith(f"--B{i}--\r\n".encode())
