from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Mapping

from formstream.multipart import DEFAULT_CHUNK_SIZE, write_multipart_body


async def write_multipart_body_async(
    input_file: str | os.PathLike | int,
    output_file: str | os.PathLike,
    field_name: str,
    filename: str | None,
    mime_type: str | None,
    boundary: str,
    additional_parts: Mapping[str, str | bytes]
    | Iterable[tuple[str, str | bytes]]
    | None = None,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Run ``write_multipart_body`` in a worker thread.

    Cancelling the awaiting task does not stop the thread; the write still
    finishes or fails (and cleans up) on its own.
    """
    return await asyncio.to_thread(
        write_multipart_body,
        input_file,
        output_file,
        field_name,
        filename,
        mime_type,
        boundary,
        additional_parts,
        chunk_size=chunk_size,
    )
