from __future__ import annotations

import logging
import mimetypes
import os
import stat
from collections.abc import Iterable, Mapping

from formstream.boundary import check_boundary
from formstream.errors import (
    CopyFailedError,
    InputUnreadableError,
    MultipartWriteError,
    OutputUnwritableError,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"

# Characters that force a quoted boundary parameter in the Content-Type header.
_TSPECIALS = frozenset('()<>@,;:\\"/[]?= ')


def _encode_value(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _disposition_param(value: str, what: str) -> str:
    # Quotes are percent-encoded as browsers do; line breaks would end the header.
    if "\r" in value or "\n" in value or "\0" in value:
        raise ValueError(f"{what} must not contain CR, LF or NUL: {value!r}")
    return value.replace('"', "%22")


def encode_field_part(boundary: str, name: str, value: str | bytes) -> bytes:
    """Frame one text field, including its leading delimiter and trailing CRLF."""
    name = _disposition_param(name, "field name")
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
    ).encode()
    return head + _encode_value(value) + b"\r\n"


def encode_file_part_header(
    boundary: str, name: str, filename: str, mime_type: str
) -> bytes:
    name = _disposition_param(name, "field name")
    filename = _disposition_param(filename, "filename")
    return (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode()


def encode_closing_delimiter(boundary: str) -> bytes:
    return f"--{boundary}--\r\n".encode("ascii")


def multipart_content_type(boundary: str) -> str:
    """Content-Type header value announcing ``boundary``."""
    check_boundary(boundary)
    if _TSPECIALS.intersection(boundary):
        return f'multipart/form-data; boundary="{boundary}"'
    return f"multipart/form-data; boundary={boundary}"


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename, strict=False)
    return mime_type or DEFAULT_MIME_TYPE


def _ordered_fields(
    additional_parts: Mapping[str, str | bytes]
    | Iterable[tuple[str, str | bytes]]
    | None,
) -> list[tuple[str, str | bytes]]:
    # Mappings are emitted sorted by key so the body is reproducible;
    # sequences of pairs keep the caller's order.
    if not additional_parts:
        return []
    if isinstance(additional_parts, Mapping):
        return sorted(additional_parts.items(), key=lambda item: item[0])
    return [(name, value) for name, value in additional_parts]


def _encode_framing(
    input_file: str | os.PathLike | int,
    field_name: str,
    filename: str | None,
    mime_type: str | None,
    boundary: str,
    additional_parts,
) -> tuple[bytes, bytes, bytes]:
    check_boundary(boundary)
    if not field_name:
        raise ValueError("field_name must be a non-empty string")
    if not filename:
        if isinstance(input_file, int):
            raise ValueError("filename is required when input_file is a file descriptor")
        filename = os.fsdecode(os.path.basename(os.fspath(input_file)))
    if not mime_type:
        mime_type = guess_mime_type(filename)

    head = b"".join(
        encode_field_part(boundary, name, value)
        for name, value in _ordered_fields(additional_parts)
    )
    file_header = encode_file_part_header(boundary, field_name, filename, mime_type)
    tail = b"\r\n" + encode_closing_delimiter(boundary)
    return head, file_header, tail


def _open_input(input_file: str | os.PathLike | int):
    # Descriptors belong to the caller and stay open.
    return open(input_file, "rb", closefd=not isinstance(input_file, int))


def _open_output(output_file: str | os.PathLike):
    return open(output_file, "wb")


def _emit(out, data: bytes, output_file) -> int:
    try:
        out.write(data)
    except OSError as exc:
        raise OutputUnwritableError(output_file, exc) from exc
    return len(data)


def _copy_stream(src, dst, chunk_size: int, input_file, output_file) -> int:
    buf = bytearray(chunk_size)
    view = memoryview(buf)
    copied = 0
    while True:
        try:
            n = src.readinto(buf)
        except OSError as exc:
            raise CopyFailedError(input_file, exc) from exc
        if not n:
            break
        try:
            dst.write(view[:n])
        except OSError as exc:
            raise CopyFailedError(output_file, exc) from exc
        copied += n
    return copied


def _close_quietly(fh) -> None:
    try:
        fh.close()
    except OSError as exc:
        logger.debug("Error closing %r after failure: %s", fh, exc)


def _discard_output(target: str) -> None:
    # Only regular files are removed; devices and FIFOs are left in place.
    try:
        st = os.lstat(target)
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not remove partial multipart body %s: %s", target, exc)
        return
    if not stat.S_ISREG(st.st_mode):
        logger.debug("Not removing non-regular output %s", target)
        return
    try:
        os.unlink(target)
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not remove partial multipart body %s: %s", target, exc)


def _same_file(input_file, target: str) -> bool:
    try:
        out_st = os.stat(target)
        if isinstance(input_file, int):
            in_st = os.fstat(input_file)
        else:
            in_st = os.stat(input_file)
    except OSError:
        return False
    return os.path.samestat(in_st, out_st)


def _write_body(
    input_file,
    output_file,
    target: str,
    head: bytes,
    file_header: bytes,
    tail: bytes,
    chunk_size: int,
) -> int:
    try:
        out = _open_output(target)
    except OSError as exc:
        raise OutputUnwritableError(output_file, exc) from exc

    try:
        written = _emit(out, head, output_file)
        try:
            src = _open_input(input_file)
        except OSError as exc:
            raise InputUnreadableError(input_file, exc) from exc
        with src:
            written += _emit(out, file_header, output_file)
            written += _copy_stream(src, out, chunk_size, input_file, output_file)
        written += _emit(out, tail, output_file)
        try:
            out.close()
        except OSError as exc:
            raise OutputUnwritableError(output_file, exc) from exc
    except BaseException:
        _close_quietly(out)
        _discard_output(target)
        raise
    return written


def write_multipart_body(
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
    Stream a multipart/form-data body wrapping ``input_file`` into ``output_file``.

    Additional text fields come first, then the file part, then the closing
    delimiter. The input is copied through a single ``chunk_size`` buffer and
    is never read whole. An existing output file is overwritten.

    Args:
        input_file: Path of the file to embed, or an open descriptor.
        output_file: Path the body is written to.
        field_name: Form field name of the file part.
        filename: Filename announced for the file part (defaults to the
            input's base name).
        mime_type: Content-Type of the file part, written verbatim (guessed
            from ``filename`` when empty).
        boundary: Delimiter, e.g. from ``generate_boundary()``.
        additional_parts: Text fields. Mappings are written sorted by key,
            sequences of ``(name, value)`` pairs in the given order.
        chunk_size: Copy buffer size in bytes.

    Returns:
        Number of bytes written, suitable as Content-Length.

    Raises:
        InputUnreadableError: input could not be opened.
        OutputUnwritableError: output could not be created, written or closed.
        CopyFailedError: I/O failed while streaming the file bytes.
        ValueError: invalid boundary, field name, filename or chunk size.

    On any error the partially written output file is removed.
    """
    if isinstance(output_file, int):
        raise TypeError("output_file must be a filesystem path")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer")
    head, file_header, tail = _encode_framing(
        input_file, field_name, filename, mime_type, boundary, additional_parts
    )
    # Symlinks are resolved so cleanup removes the file that was truncated.
    target = os.path.realpath(output_file)
    if _same_file(input_file, target):
        raise ValueError(f"input_file and output_file refer to the same file: {target}")

    logger.debug("Writing multipart body for %s to %s", input_file, target)
    try:
        written = _write_body(
            input_file, output_file, target, head, file_header, tail, chunk_size
        )
    except MultipartWriteError as exc:
        logger.warning("Multipart body not written (%s): %s", type(exc).__name__, exc)
        raise
    logger.debug("Wrote %d byte multipart body to %s", written, output_file)
    return written


def multipart_body_length(
    input_file: str | os.PathLike | int,
    field_name: str,
    filename: str | None,
    mime_type: str | None,
    boundary: str,
    additional_parts: Mapping[str, str | bytes]
    | Iterable[tuple[str, str | bytes]]
    | None = None,
) -> int:
    """Size in bytes of the body ``write_multipart_body`` would produce."""
    head, file_header, tail = _encode_framing(
        input_file, field_name, filename, mime_type, boundary, additional_parts
    )
    try:
        if isinstance(input_file, int):
            # The writer streams from the descriptor's current offset.
            size = max(os.fstat(input_file).st_size - os.lseek(input_file, 0, os.SEEK_CUR), 0)
        else:
            size = os.stat(input_file).st_size
    except OSError as exc:
        raise InputUnreadableError(input_file, exc) from exc
    return len(head) + len(file_header) + size + len(tail)
