from formstream.boundary import generate_boundary, is_valid_boundary, check_boundary
from formstream.multipart import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MIME_TYPE,
    write_multipart_body,
    multipart_body_length,
    multipart_content_type,
    guess_mime_type,
)
from formstream.aio import write_multipart_body_async
from formstream.errors import (
    FormStreamError,
    MultipartWriteError,
    InputUnreadableError,
    OutputUnwritableError,
    CopyFailedError,
)

__all__ = [
    "generate_boundary",
    "is_valid_boundary",
    "check_boundary",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_MIME_TYPE",
    "write_multipart_body",
    "write_multipart_body_async",
    "multipart_body_length",
    "multipart_content_type",
    "guess_mime_type",
    "FormStreamError",
    "MultipartWriteError",
    "InputUnreadableError",
    "OutputUnwritableError",
    "CopyFailedError",
]
