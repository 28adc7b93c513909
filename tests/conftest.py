"""Pytest configuration and fixtures."""

import io

import pytest
from python_multipart import parse_form


PHOTO_BYTES = b"\xff\xd8\xff"


@pytest.fixture
def photo_file(tmp_path):
    """Create the three-byte JPEG stub used by the wire-format scenario."""
    path = tmp_path / "photo.jpg"
    path.write_bytes(PHOTO_BYTES)
    return path


@pytest.fixture
def output_path(tmp_path):
    """Location for the encoded body."""
    return tmp_path / "body.bin"


def _parse_body(body: bytes, boundary: str):
    """
    Decode a multipart body with python-multipart.

    Returns (fields, files) where fields is a list of (name, value) and
    files a list of (field_name, filename, content), all as bytes.
    """
    fields = []
    files = []

    def on_field(field):
        fields.append((field.field_name, field.value))

    def on_file(file):
        file.file_object.seek(0)
        files.append((file.field_name, file.file_name, file.file_object.read()))

    headers = {
        "Content-Type": f"multipart/form-data; boundary={boundary}",
        "Content-Length": str(len(body)),
    }
    parse_form(headers, io.BytesIO(body), on_field, on_file)
    return fields, files


@pytest.fixture
def parse_body():
    """Multipart decoder backed by python-multipart."""
    return _parse_body
