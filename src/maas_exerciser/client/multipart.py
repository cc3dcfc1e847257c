"""
multipart/form-data bodies.

Two shapes are supported:
a buffered body, built in memory from bytes
a streamed body, which yields the file part from a reader and declares its
total length up front so the request can carry Content-Length

Plain fields are sent before the file part.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator

from maas_exerciser.core.errors import ValidationError

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class MultipartBody:
    """
    Encoded body.

    chunks yields exactly length bytes in total.
    """

    content_type: str
    length: int
    chunks: Iterable[bytes]


def _boundary() -> str:
    return uuid.uuid4().hex


def _field_part(boundary: str, name: str, value: str) -> bytes:
    return (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{name}"\r\n'
        "\r\n"
        f"{value}\r\n"
    ).encode("utf-8")


def _file_header(boundary: str, name: str, filename: str) -> bytes:
    return (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n"
        "\r\n"
    ).encode("utf-8")


def _envelope(
    boundary: str,
    fields: dict[str, str],
    file_field: str,
    filename: str,
) -> tuple[bytes, bytes]:
    head = b"".join(_field_part(boundary, k, v) for k, v in fields.items())
    head += _file_header(boundary, file_field, filename)
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head, tail


def buffered_body(
    fields: dict[str, str],
    file_field: str,
    filename: str,
    content: bytes,
    boundary: str | None = None,
) -> MultipartBody:
    b = boundary or _boundary()
    head, tail = _envelope(b, fields, file_field, filename)
    data = head + content + tail
    return MultipartBody(
        content_type=f"multipart/form-data; boundary={b}",
        length=len(data),
        chunks=[data],
    )


def _stream(head: bytes, reader: BinaryIO, length: int, tail: bytes) -> Iterator[bytes]:
    yield head
    remaining = length
    while remaining > 0:
        chunk = reader.read(min(CHUNK_SIZE, remaining))
        if not chunk:
            raise ValidationError(f"reader ended {remaining} bytes short of declared length {length}")
        remaining -= len(chunk)
        yield chunk
    yield tail


def streamed_body(
    fields: dict[str, str],
    file_field: str,
    filename: str,
    reader: BinaryIO,
    length: int,
    boundary: str | None = None,
) -> MultipartBody:
    """
    Build a body that reads the file part lazily.

    Exactly length bytes are taken from reader. A reader that runs dry early
    raises ValidationError while the body is being sent.
    """
    b = boundary or _boundary()
    head, tail = _envelope(b, fields, file_field, filename)
    return MultipartBody(
        content_type=f"multipart/form-data; boundary={b}",
        length=len(head) + length + len(tail),
        chunks=_stream(head, reader, length, tail),
    )
