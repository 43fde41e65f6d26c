# ABOUTME: Streaming multipart/form-data upload for pre-signed upload URLs
# ABOUTME: Spools the encoded body to a temp file so Content-Length is known, then streams it with progress

"""Multipart upload of a single file with read progress reporting."""

import os
import shutil
import tempfile
import threading
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO

import requests
from urllib3.filepost import choose_boundary

from stackshell.config import debug_print
from stackshell.errors import Cancelled, UploadTransportFailure
from stackshell.validators import UploadParams

CHUNK_SIZE = 64 * 1024
FIELD_NAME = "file"

# Large files over slow links can take hours; the connect phase should still fail fast
CONNECT_TIMEOUT = 30
READ_TIMEOUT = 24 * 60 * 60

SUCCESS_STATUSES = (200, 201)


@dataclass
class SpooledBody:
    """An encoded multipart body sitting in a temporary file."""

    stream: BinaryIO
    length: int
    content_type: str


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


@contextmanager
def spool_multipart(path: str, field_name: str = FIELD_NAME):
    """Encode ``path`` as a one-part multipart body into a temporary file.

    The whole body is written before anything is sent so its exact size can be
    declared; the source file is copied in chunks and never held in memory.
    Yields a SpooledBody positioned at the start of the stream.
    """
    boundary = choose_boundary()
    filename = os.path.basename(path)

    with tempfile.TemporaryFile() as spool:
        spool.write(f"--{boundary}\r\n".encode())
        spool.write(
            f'Content-Disposition: form-data; name="{_quote(field_name)}"; filename="{_quote(filename)}"\r\n'.encode()
        )
        spool.write(b"Content-Type: application/octet-stream\r\n\r\n")
        with open(path, "rb") as source:
            shutil.copyfileobj(source, spool, CHUNK_SIZE)
        spool.write(f"\r\n--{boundary}--\r\n".encode())

        length = spool.tell()
        spool.seek(0)
        debug_print(f"Spooled {filename} into {length} byte multipart body")
        yield SpooledBody(stream=spool, length=length, content_type=f"multipart/form-data; boundary={boundary}")


class ProgressReader:
    """File-like wrapper that reports percentage consumed on every read."""

    def __init__(
        self,
        stream: BinaryIO,
        total: int,
        on_progress: Callable[[int], None] | None = None,
        cancel: threading.Event | None = None,
    ):
        self._stream = stream
        self.total = total
        self.bytes_read = 0
        self.percent = 0
        self._on_progress = on_progress
        self._cancel = cancel

    def __len__(self) -> int:
        return self.total

    def read(self, size: int = -1) -> bytes:
        if self._cancel is not None and self._cancel.is_set():
            raise Cancelled()

        data = self._stream.read(size)
        if data:
            self.bytes_read += len(data)
            self.percent = self.bytes_read * 100 // self.total if self.total else 100
            if self._on_progress is not None:
                self._on_progress(self.percent)
        return data


def upload_file(
    post_url: str,
    path: str,
    params: UploadParams,
    on_progress: Callable[[int], None] | None = None,
    cancel: threading.Event | None = None,
) -> requests.Response:
    """POST one file to a pre-signed upload URL.

    Raises:
        UploadTransportFailure: If the endpoint answers with anything but 200/201.
        Cancelled: If ``cancel`` is set while the body is being sent.
        requests.RequestException: On transport errors, unchanged.
    """
    with spool_multipart(path) as body:
        reader = ProgressReader(body.stream, body.length, on_progress, cancel)
        headers = {
            "Content-Type": body.content_type,
            "Content-Length": str(body.length),
            "x-signature": params.signature,
            "x-expires": params.expires,
            "x-metadata": params.metadata,
        }
        debug_print("POST", post_url, "file:", path, "bytes:", body.length)
        response = requests.post(post_url, data=reader, headers=headers, timeout=(CONNECT_TIMEOUT, READ_TIMEOUT))

    if response.status_code not in SUCCESS_STATUSES:
        raise UploadTransportFailure(response.status_code, response.text)
    return response
