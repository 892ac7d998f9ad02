"""Blocking HTTP transport for AISHub requests.

AISHub can compress the response body (``compress`` request parameter);
compressed payloads are unpacked here so the decoder always sees text.
Plain-text answers such as the rate-limit message are passed through even
when compression was requested.
"""
from __future__ import annotations

import bz2
import gzip
import io
import logging
import zipfile
import zlib

import httpx

from aishub_collector.errors import TransportError

logger = logging.getLogger(__name__)

COMPRESSION_NONE = 0
COMPRESSION_ZIP = 1
COMPRESSION_GZIP = 2
COMPRESSION_BZIP2 = 3

_MAGIC: dict[int, bytes] = {
    COMPRESSION_ZIP: b"PK",
    COMPRESSION_GZIP: b"\x1f\x8b",
    COMPRESSION_BZIP2: b"BZh",
}


def _decompress(content: bytes, compression: int) -> bytes:
    if compression == COMPRESSION_ZIP:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            names = zf.namelist()
            if not names:
                raise TransportError("ZIP response contains no files")
            return zf.read(names[0])
    if compression == COMPRESSION_GZIP:
        return gzip.decompress(content)
    if compression == COMPRESSION_BZIP2:
        return bz2.decompress(content)
    raise TransportError(f"Unsupported compression setting: {compression}")


def fetch_body(url: str, compression: int = COMPRESSION_NONE, timeout: float | None = None) -> str:
    """GET *url* and return the response body as text.

    Raises:
        TransportError: network failure, HTTP error status, or a body that
            cannot be decompressed/decoded.
    """
    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            resp = client.get(url)
            resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise TransportError(f"AISHub request failed: HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"Error making request to AISHub API: {exc}") from exc

    if compression == COMPRESSION_NONE:
        return resp.text

    content = resp.content
    magic = _MAGIC.get(compression)
    if magic is not None and not content.startswith(magic):
        logger.debug("Compressed response requested but body is plain text")
        return resp.text

    try:
        return _decompress(content, compression).decode("utf-8")
    except (OSError, EOFError, ValueError, zipfile.BadZipFile, zlib.error) as exc:
        raise TransportError(f"Error reading compressed response: {exc}") from exc
