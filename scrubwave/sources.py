"""Open an audio source (URL, local path or file object) as a chunk stream."""

import logging
import os
from urllib.parse import unquote, urlparse

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)


class AudioStream:
    """
    Forward-only byte stream over an audio source, consumed exactly once.

    Iterating yields chunks; read failures surface as FetchError. close() is
    safe to call from another thread to unblock a pending read.
    """

    def __init__(self, chunks, closer, name: str):
        self._chunks = chunks
        self._closer = closer
        self.name = name
        self.closed = False
        self.bytes_read = 0

    def __iter__(self):
        for chunk in self._chunks:
            if chunk:
                self.bytes_read += len(chunk)
                yield chunk

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            self._closer()
        except OSError as exc:
            logger.debug("Error closing %s: %s", self.name, exc)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def _http_chunks(response, chunk_size: int):
    try:
        yield from response.iter_content(chunk_size=chunk_size)
    except requests.RequestException as exc:
        raise FetchError(f"Stream error: {exc}") from exc
    except (AttributeError, ValueError, OSError) as exc:
        # raised by urllib3 when the response is closed under a pending read
        raise FetchError(f"Stream closed: {exc}") from exc


def _file_chunks(fh, chunk_size: int, name: str):
    try:
        while True:
            chunk = fh.read(chunk_size)
            if not chunk:
                break
            yield chunk
    except (OSError, ValueError) as exc:
        raise FetchError(f"Failed to read {name}: {exc}") from exc


def open_http(url: str, chunk_size: int = 64 * 1024, timeout: float = 30.0) -> AudioStream:
    """GET `url` as a stream. Anything but HTTP 200 is a FetchError."""
    logger.info("Fetching audio from %s", url)
    try:
        response = requests.get(url, stream=True, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch URL: {exc}") from exc
    if response.status_code != 200:
        response.close()
        raise FetchError(
            f"Failed to fetch URL: HTTP {response.status_code}",
            status_code=response.status_code,
        )
    return AudioStream(_http_chunks(response, chunk_size), response.close, url)


def open_path(path: str, chunk_size: int = 64 * 1024) -> AudioStream:
    try:
        fh = open(path, "rb")
    except OSError as exc:
        raise FetchError(f"Input file not found or unreadable: {path} ({exc.strerror})") from exc
    return AudioStream(_file_chunks(fh, chunk_size, path), fh.close, path)


def open_source(source, chunk_size: int = 64 * 1024, timeout: float = 30.0) -> AudioStream:
    """Open a URL, a local path, a file:// URL or a binary file object."""
    if isinstance(source, AudioStream):
        return source
    if hasattr(source, "read"):
        name = getattr(source, "name", "<stream>")
        return AudioStream(_file_chunks(source, chunk_size, str(name)), source.close, str(name))
    source = os.fspath(source)
    scheme = urlparse(source).scheme.lower()
    if scheme in ("http", "https"):
        return open_http(source, chunk_size, timeout)
    if scheme == "file":
        return open_path(unquote(urlparse(source).path), chunk_size)
    return open_path(source, chunk_size)
