"""Download packaging: single-image payloads and streamed ZIP archives."""

import base64
import binascii
import io
import unicodedata
import zipfile
from typing import BinaryIO, Dict, Iterable, Iterator, List, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from .exceptions import PackagingError
from .logging_config import get_logger
from .models import ProcessedImage

DEFAULT_DOWNLOAD_NAME = "image.jpg"
ARCHIVE_NAME = "compressed-images.zip"
ARCHIVE_COMPRESSION_LEVEL = 9
JPEG_EXTENSIONS = (".jpg", ".jpeg", ".jpe")


class DownloadPayload(BaseModel):
    """Bytes plus the response metadata needed to serve them."""

    model_config = ConfigDict(frozen=True)

    body: bytes
    filename: str
    content_type: str
    content_disposition: str

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Disposition": self.content_disposition,
        }


class ArchiveEntry(BaseModel):
    """One file to place in an archive; ``data`` may be raw bytes or base64 text."""

    name: str
    data: Union[bytes, str]

    @classmethod
    def from_processed(cls, image: ProcessedImage) -> "ArchiveEntry":
        return cls(name=image.optimized_name, data=image.encoded_data)

    def payload(self) -> bytes:
        """
        Return the entry bytes.

        Raises:
            ValueError: If the name is empty or ``data`` is not valid base64
        """
        if not self.name:
            raise ValueError("archive entry has no name")
        if isinstance(self.data, bytes):
            return self.data
        try:
            return base64.b64decode(self.data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"entry data is not valid base64: {e}") from e


def content_type_for(filename: str) -> str:
    """``image/jpeg`` for JPEG-family names, ``image/png`` otherwise."""
    return "image/jpeg" if filename.lower().endswith(JPEG_EXTENSIONS) else "image/png"


def ascii_fallback_name(filename: str) -> str:
    """Best-effort ASCII rendition of a filename for the plain ``filename=`` parameter."""
    ascii_name = (
        unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    )
    ascii_name = "".join(
        "_" if ch in '"\\' or not ch.isprintable() else ch for ch in ascii_name
    )
    return ascii_name or DEFAULT_DOWNLOAD_NAME


def content_disposition(filename: str) -> str:
    """Attachment disposition carrying both RFC 5987 and quoted ASCII names."""
    encoded = quote(filename, safe="!*()")
    return (
        f"attachment; filename*=UTF-8''{encoded}; "
        f'filename="{ascii_fallback_name(filename)}"'
    )


def prepare_download(data: bytes, filename: Optional[str] = None) -> DownloadPayload:
    """
    Prepare a single processed image for download.

    Args:
        data: Encoded image bytes
        filename: Optimized name of the image (defaults to ``image.jpg``)

    Returns:
        DownloadPayload with body, content type and content disposition
    """
    name = filename or DEFAULT_DOWNLOAD_NAME
    return DownloadPayload(
        body=data,
        filename=name,
        content_type=content_type_for(name),
        content_disposition=content_disposition(name),
    )


def archive_headers(filename: str = ARCHIVE_NAME) -> Dict[str, str]:
    """Response headers for a batch download."""
    return {
        "Content-Type": "application/zip",
        "Content-Disposition": f'attachment; filename="{filename}"',
    }


class _ChunkSink(io.RawIOBase):
    """Write-only, non-seekable sink that hands written bytes back in chunks."""

    def __init__(self):
        super().__init__()
        self._buffer = bytearray()

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._buffer.extend(data)
        return len(data)

    def drain(self) -> bytes:
        chunk = bytes(self._buffer)
        self._buffer.clear()
        return chunk


class ArchiveStream:
    """
    A ZIP archive produced incrementally while it is iterated.

    Entries are written in the order supplied using deflate at level 9.
    An entry that cannot be read or written is logged and skipped. If the
    archive cannot be created before the first chunk is handed out,
    iteration raises PackagingError; ``started`` tells callers whether any
    bytes have left the stream yet. Items that are not ArchiveEntry raise
    PackagingError.
    """

    def __init__(
        self,
        entries: Iterable[ArchiveEntry],
        compression_level: int = ARCHIVE_COMPRESSION_LEVEL,
    ):
        self._entries = entries
        self._compression_level = compression_level
        self._logger = get_logger("packager")
        self.started = False
        self.skipped: List[str] = []
        self.written: List[str] = []

    def _emit(self, sink: _ChunkSink) -> Iterator[bytes]:
        chunk = sink.drain()
        if chunk:
            self.started = True
            yield chunk

    def __iter__(self) -> Iterator[bytes]:
        sink = _ChunkSink()
        try:
            archive = zipfile.ZipFile(
                sink,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self._compression_level,
            )
        except Exception as e:
            self._logger.error(f"Failed to create ZIP archive: {e}", exc_info=True)
            if not self.started:
                raise PackagingError(f"Failed to create ZIP file: {e}") from e
            return

        with archive:
            for entry in self._entries:
                if not isinstance(entry, ArchiveEntry):
                    raise PackagingError(
                        f"Archive entries must be ArchiveEntry, got {type(entry).__name__}"
                    )
                name = entry.name or "<unnamed>"
                try:
                    archive.writestr(entry.name, entry.payload())
                except Exception as e:  # noqa: BLE001
                    self._logger.error(f"Error adding image {name}: {e}")
                    self.skipped.append(name)
                    continue
                self.written.append(entry.name)
                yield from self._emit(sink)

        # closing the archive writes the central directory
        yield from self._emit(sink)
        self._logger.info(
            f"Archive finalized with {len(self.written)} entries, {len(self.skipped)} skipped"
        )


def write_archive(entries: Iterable[ArchiveEntry], fileobj: BinaryIO) -> ArchiveStream:
    """Stream an archive into ``fileobj`` and return the finished stream."""
    stream = ArchiveStream(entries)
    for chunk in stream:
        fileobj.write(chunk)
    return stream


def build_archive(entries: Iterable[ArchiveEntry]) -> bytes:
    """Build a complete archive in memory."""
    buffer = io.BytesIO()
    write_archive(entries, buffer)
    return buffer.getvalue()


def archive_processed_images(images: Iterable[ProcessedImage]) -> ArchiveStream:
    """Archive stream over a batch's processed images, in batch order."""
    return ArchiveStream(ArchiveEntry.from_processed(image) for image in images)
