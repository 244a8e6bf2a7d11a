"""Chunk buffering and artifact assembly.

The recorder appends one :class:`Chunk` per flush; :func:`assemble` joins the
buffered chunks, in arrival order, into the single :class:`Artifact` that is
uploaded.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from mootcourt.capture.errors import EmptyRecordingError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "video/webm"


@dataclass(frozen=True)
class Chunk:
    """One incremental unit of recorded media."""

    data: bytes
    mime_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Artifact:
    """The final assembled recording."""

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


class ChunkBuffer:
    """Ordered, append-only store of recorded chunks.

    Empty chunks are logged and discarded.
    """

    def __init__(self) -> None:
        self._chunks: list[Chunk] = []

    def append(self, chunk: Chunk) -> bool:
        """Add *chunk*; return False if it was empty and dropped."""
        if chunk.size == 0:
            logger.warning("Received empty data chunk")
            return False
        self._chunks.append(chunk)
        logger.debug(
            "Recorded chunk: %d bytes, type: %s, total chunks: %d",
            chunk.size,
            chunk.mime_type,
            len(self._chunks),
        )
        return True

    @property
    def total_size(self) -> int:
        return sum(chunk.size for chunk in self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks)

    def clear(self) -> None:
        self._chunks.clear()


def assemble(chunks: Iterable[Chunk]) -> Artifact:
    """Concatenate *chunks* into one artifact.

    The artifact adopts the first chunk's mime type, falling back to
    ``video/webm`` when it reports none.

    Raises:
        EmptyRecordingError: If there are no chunks, or they hold no bytes.
    """
    chunk_list = list(chunks)
    if not chunk_list:
        raise EmptyRecordingError("No recording data available")

    mime_type = chunk_list[0].mime_type or DEFAULT_MIME_TYPE
    data = b"".join(chunk.data for chunk in chunk_list)
    if not data:
        raise EmptyRecordingError("Recording produced empty file")

    logger.info("Recording complete: %d bytes, type: %s", len(data), mime_type)
    return Artifact(data=data, mime_type=mime_type)
