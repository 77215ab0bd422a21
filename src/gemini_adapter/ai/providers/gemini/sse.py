"""Line-at-a-time reader over an async byte stream.

Used on the body of a ``streamGenerateContent?alt=sse`` response.  The reader
knows nothing about SSE fields or JSON; it only splits on ``\\n``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

DATA_PREFIX = "data:"


class LineReader:
    """Return logical lines from an async iterable of byte chunks.

    Chunk boundaries may fall anywhere, including inside a multi-byte UTF-8
    sequence: bytes are only decoded once a whole line is buffered.
    """

    def __init__(self, chunks: AsyncIterable[bytes]) -> None:
        self._chunks: AsyncIterator[bytes] = chunks.__aiter__()
        self._buffer = bytearray()
        self._exhausted = False

    async def readline(self) -> str:
        """Return the next line.

        The line keeps its trailing ``"\\n"``.  When the stream ends mid-line
        the remaining bytes are returned without one.  ``""`` means the
        stream is exhausted.
        """
        while True:
            newline = self._buffer.find(b"\n")
            if newline != -1:
                line = bytes(self._buffer[: newline + 1])
                del self._buffer[: newline + 1]
                return line.decode("utf-8", errors="replace")

            if self._exhausted:
                line = bytes(self._buffer)
                self._buffer.clear()
                return line.decode("utf-8", errors="replace")

            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                continue
            self._buffer.extend(chunk)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._lines()

    async def _lines(self) -> AsyncIterator[str]:
        while line := await self.readline():
            yield line


def data_payload(line: str) -> str | None:
    """Return the trimmed payload of a ``data:`` line, ``None`` for any other line."""
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].strip()
