# glove_prep/utils/tokenizer.py
from __future__ import annotations
import os
import re
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

# bytes.split() with no separator splits on exactly this set
WHITESPACE = b" \t\n\r\x0b\x0c"
DEFAULT_CHUNK_SIZE = 1 << 20

_TOKEN_RE = re.compile(rb"[^ \t\n\r\x0b\x0c]+")
_SPACE_RE = re.compile(rb"[ \t\n\r\x0b\x0c]")


def simple_tokenizer(text: str) -> list[str]:
    """A simple whitespace tokenizer. No case folding, no punctuation handling."""
    return [t.decode("utf-8", errors="replace") for t in text.encode("utf-8").split()]


def is_space(b: bytes) -> bool:
    return len(b) == 1 and b in WHITESPACE


class CorpusScanner:
    """
    Lazy, restartable token stream over a corpus file.

    Tokens are maximal runs of non-whitespace bytes, decoded as UTF-8, yielded
    in file order. Every iteration reopens the file, so the same scanner can
    feed the counting pass and the co-occurrence pass.

    With `start`/`end` the scanner only yields tokens whose first byte lies in
    [start, end). A token that starts before `end` is read to completion even
    if it runs past `end`.
    """

    def __init__(
        self,
        path: Union[str, Path],
        start: int = 0,
        end: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.path = Path(path)
        self.start = int(start)
        self.end = None if end is None else int(end)
        self.chunk_size = int(chunk_size)

    def __repr__(self) -> str:
        return f"CorpusScanner({str(self.path)!r}, start={self.start}, end={self.end})"

    def __iter__(self) -> Iterator[str]:
        for _, raw in self.iter_spans():
            yield raw.decode("utf-8", errors="replace")

    def iter_spans(self) -> Iterator[Tuple[int, bytes]]:
        """Yield (byte_offset, raw_token) pairs."""
        with open(self.path, "rb") as f:
            pos = self.start
            if pos > 0:
                f.seek(pos - 1)
                # a token already running at `start` belongs to the previous range
                if not is_space(f.read(1)):
                    pos = skip_token(f, pos)
                    if pos is None:
                        return
            f.seek(pos)

            carry = b""
            carry_pos = pos  # file offset of carry[0]
            while True:
                if self.end is not None and pos >= self.end and not carry:
                    return
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                buf, buf_pos = carry + chunk, carry_pos
                pos += len(chunk)

                # hold back the trailing partial token until the next read
                cut = max(buf.rfind(c) for c in (b" ", b"\t", b"\n", b"\r", b"\x0b", b"\x0c")) + 1
                body, carry = buf[:cut], buf[cut:]
                carry_pos = buf_pos + cut

                for m in _TOKEN_RE.finditer(body):
                    offset = buf_pos + m.start()
                    if self.end is not None and offset >= self.end:
                        return
                    yield offset, m.group()
            if carry and (self.end is None or carry_pos < self.end):
                yield carry_pos, carry


def skip_token(f, pos: int) -> Optional[int]:
    """Offset of the first whitespace byte at or after `pos`, None at EOF."""
    f.seek(pos)
    while True:
        chunk = f.read(4096)
        if not chunk:
            return None
        m = _SPACE_RE.search(chunk)
        if m is not None:
            return pos + m.start()
        pos += len(chunk)


def file_size(path: Union[str, Path]) -> int:
    return os.path.getsize(path)
