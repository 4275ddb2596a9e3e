# glove_prep/glove/shards.py
"""
Byte-range sharding of a corpus for parallel co-occurrence counting.

Each shard owns the tokens that start inside its byte range. To give the
owned tokens at both edges their full context, a shard also reads the W
in-vocabulary ids just before its range and the W just after it, runs the
window over the concatenation and keeps only contexts centered on owned
tokens. Summing the shard matrices then gives the single-pass matrix.

The vocabulary mapping is built once, before any shard runs, and handed to
worker processes read-only through the pool initializer.
"""
from __future__ import annotations
import os
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Union

from tqdm import tqdm

from glove_prep.glove.context_window import ContextWindow
from glove_prep.glove.cooccurrence import CooccurrenceMatrix
from glove_prep.utils.tokenizer import CorpusScanner, file_size, is_space, skip_token
from glove_prep.vocab.vocabulary import Vocabulary

LOOKBEHIND_BLOCK = 1 << 16

_WORKER_WORD2ID: Optional[Dict[str, int]] = None


class Shard(NamedTuple):
    index: int
    start: int
    end: int


def _align(f, pos: int, size: int) -> int:
    """First offset >= pos at which a token can start (just after whitespace)."""
    if pos <= 0:
        return 0
    if pos >= size:
        return size
    f.seek(pos - 1)
    if is_space(f.read(1)):
        return pos
    ws = skip_token(f, pos)
    return size if ws is None else ws + 1


def plan_shards(path: Union[str, Path], num_shards: int) -> List[Shard]:
    if num_shards < 1:
        raise ValueError(f"num_shards must be >= 1, got {num_shards}")
    size = file_size(path)
    if size == 0:
        return []
    with open(path, "rb") as f:
        bounds = [_align(f, size * k // num_shards, size) for k in range(num_shards)]
    bounds.append(size)

    shards: List[Shard] = []
    for start, end in zip(bounds, bounds[1:]):
        if end > start:
            shards.append(Shard(len(shards), start, end))
    return shards


def _vocab_ids(tokens: Iterable[str], word2id: Dict[str, int]) -> Iterator[int]:
    for tok in tokens:
        tid = word2id.get(tok)
        if tid is not None:
            yield tid


def leading_context(path: Union[str, Path], offset: int, word2id: Dict[str, int], width: int) -> List[int]:
    """The last `width` in-vocabulary ids of tokens starting before `offset`."""
    if offset <= 0 or width <= 0:
        return []
    block = LOOKBEHIND_BLOCK
    while True:
        lo = max(0, offset - block)
        ids = list(_vocab_ids(CorpusScanner(path, start=lo, end=offset), word2id))
        if len(ids) >= width or lo == 0:
            return ids[-width:]
        block *= 2


def trailing_context(path: Union[str, Path], offset: int, word2id: Dict[str, int], width: int) -> List[int]:
    """The first `width` in-vocabulary ids of tokens starting at or after `offset`."""
    ids: List[int] = []
    if width <= 0:
        return ids
    for tid in _vocab_ids(CorpusScanner(path, start=offset), word2id):
        ids.append(tid)
        if len(ids) >= width:
            break
    return ids


class _Owned:
    """Counts the owned ids as they stream through."""

    def __init__(self, ids: Iterable[int]):
        self._ids = ids
        self.count = 0
        self.done = False

    def __iter__(self) -> Iterator[int]:
        for tid in self._ids:
            self.count += 1
            yield tid
        self.done = True


def build_shard(
    path: Union[str, Path],
    shard: Shard,
    word2id: Dict[str, int],
    width: int,
) -> CooccurrenceMatrix:
    lead = leading_context(path, shard.start, word2id, width)
    owned = _Owned(_vocab_ids(CorpusScanner(path, start=shard.start, end=shard.end), word2id))
    trail = trailing_context(path, shard.end, word2id, width)

    matrix = CooccurrenceMatrix()
    window = ContextWindow(width)
    first = len(lead)
    k = 0  # contexts are finalized in stream order, so k is the token position

    def keep(k: int) -> bool:
        return k >= first and (not owned.done or k < first + owned.count)

    for tid in _chain(lead, owned, trail):
        ctx = window.slide(tid)
        if ctx is not None:
            if keep(k):
                matrix.add_context(ctx)
            k += 1
    for ctx in window.drain():
        if keep(k):
            matrix.add_context(ctx)
        k += 1
    return matrix


def _chain(*parts: Iterable[int]) -> Iterator[int]:
    for part in parts:
        yield from part


def _init_worker(word2id: Dict[str, int]) -> None:
    global _WORKER_WORD2ID
    _WORKER_WORD2ID = word2id


def _run_shard(args) -> CooccurrenceMatrix:
    path, shard, width = args
    return build_shard(path, shard, _WORKER_WORD2ID, width)


def build_sharded(
    path: Union[str, Path],
    vocab: Vocabulary,
    window_size: int,
    workers: int = 1,
    num_shards: Optional[int] = None,
    progress: bool = False,
) -> CooccurrenceMatrix:
    """
    Build per-shard matrices (in worker processes when workers > 1) and sum
    them in shard order, so the result does not depend on scheduling.
    """
    if int(window_size) < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")
    workers = max(1, int(workers or 1))
    if workers > 1:
        workers = min(workers, os.cpu_count() or 1)
    num_shards = int(num_shards) if num_shards else workers

    word2id = vocab.word2id
    shards = plan_shards(path, num_shards)
    if progress:
        print(f"[cooccur] shards={len(shards)} | workers={workers} | window={window_size}")

    tasks = [(str(path), s, int(window_size)) for s in shards]
    matrix = CooccurrenceMatrix()
    if workers == 1 or len(shards) <= 1:
        results: Iterable[CooccurrenceMatrix] = (build_shard(p, s, word2id, w) for p, s, w in tasks)
        if progress:
            results = tqdm(results, total=len(tasks), desc="[cooccur] shards")
        for part in results:
            matrix.merge(part)
        return matrix

    with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker, initargs=(word2id,)) as pool:
        results = pool.map(_run_shard, tasks)
        if progress:
            results = tqdm(results, total=len(tasks), desc="[cooccur] shards")
        for part in results:
            matrix.merge(part)
    return matrix
