# glove_prep/glove/cooccurrence.py
from __future__ import annotations
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np
from scipy.sparse import csr_matrix
from tqdm import tqdm

from glove_prep.glove.context_window import Context, ContextWindow
from glove_prep.utils.tokenizer import CorpusScanner
from glove_prep.vocab.vocabulary import Vocabulary

PairKey = Tuple[int, int]


class CooccurrenceMatrix:
    """
    Sparse directed co-occurrence counts: (main_id, context_id) -> weight.

    Entries only exist for pairs that actually co-occurred. Weights are sums
    of non-negative contributions, so they only grow.
    """

    def __init__(self, entries: Optional[Dict[PairKey, float]] = None):
        self._cooccur: Dict[PairKey, float] = defaultdict(float)
        if entries:
            for key, x in entries.items():
                self.add(key[0], key[1], x)

    def add(self, main_id: int, context_id: int, weight: float) -> None:
        if weight < 0:
            raise ValueError(f"negative contribution {weight} for ({main_id}, {context_id})")
        self._cooccur[(main_id, context_id)] += weight

    def add_context(self, ctx: Context) -> None:
        for neighbor, dist in ctx.neighbors:
            self._cooccur[(ctx.center, neighbor)] += 1.0 / dist

    def __getitem__(self, key: PairKey) -> float:
        # .get so lookups never create entries in the defaultdict
        return self._cooccur.get(key, 0.0)

    def __contains__(self, key) -> bool:
        return key in self._cooccur

    def __len__(self) -> int:
        return len(self._cooccur)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CooccurrenceMatrix):
            return NotImplemented
        return dict(self._cooccur) == dict(other._cooccur)

    def __repr__(self) -> str:
        return f"CooccurrenceMatrix(entries={len(self)})"

    def keys(self) -> List[PairKey]:
        return sorted(self._cooccur)

    def items(self) -> Iterator[Tuple[PairKey, float]]:
        """Entries ordered by (main_id, context_id)."""
        for key in sorted(self._cooccur):
            yield key, self._cooccur[key]

    def triplets(self) -> Iterator[Tuple[int, int, float]]:
        for (i, j), x in self.items():
            yield i, j, x

    # ---------- combining ----------
    def merge(self, other: "CooccurrenceMatrix") -> "CooccurrenceMatrix":
        """Add other's weights into self (in place) and return self."""
        for key, x in other._cooccur.items():
            self._cooccur[key] += x
        return self

    @classmethod
    def merged(cls, matrices: Iterable["CooccurrenceMatrix"]) -> "CooccurrenceMatrix":
        out = cls()
        for m in matrices:
            out.merge(m)
        return out

    def symmetric(self) -> "CooccurrenceMatrix":
        """M + M^T as a new matrix."""
        out = CooccurrenceMatrix()
        for (i, j), x in self._cooccur.items():
            out._cooccur[(i, j)] += x
            out._cooccur[(j, i)] += x
        return out

    # ---------- export ----------
    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        n = len(self._cooccur)
        rows = np.empty(n, dtype=np.int64)
        cols = np.empty(n, dtype=np.int64)
        vals = np.empty(n, dtype=np.float64)
        for k, ((i, j), x) in enumerate(self.items()):
            rows[k], cols[k], vals[k] = i, j, x
        return rows, cols, vals

    @classmethod
    def from_arrays(cls, rows: np.ndarray, cols: np.ndarray, vals: np.ndarray) -> "CooccurrenceMatrix":
        out = cls()
        for i, j, x in zip(rows.tolist(), cols.tolist(), vals.tolist()):
            out.add(int(i), int(j), float(x))
        return out

    def to_csr(self, vocab_size: Optional[int] = None) -> csr_matrix:
        rows, cols, vals = self.to_arrays()
        if vocab_size is None:
            vocab_size = int(max(rows.max(initial=-1), cols.max(initial=-1))) + 1
        return csr_matrix((vals, (rows, cols)), shape=(vocab_size, vocab_size))


def accumulate(
    token_ids: Iterable[int],
    window_size: int,
    matrix: Optional[CooccurrenceMatrix] = None,
) -> CooccurrenceMatrix:
    """Slide a window over the ids and add 1/d for every (center, neighbor) at distance d."""
    if matrix is None:
        matrix = CooccurrenceMatrix()
    window = ContextWindow(window_size)
    for tid in token_ids:
        ctx = window.slide(tid)
        if ctx is not None:
            matrix.add_context(ctx)
    for ctx in window.drain():
        matrix.add_context(ctx)
    return matrix


class CooccurrenceAccumulator:
    """Maps tokens to ids with a frozen vocabulary and accumulates co-occurrences."""

    def __init__(self, vocab: Union[Vocabulary, Dict[str, int]], window_size: int):
        if int(window_size) < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self.word2id = vocab.word2id if isinstance(vocab, Vocabulary) else dict(vocab)
        self.window_size = int(window_size)
        self.n_tokens = 0
        self.n_oov = 0

    def ids(self, tokens: Iterable[str]) -> Iterator[int]:
        """Ids of in-vocabulary tokens; OOV tokens are dropped and take no window slot."""
        word2id = self.word2id
        for tok in tokens:
            self.n_tokens += 1
            tid = word2id.get(tok)
            if tid is None:
                self.n_oov += 1
                continue
            yield tid

    def build(self, tokens: Iterable[str], matrix: Optional[CooccurrenceMatrix] = None) -> CooccurrenceMatrix:
        return accumulate(self.ids(tokens), self.window_size, matrix)


def build_cooccurrence(
    corpus_path: Union[str, Path],
    vocab: Vocabulary,
    window_size: int = 10,
    workers: int = 1,
    shards: Optional[int] = None,
    progress: bool = False,
) -> CooccurrenceMatrix:
    """
    Build the directed co-occurrence matrix of a corpus file.

    One sequential pass when workers == 1 and shards is None, otherwise the
    corpus is split into byte-range shards (see glove_prep.glove.shards).
    """
    if workers > 1 or shards is not None:
        from glove_prep.glove.shards import build_sharded
        return build_sharded(corpus_path, vocab, window_size,
                             workers=workers, num_shards=shards, progress=progress)

    tokens: Iterable[str] = CorpusScanner(corpus_path)
    if progress:
        tokens = tqdm(tokens, desc="[cooccur]", unit="tok", unit_scale=True)
    acc = CooccurrenceAccumulator(vocab, window_size)
    matrix = acc.build(tokens)
    if progress:
        print(f"[cooccur] tokens={acc.n_tokens:,} | oov={acc.n_oov:,} | entries={len(matrix):,}")
    return matrix
