# glove_prep/vocab/vocabulary.py
from __future__ import annotations
import bisect
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Union

from tqdm import tqdm

from glove_prep.utils.errors import MalformedLineError
from glove_prep.utils.tokenizer import CorpusScanner, simple_tokenizer


class Word(NamedTuple):
    text: str
    frequency: int


class Vocabulary:
    """
    Immutable, ordered sequence of Words.

    Order: descending frequency, ties broken by ascending text. A word's id is
    its position in this order, so the order must never change once ids have
    been handed out.
    """

    __slots__ = ("_words", "_word2id")

    def __init__(self, words: Iterable[Word] = ()):
        self._words = tuple(Word(str(w), int(f)) for w, f in words)
        self._word2id: Optional[Dict[str, int]] = None

    # ---------- sequence protocol ----------
    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[Word]:
        return iter(self._words)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return Vocabulary(self._words[idx])
        return self._words[idx]

    def __contains__(self, token) -> bool:
        return token in self.word2id

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self._words == other._words

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        head = ", ".join(f"{w.text}:{w.frequency}" for w in self._words[:5])
        more = ", ..." if len(self._words) > 5 else ""
        return f"Vocabulary([{head}{more}], size={len(self)})"

    # ---------- id mapping ----------
    @property
    def word2id(self) -> Dict[str, int]:
        if self._word2id is None:
            self._word2id = {w.text: i for i, w in enumerate(self._words)}
        return self._word2id

    @property
    def id2word(self) -> List[str]:
        return [w.text for w in self._words]

    @property
    def frequencies(self) -> List[int]:
        return [w.frequency for w in self._words]

    def is_sorted(self) -> bool:
        keys = [(-w.frequency, w.text) for w in self._words]
        return all(a < b for a, b in zip(keys, keys[1:]))


def count(tokens: Iterable[str], progress: bool = False) -> Counter:
    counts: Counter = Counter()
    if progress:
        tokens = tqdm(tokens, desc="[vocab] counting", unit="tok", unit_scale=True)
    for tok in tokens:
        counts[tok] += 1
    return counts


def to_vocabulary(frequencies: Mapping[str, int]) -> Vocabulary:
    items = [(w, int(c)) for w, c in frequencies.items() if c > 0]
    items.sort(key=lambda x: (-x[1], x[0]))
    return Vocabulary(items)


def trim(vocab: Vocabulary, min_frequency: int) -> Vocabulary:
    """Drop every word with frequency < min_frequency (a prefix cut, vocab is sorted)."""
    if min_frequency <= 0:
        return vocab
    # frequencies are descending; negate to search an ascending list
    neg = [-f for f in vocab.frequencies]
    cut = bisect.bisect_right(neg, -min_frequency)
    if cut == len(vocab):
        return vocab
    return vocab[:cut]


def serialize(vocab: Vocabulary) -> Iterator[str]:
    for w in vocab:
        yield f"{w.text} {w.frequency}\n"


def parse_line(line: str, lineno: int, path: Optional[str] = None) -> Word:
    # same whitespace set as the corpus scanner, so tokens like "New\xa0York" survive
    fields = simple_tokenizer(line)
    if len(fields) != 2:
        raise MalformedLineError(lineno, line.rstrip("\n"), f"expected 2 fields, got {len(fields)}", path)
    token, freq = fields
    if not freq.isdigit() or not freq.isascii():
        raise MalformedLineError(lineno, line.rstrip("\n"), f"frequency {freq!r} is not an unsigned integer", path)
    if int(freq) < 1:
        raise MalformedLineError(lineno, line.rstrip("\n"), "frequency must be >= 1", path)
    return Word(token, int(freq))


def deserialize(lines: Iterable[str], path: Optional[str] = None) -> Vocabulary:
    """
    Parse "token frequency" lines. Blank lines are skipped; the order in the
    input is kept as-is, the writer is responsible for it.
    """
    words: List[Word] = []
    for lineno, line in enumerate(lines, start=1):
        if not simple_tokenizer(line):
            continue
        words.append(parse_line(line, lineno, path))
    return Vocabulary(words)


def save_vocabulary(vocab: Vocabulary, path: Union[str, Path], min_frequency: int = 0) -> int:
    """Write the vocabulary, stopping at the first word below min_frequency. Returns lines written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    kept = trim(vocab, min_frequency)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.writelines(serialize(kept))
    return len(kept)


def load_vocabulary(path: Union[str, Path]) -> Vocabulary:
    with open(path, "r", encoding="utf-8") as f:
        return deserialize(f, path=str(path))


def build_vocabulary(
    corpus_path: Union[str, Path],
    min_frequency: int = 0,
    progress: bool = False,
) -> Vocabulary:
    counts = count(CorpusScanner(corpus_path), progress=progress)
    return trim(to_vocabulary(counts), min_frequency)
