import random

import pytest

from glove_prep.glove.cooccurrence import CooccurrenceMatrix, build_cooccurrence
from glove_prep.glove.shards import (
    build_shard,
    build_sharded,
    leading_context,
    plan_shards,
    trailing_context,
)
from glove_prep.utils.tokenizer import CorpusScanner, simple_tokenizer
from glove_prep.vocab.vocabulary import build_vocabulary


def write_corpus(path, n_tokens, seed=0):
    rng = random.Random(seed)
    words = ["alpha", "beta", "gamma", "delta", "eps", "zeta", "eta", "rare%d"]
    parts = []
    for k in range(n_tokens):
        w = rng.choice(words)
        if "%d" in w:
            w = w % k
        parts.append(w)
        parts.append(rng.choice([" ", " ", "\n", "\t", "  "]))
    path.write_text("".join(parts), encoding="utf-8")
    return path


def assert_same_matrix(a, b):
    assert a.keys() == b.keys()
    for key in a.keys():
        assert a[key] == pytest.approx(b[key])


def test_plan_shards_cover_file_on_token_boundaries(tmp_path):
    corpus = write_corpus(tmp_path / "c.txt", 300)
    data = corpus.read_bytes()
    shards = plan_shards(corpus, 7)
    assert shards[0].start == 0
    assert shards[-1].end == len(data)
    for prev, cur in zip(shards, shards[1:]):
        assert prev.end == cur.start
        assert data[cur.start - 1:cur.start].isspace()
    assert [s.index for s in shards] == list(range(len(shards)))


def test_plan_shards_empty_file(tmp_path):
    corpus = tmp_path / "empty.txt"
    corpus.write_text("", encoding="utf-8")
    assert plan_shards(corpus, 4) == []


def test_shard_tokens_concatenate_to_corpus(tmp_path):
    corpus = write_corpus(tmp_path / "c.txt", 500, seed=1)
    full = list(CorpusScanner(corpus))
    for n in (1, 2, 5, 40):
        pieces = []
        for s in plan_shards(corpus, n):
            pieces.extend(CorpusScanner(corpus, start=s.start, end=s.end, chunk_size=7))
        assert pieces == full


def test_unaligned_ranges_still_partition_tokens(tmp_path):
    corpus = tmp_path / "c.txt"
    corpus.write_text("aaa bbb ccc ddd", encoding="utf-8")
    # byte 5 falls inside "bbb", which belongs to the range that contains its first byte
    assert list(CorpusScanner(corpus, start=0, end=5)) == ["aaa", "bbb"]
    assert list(CorpusScanner(corpus, start=5, end=15)) == ["ccc", "ddd"]


def test_leading_and_trailing_context(tmp_path):
    corpus = tmp_path / "c.txt"
    corpus.write_text("a x b c x d e", encoding="utf-8")
    word2id = {"a": 0, "b": 1, "c": 2, "d": 3, "e": 4}
    offset = corpus.read_bytes().index(b"d")
    assert leading_context(corpus, offset, word2id, 2) == [1, 2]
    assert leading_context(corpus, offset, word2id, 10) == [0, 1, 2]
    assert leading_context(corpus, 0, word2id, 2) == []
    assert trailing_context(corpus, offset, word2id, 1) == [3]
    assert trailing_context(corpus, 2, word2id, 3) == [1, 2, 3]
    assert trailing_context(corpus, len(corpus.read_bytes()), word2id, 3) == []


@pytest.mark.parametrize("num_shards", [1, 2, 3, 8, 64])
@pytest.mark.parametrize("width", [1, 3])
def test_sharded_build_equals_single_pass(tmp_path, num_shards, width):
    corpus = write_corpus(tmp_path / "c.txt", 400, seed=num_shards)
    vocab = build_vocabulary(corpus, min_frequency=2)
    single = build_cooccurrence(corpus, vocab, width)
    sharded = build_sharded(corpus, vocab, width, workers=1, num_shards=num_shards)
    assert_same_matrix(single, sharded)


def test_shard_merge_order_does_not_matter(tmp_path):
    corpus = write_corpus(tmp_path / "c.txt", 300, seed=9)
    vocab = build_vocabulary(corpus)
    parts = [build_shard(corpus, s, vocab.word2id, 2) for s in plan_shards(corpus, 4)]
    forward = CooccurrenceMatrix.merged(parts)
    backward = CooccurrenceMatrix.merged(reversed(parts))
    assert_same_matrix(forward, backward)


def test_process_pool_build(tmp_path):
    corpus = write_corpus(tmp_path / "c.txt", 600, seed=5)
    vocab = build_vocabulary(corpus, min_frequency=2)
    single = build_cooccurrence(corpus, vocab, 2)
    parallel = build_cooccurrence(corpus, vocab, 2, workers=2, shards=5)
    assert_same_matrix(single, parallel)


def test_scanner_chunk_boundaries(tmp_path):
    corpus = tmp_path / "c.txt"
    text = "  naïve café\tdéjà-vu\n\nlong" + "x" * 50 + " end "
    corpus.write_text(text, encoding="utf-8")
    for chunk in (1, 2, 3, 5, 64, 1 << 20):
        assert list(CorpusScanner(corpus, chunk_size=chunk)) == text.split()


def test_scanner_is_restartable(tmp_path):
    corpus = tmp_path / "c.txt"
    corpus.write_text("one two three", encoding="utf-8")
    scanner = CorpusScanner(corpus)
    assert list(scanner) == list(scanner) == ["one", "two", "three"]


def test_simple_tokenizer_matches_scanner(tmp_path):
    text = "x\ty  z\n\nw "
    corpus = tmp_path / "c.txt"
    corpus.write_text(text, encoding="utf-8")
    assert simple_tokenizer(text) == list(CorpusScanner(corpus)) == ["x", "y", "z", "w"]
