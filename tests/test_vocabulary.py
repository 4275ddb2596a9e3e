import random

import pytest

from glove_prep.utils.errors import MalformedLineError
from glove_prep.vocab.vocabulary import (
    Vocabulary,
    Word,
    build_vocabulary,
    count,
    deserialize,
    load_vocabulary,
    save_vocabulary,
    serialize,
    to_vocabulary,
    trim,
)

TOKENS = "b a c a b a d".split()


def test_to_vocabulary_orders_by_frequency_then_text():
    vocab = to_vocabulary(count(TOKENS))
    assert list(vocab) == [Word("a", 3), Word("b", 2), Word("c", 1), Word("d", 1)]
    assert vocab.is_sorted()
    assert vocab.word2id == {"a": 0, "b": 1, "c": 2, "d": 3}
    assert vocab.id2word == ["a", "b", "c", "d"]


def test_to_vocabulary_is_deterministic_for_reordered_input():
    rng = random.Random(7)
    tokens = [rng.choice("pqrstuvw") for _ in range(500)]
    first = to_vocabulary(count(tokens))
    for _ in range(5):
        shuffled = tokens[:]
        rng.shuffle(shuffled)
        assert to_vocabulary(count(shuffled)) == first
    assert first.is_sorted()


def test_trim_is_a_prefix_cut():
    vocab = to_vocabulary(count(TOKENS))
    assert list(trim(vocab, 2)) == [Word("a", 3), Word("b", 2)]
    assert list(trim(vocab, 3)) == [Word("a", 3)]
    assert len(trim(vocab, 4)) == 0


def test_trim_identity_and_idempotence():
    vocab = to_vocabulary(count(TOKENS))
    assert trim(vocab, 0) == vocab
    assert trim(vocab, 1) == vocab
    once = trim(vocab, 2)
    assert trim(once, 2) == once


def test_serialize_round_trip():
    vocab = to_vocabulary(count(TOKENS + ["héllo", "héllo", "x-y"]))
    lines = list(serialize(vocab))
    assert lines[0] == "a 3\n"
    assert deserialize(lines) == vocab


def test_deserialize_keeps_file_order():
    vocab = deserialize(["b 1\n", "a 5\n"])
    assert vocab.id2word == ["b", "a"]
    assert not vocab.is_sorted()


def test_deserialize_skips_blank_lines():
    vocab = deserialize(["a 2\n", "\n", "b 1\n"])
    assert len(vocab) == 2


@pytest.mark.parametrize("bad", ["a x", "a", "a 1 2", "a -1", "a 1.5", "a 0"])
def test_deserialize_rejects_malformed_lines(bad):
    with pytest.raises(MalformedLineError) as info:
        deserialize(["ok 3\n", bad + "\n"])
    assert info.value.lineno == 2


def test_save_applies_min_frequency_and_load_reads_back(tmp_path):
    vocab = to_vocabulary(count(TOKENS))
    path = tmp_path / "out" / "vocab.txt"
    assert save_vocabulary(vocab, path, min_frequency=2) == 2
    assert path.read_text(encoding="utf-8") == "a 3\nb 2\n"
    assert load_vocabulary(path) == trim(vocab, 2)


def test_load_malformed_file_fails_whole_load(tmp_path):
    path = tmp_path / "vocab.txt"
    path.write_text("a 3\nb two\nc 1\n", encoding="utf-8")
    with pytest.raises(MalformedLineError) as info:
        load_vocabulary(path)
    assert str(path) in str(info.value)


def test_load_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        load_vocabulary(tmp_path / "nope.txt")


def test_build_vocabulary_from_corpus(tmp_path):
    corpus = tmp_path / "corpus.txt"
    corpus.write_text("the cat\tsat on\nthe  mat The\n", encoding="utf-8")
    vocab = build_vocabulary(corpus, min_frequency=1)
    assert vocab[0] == Word("the", 2)
    # no case folding
    assert "The" in vocab
    assert len(vocab) == 6
    assert len(build_vocabulary(corpus, min_frequency=2)) == 1


def test_build_vocabulary_missing_corpus(tmp_path):
    with pytest.raises(OSError):
        build_vocabulary(tmp_path / "missing.txt")


def test_vocabulary_lookup_helpers():
    vocab = Vocabulary([("x", 4), ("y", 1)])
    assert vocab.word2id.get("y") == 1
    assert vocab.word2id.get("z") is None
    assert "z" not in vocab
    assert vocab[:1] == Vocabulary([("x", 4)])


def test_non_ascii_whitespace_stays_inside_tokens(tmp_path):
    corpus = tmp_path / "corpus.txt"
    corpus.write_text("New\xa0York is big . New\xa0York　Tokyo\n", encoding="utf-8")
    vocab = build_vocabulary(corpus, min_frequency=1)
    assert "New\xa0York" in vocab
    assert "New\xa0York　Tokyo" in vocab
    assert deserialize(list(serialize(vocab))) == vocab

    path = tmp_path / "vocab.txt"
    save_vocabulary(vocab, path)
    assert load_vocabulary(path) == vocab


def test_deserialize_rejects_zero_frequency():
    with pytest.raises(MalformedLineError) as info:
        deserialize(["a 0\n"])
    assert "frequency must be >= 1" in str(info.value)
