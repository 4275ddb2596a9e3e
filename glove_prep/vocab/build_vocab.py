# glove_prep/vocab/build_vocab.py
from __future__ import annotations
import argparse
from typing import List, Optional

from glove_prep.utils.config import load_config, require_int, require_path, resolve
from glove_prep.utils.errors import UsageError
from glove_prep.vocab.vocabulary import build_vocabulary, save_vocabulary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glove-vocab",
        description="Count the words of a corpus and write a frequency-sorted vocabulary.",
    )
    parser.add_argument("--corpus", type=str, default=None, help="The path to the corpus text file.")
    parser.add_argument("--output", type=str, default=None,
                        help="The file to which the vocabulary shall be written (default: vocab.txt).")
    parser.add_argument("--min-count", dest="min_count", type=int, default=None,
                        help="Minimum times a word must occur to be kept in the vocabulary (default: 5).")
    parser.add_argument("--config", type=str, default=None, help="YAML config layered over the defaults.")
    parser.add_argument("--quiet", action="store_true", help="No progress bars.")
    return parser


def run(corpus, output, min_count: int, progress: bool = True) -> int:
    vocab = build_vocabulary(corpus, progress=progress)
    if progress:
        print(f"[vocab] distinct words = {len(vocab):,}")
    kept = save_vocabulary(vocab, output, min_frequency=min_count)
    if progress:
        print(f"[vocab] after min_count={min_count} -> {kept:,}")
        print(f"[SAVE] vocabulary written -> {output}")
    return kept


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        cfg = resolve(load_config(args.config).get("vocab", {}), {
            "corpus": args.corpus,
            "output": args.output,
            "min_count": args.min_count,
        })
        corpus = require_path(cfg, "corpus")
        output = require_path(cfg, "output")
        min_count = require_int(cfg, "min_count", 0)
    except UsageError as e:
        parser.error(str(e))

    run(corpus, output, min_count, progress=not args.quiet)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
