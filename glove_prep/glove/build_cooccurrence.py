# glove_prep/glove/build_cooccurrence.py
# Co-occurrence matrix calculation for GloVe
from __future__ import annotations
import argparse
from typing import List, Optional

from glove_prep.glove.cooccur_io import FORMATS, write_triplets
from glove_prep.glove.cooccurrence import CooccurrenceMatrix, build_cooccurrence
from glove_prep.utils.config import load_config, require_int, require_path, resolve
from glove_prep.utils.errors import UsageError
from glove_prep.vocab.vocabulary import load_vocabulary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glove-cooccur",
        description="Build the distance-weighted word co-occurrence matrix of a corpus.",
    )
    parser.add_argument("--corpus", type=str, default=None, help="The path to the corpus text file.")
    parser.add_argument("--vocab", type=str, default=None, help="Vocabulary file written by glove-vocab.")
    parser.add_argument("--output", type=str, default=None, help="Where to write the (main, context, weight) triplets.")
    parser.add_argument("--window-size", dest="window_size", type=int, default=None,
                        help="Context words on each side of the center word (default: 10).")
    parser.add_argument("--format", type=str, choices=FORMATS, default=None,
                        help="Output format (default: from the output file suffix, else txt).")
    parser.add_argument("--workers", type=int, default=None, help="Worker processes (default: 1).")
    parser.add_argument("--shards", type=int, default=None, help="Byte-range shards (default: one per worker).")
    parser.add_argument("--symmetric", action=argparse.BooleanOptionalAction, default=None,
                        help="Write M + M^T instead of the directed matrix (--no-symmetric overrides the config).")
    parser.add_argument("--config", type=str, default=None, help="YAML config layered over the defaults.")
    parser.add_argument("--quiet", action="store_true", help="No progress output.")
    return parser


def run(
    corpus,
    vocab_path,
    output,
    window_size: int = 10,
    fmt: Optional[str] = None,
    workers: int = 1,
    shards: Optional[int] = None,
    symmetric: bool = False,
    progress: bool = True,
) -> CooccurrenceMatrix:
    vocab = load_vocabulary(vocab_path)
    if progress:
        print(f"[vocab] loaded {len(vocab):,} words from {vocab_path}")

    matrix = build_cooccurrence(corpus, vocab, window_size,
                                workers=workers, shards=shards, progress=progress)
    if symmetric:
        matrix = matrix.symmetric()

    used = write_triplets(matrix, output, fmt)
    if progress:
        print(f"[SAVE] {used} triplets written -> {output}")
        print(f"[STATS] vocab={len(vocab):,} | cooccur entries={len(matrix):,}")
    return matrix


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        cfg = resolve(load_config(args.config).get("cooccur", {}), {
            "corpus": args.corpus,
            "vocab": args.vocab,
            "output": args.output,
            "window_size": args.window_size,
            "format": args.format,
            "workers": args.workers,
            "shards": args.shards,
            "symmetric": args.symmetric,
        })
        corpus = require_path(cfg, "corpus")
        vocab_path = require_path(cfg, "vocab")
        output = require_path(cfg, "output")
        window_size = require_int(cfg, "window_size", 1)
        workers = require_int(cfg, "workers", 1)
        shards = require_int(cfg, "shards", 1) if cfg.get("shards") is not None else None
        fmt = cfg.get("format")
        if fmt is not None and fmt not in FORMATS:
            raise UsageError(f"format must be one of {', '.join(FORMATS)}, got {fmt!r}")
    except UsageError as e:
        parser.error(str(e))

    run(corpus, vocab_path, output, window_size, fmt=fmt, workers=workers, shards=shards,
        symmetric=bool(cfg.get("symmetric")), progress=not args.quiet)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
