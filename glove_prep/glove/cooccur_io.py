# glove_prep/glove/cooccur_io.py
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union

import numpy as np
from scipy.sparse import load_npz, save_npz

from glove_prep.glove.cooccurrence import CooccurrenceMatrix

FORMATS = ("txt", "bin", "npz")

# Same record layout as GloVe's `cooccur` output: int word1, int word2, double val.
# GloVe ids are 1-based.
CREC_DTYPE = np.dtype([("word1", "<i4"), ("word2", "<i4"), ("val", "<f8")])


def infer_format(path: Union[str, Path], fmt: Optional[str] = None) -> str:
    if fmt:
        fmt = fmt.lower().lstrip(".")
        if fmt not in FORMATS:
            raise ValueError(f"Unknown output format: {fmt} (expected one of {', '.join(FORMATS)})")
        return fmt
    suffix = Path(path).suffix.lower().lstrip(".")
    return suffix if suffix in FORMATS else "txt"


def write_triplets(matrix: CooccurrenceMatrix, path: Union[str, Path], fmt: Optional[str] = None) -> str:
    """Write (main_id, context_id, weight) triplets sorted by (main_id, context_id). Returns the format used."""
    fmt = infer_format(path, fmt)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "txt":
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            for i, j, x in matrix.triplets():
                f.write(f"{i} {j} {x!r}\n")
    elif fmt == "bin":
        rows, cols, vals = matrix.to_arrays()
        rec = np.empty(len(vals), dtype=CREC_DTYPE)
        rec["word1"] = rows + 1
        rec["word2"] = cols + 1
        rec["val"] = vals
        with open(path, "wb") as f:
            rec.tofile(f)
    else:
        # scipy sparse npz; a file object keeps numpy from appending its own suffix
        with open(path, "wb") as f:
            save_npz(f, matrix.to_csr())
    return fmt


def read_triplets(path: Union[str, Path], fmt: Optional[str] = None) -> CooccurrenceMatrix:
    fmt = infer_format(path, fmt)
    if fmt == "txt":
        m = CooccurrenceMatrix()
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                parts = line.split()
                if not parts:
                    continue
                if len(parts) != 3:
                    raise ValueError(f"{path}:{lineno}: expected 'main context weight', got {line.rstrip()!r}")
                m.add(int(parts[0]), int(parts[1]), float(parts[2]))
        return m
    if fmt == "bin":
        rec = np.fromfile(path, dtype=CREC_DTYPE)
        return CooccurrenceMatrix.from_arrays(rec["word1"] - 1, rec["word2"] - 1, rec["val"])
    coo = load_npz(path).tocoo()
    return CooccurrenceMatrix.from_arrays(coo.row, coo.col, coo.data)
