"""Breakpoint detection over distances between consecutive sentence windows."""
from collections.abc import Sequence

import numpy as np

PERCENTILE = "percentile"
STANDARD_DEVIATION = "standard_deviation"
INTERQUARTILE = "interquartile"
GRADIENT = "gradient"

DEFAULT_AMOUNTS = {
    PERCENTILE: 95.0,
    STANDARD_DEVIATION: 3.0,
    INTERQUARTILE: 1.5,
    GRADIENT: 95.0,
}


def combine_with_neighbours(sentences: Sequence[str], buffer_size: int) -> list[str]:
    """One window per sentence: the sentence plus buffer_size neighbours on each side."""
    windows = []
    for i in range(len(sentences)):
        lo = max(0, i - buffer_size)
        windows.append(" ".join(sentences[lo:i + buffer_size + 1]))
    return windows


def cosine_distances(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """1 - cosine similarity between each vector and the next; length n-1."""
    m = np.asarray(vectors, dtype=float)
    if m.shape[0] < 2:
        return np.zeros(0)
    norms = np.linalg.norm(m, axis=1)
    norms[norms == 0] = 1.0
    unit = m / norms[:, None]
    return 1.0 - np.sum(unit[:-1] * unit[1:], axis=1)


def breakpoint_indices(
    distances: np.ndarray, threshold_type: str = PERCENTILE, amount: float | None = None
) -> list[int]:
    """Indices i where a chunk boundary falls between sentence i and i+1."""
    if threshold_type not in DEFAULT_AMOUNTS:
        raise ValueError(f"Unknown breakpoint threshold type: {threshold_type}")
    if distances.size == 0:
        return []
    if amount is None:
        amount = DEFAULT_AMOUNTS[threshold_type]

    scores = distances
    if threshold_type == PERCENTILE:
        threshold = np.percentile(distances, amount)
    elif threshold_type == STANDARD_DEVIATION:
        threshold = np.mean(distances) + amount * np.std(distances)
    elif threshold_type == INTERQUARTILE:
        q1, q3 = np.percentile(distances, [25, 75])
        threshold = np.mean(distances) + amount * (q3 - q1)
    else:
        if distances.size > 1:
            scores = np.gradient(distances)
        threshold = np.percentile(scores, amount)
    return [int(i) for i in np.flatnonzero(scores > threshold)]
