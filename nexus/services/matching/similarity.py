"""Cosine similarity between embedding vectors."""
import math
from typing import Sequence


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors, in [-1, 1].

    Raises:
        ValueError: If either vector is empty, the lengths differ, or either
            vector has zero magnitude.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0:
        raise ValueError("Embeddings must be non-empty")

    if len(a) != len(b):
        raise ValueError(
            f"Embedding dimensions differ: {len(a)} != {len(b)}"
        )

    dot_product = sum(x * y for x, y in zip(a, b))
    magnitude_a = math.sqrt(sum(x * x for x in a))
    magnitude_b = math.sqrt(sum(y * y for y in b))

    if magnitude_a == 0 or magnitude_b == 0:
        raise ValueError("Degenerate embedding with zero magnitude")

    similarity = dot_product / (magnitude_a * magnitude_b)
    # Floating point error can push the ratio slightly outside [-1, 1]
    return max(-1.0, min(1.0, similarity))


def normalized_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity rescaled from [-1, 1] to [0, 1]."""
    return max(0.0, min(1.0, (cosine_similarity(a, b) + 1.0) / 2.0))
