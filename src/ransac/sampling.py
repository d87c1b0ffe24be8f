"""
Sample sources for the line fit.
Strategy pattern: each source yields index pairs; the pipeline concatenates them.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

import numpy as np
from loguru import logger

from src.ransac.errors import SamplingError
from src.ransac.models import LineFitParams


class SampleSource(ABC):
    """모든 샘플 소스의 부모 클래스"""

    @abstractmethod
    def draw(self, n_points: int) -> np.ndarray:
        """데이터 포인트 개수를 받아 (k, 2) 인덱스 쌍 배열을 반환"""
        pass


class RandomPairSource(SampleSource):
    """
    Uniformly random pairs of two distinct indices.
    The same pair may come up more than once across draws.
    """

    def __init__(self, count: int, rng: np.random.Generator):
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.count = count
        self.rng = rng

    def draw(self, n_points: int) -> np.ndarray:
        if self.count == 0:
            return np.empty((0, 2), dtype=int)
        if n_points < 2:
            raise SamplingError(f"Need at least 2 points to sample pairs, got {n_points}")

        first = self.rng.integers(0, n_points, size=self.count)
        # a non-zero offset keeps the second index distinct and still uniform
        offset = self.rng.integers(1, n_points, size=self.count)
        second = (first + offset) % n_points

        return np.column_stack([first, second])


class SeedPairSource(SampleSource):
    """
    Hand-picked pairs known to match meaningful stretches of the data.
    Guarantees those solutions are scored even with a small random budget.
    """

    def __init__(self, pairs: Sequence[Tuple[int, int]]):
        self.pairs = [(int(i), int(j)) for i, j in pairs]

    def draw(self, n_points: int) -> np.ndarray:
        for i, j in self.pairs:
            if not (0 <= i < n_points and 0 <= j < n_points):
                raise SamplingError(
                    f"Seed pair ({i}, {j}) is out of range for {n_points} points"
                )
            if i == j:
                raise SamplingError(f"Seed pair ({i}, {j}) must reference two distinct points")

        if not self.pairs:
            return np.empty((0, 2), dtype=int)
        return np.array(self.pairs, dtype=int)


def build_sources(params: LineFitParams, rng: np.random.Generator) -> List[SampleSource]:
    """Random pairs first, then the curated seeds"""
    sources: List[SampleSource] = [RandomPairSource(params.num_random_samples, rng)]
    if params.seed_pairs:
        sources.append(SeedPairSource(params.seed_pairs))
    return sources


def compose_samples(sources: Sequence[SampleSource], n_points: int) -> np.ndarray:
    draws = [source.draw(n_points) for source in sources]
    for source, pairs in zip(sources, draws):
        logger.debug(f"{source.__class__.__name__} drew {len(pairs)} pairs")

    if not draws:
        return np.empty((0, 2), dtype=int)
    return np.concatenate(draws, axis=0)
