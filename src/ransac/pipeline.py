"""
Line-fit Pipeline Manager.
Sampling -> Fitting -> Scoring -> Peak Detection -> Overlap Suppression
"""

from typing import List, Optional

import numpy as np
from loguru import logger
from tqdm import tqdm

from src.ransac.core import DatasetContext, TimeSeries
from src.ransac.errors import DegenerateSampleError
from src.ransac.fitting import fit_line, score
from src.ransac.models import LineFitParams, LineFitResult, ScoredCandidate
from src.ransac.peaks import detect_peaks, find_overlaps, suppress_overlaps
from src.ransac.sampling import SampleSource, build_sources, compose_samples


class LineFitPipeline:
    def __init__(
        self,
        params: Optional[LineFitParams] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.params = params or LineFitParams()
        # 시드가 없으면 매 실행마다 다른 샘플이 나옵니다 (테스트에서는 rng 주입)
        self.rng = rng if rng is not None else np.random.default_rng(self.params.random_seed)
        self.sources: List[SampleSource] = build_sources(self.params, self.rng)

    def add_source(self, source: SampleSource):
        self.sources.append(source)

    def score_samples(
        self, series: TimeSeries, ctx: DatasetContext, pairs: np.ndarray, progress: bool = False
    ):
        """
        Fit and score every sampled pair.

        :return: (scored candidates, number of degenerate pairs skipped)
        """
        scored: List[ScoredCandidate] = []
        skipped = 0

        for i, (a, b) in enumerate(tqdm(pairs, disable=not progress, desc="Scoring samples")):
            try:
                line = fit_line(series.point(a), series.point(b), ctx, self.params.buffer_distance)
            except DegenerateSampleError as e:
                logger.debug(f"Skipping sample {i} ({a}, {b}): {e}")
                skipped += 1
                continue
            scored.append(score(line, series, index=i))

        return scored, skipped

    def run(self, series: TimeSeries, progress: bool = False) -> LineFitResult:
        """
        시계열을 받아 샘플링, 적합, 투표, 피크 검출, 중첩 제거를 순서대로 수행합니다.
        """
        ctx = DatasetContext.from_series(series, self.params.time_scale)

        # 1. 샘플링 (Random + Seed)
        pairs = compose_samples(self.sources, len(series))

        # 2. 적합 및 투표 (Fitting & Voting)
        candidates, skipped = self.score_samples(series, ctx, pairs, progress=progress)

        # 3. 피크 검출 (Peak Detection)
        peaks = detect_peaks(
            candidates,
            lookaround=self.params.lookaround,
            min_density=self.params.min_density,
            power_floor=self.params.power_floor,
        )

        # 4. 중첩 제거 (Overlap Suppression)
        overlaps = find_overlaps(peaks)
        selection = suppress_overlaps(peaks, overlaps)

        logger.info(
            f"Scored {len(candidates)} of {len(pairs)} samples ({skipped} degenerate), "
            f"{len(peaks)} peaks, {len(selection)} selected"
        )

        return LineFitResult(
            candidates=candidates,
            peaks=peaks,
            overlaps=overlaps,
            selection=selection,
            skipped=skipped,
        )
