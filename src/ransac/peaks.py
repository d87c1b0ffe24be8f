"""
Peak detection in power-vs-slope space and overlap suppression of peak spans.
"""

from typing import List, Optional, Sequence

import numpy as np

from src.ransac.models import Overlap, ScoredCandidate


def flag_peaks(
    candidates: Sequence[ScoredCandidate],
    lookaround: float,
    min_density: float,
    power_floor: float,
) -> List[ScoredCandidate]:
    """
    Mark the local power maxima among the candidates that clear the power floor.

    A candidate is a peak when its density reaches min_density and no other
    candidate with |Δm| <= lookaround has strictly higher power. Equal-power
    neighbours are both flagged. Invalid candidates and those at or below
    power_floor are dropped from the result.
    """
    eligible = [c for c in candidates if c.valid and c.power > power_floor]
    if not eligible:
        return []

    slopes = np.array([c.m for c in eligible])
    power = np.array([c.power for c in eligible])
    density = np.array([c.density for c in eligible])

    # over sorted slopes each neighbourhood is a contiguous window
    order = np.argsort(slopes, kind="stable")
    s, p = slopes[order], power[order]
    lo = np.searchsorted(s, s - lookaround, side="left")
    hi = np.searchsorted(s, s + lookaround, side="right")
    # the window always contains the candidate itself
    window_max = np.array([p[a:b].max() for a, b in zip(lo, hi)])

    beaten = np.empty(len(eligible), dtype=bool)
    beaten[order] = window_max > p

    is_peak = ~beaten & (density >= min_density)

    return [c.model_copy(update={"is_peak": bool(flag)}) for c, flag in zip(eligible, is_peak)]


def detect_peaks(
    candidates: Sequence[ScoredCandidate],
    lookaround: float,
    min_density: float,
    power_floor: float,
) -> List[ScoredCandidate]:
    """Only the flagged peaks, in candidate order"""
    flagged = flag_peaks(candidates, lookaround, min_density, power_floor)
    return [c for c in flagged if c.is_peak]


def _dominates(big_pos: int, big: ScoredCandidate, small_pos: int, small: ScoredCandidate) -> bool:
    if big_pos == small_pos:
        return False

    covers = big.start_time <= small.start_time and big.end_time >= small.end_time
    if not covers or big.power < small.power:
        return False

    same_span = big.start_time == small.start_time and big.end_time == small.end_time
    if same_span and big.power == small.power:
        # exact tie: the earlier peak wins, so one of the group survives
        return big_pos < small_pos

    return True


def find_overlaps(peaks: Sequence[ScoredCandidate]) -> List[Overlap]:
    """Every (big, small) pair where big covers small's span with at least equal power"""
    return [
        Overlap(big=big, small=small, big_pos=i, small_pos=j)
        for i, big in enumerate(peaks)
        for j, small in enumerate(peaks)
        if _dominates(i, big, j, small)
    ]


def suppress_overlaps(
    peaks: Sequence[ScoredCandidate], overlaps: Optional[Sequence[Overlap]] = None
) -> List[ScoredCandidate]:
    """
    Peaks that no other peak dominates, in input order.
    Pass the result of find_overlaps(peaks) to avoid a second pairwise pass.
    """
    if overlaps is None:
        overlaps = find_overlaps(peaks)

    dominated = {o.small_pos for o in overlaps}
    return [p for k, p in enumerate(peaks) if k not in dominated]
