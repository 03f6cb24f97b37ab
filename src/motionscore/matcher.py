"""
라이브 AngleFrame과 레퍼런스 히스토리를 비교하는 매칭 클래스
"""

import math

from .config import CONFIG


class FrameMatcher:
    """
    Latency-tolerant matcher: the live frame is compared against every
    buffered reference frame and the one with the lowest mean squared
    per-joint error wins.
    """

    def __init__(self, missing_penalty=CONFIG['MISSING_PENALTY_DEG']):
        if missing_penalty < 0:
            raise ValueError(f"missing_penalty must be >= 0, got {missing_penalty}")
        self.missing_penalty = float(missing_penalty)

    def joint_diffs(self, ref, live):
        """레퍼런스 프레임에 있는 관절마다 |ref - live|, 라이브에 없으면 missing_penalty"""
        diffs = {}
        for joint, ref_deg in ref.items():
            live_deg = live.get(joint)
            if live_deg is None:
                diffs[joint] = self.missing_penalty
            else:
                diffs[joint] = abs(ref_deg - live_deg)
        return diffs

    def frame_error(self, ref, live):
        """Mean squared error over the reference frame's joints (inf if it has none)."""
        if not ref:
            return math.inf
        diffs = self.joint_diffs(ref, live)
        return sum(d * d for d in diffs.values()) / len(diffs)

    def best_match(self, live, candidates):
        """
        Returns (best_idx, best_mse, diffs).
        Ties go to the first (oldest) candidate. With no candidates the
        result is (-1, inf, {}).
        """
        best_idx, best_err = -1, math.inf
        for i, ref in enumerate(candidates):
            err = self.frame_error(ref, live)
            if best_idx < 0 or err < best_err:
                best_idx, best_err = i, err
        if best_idx < 0:
            return -1, math.inf, {}
        return best_idx, best_err, self.joint_diffs(candidates[best_idx], live)

    def compare(self, live, candidates, fallback=None):
        """
        ComparisonSample for `live`. If the buffer snapshot is empty the
        single fallback frame (possibly empty) is used instead.
        """
        if not candidates:
            candidates = [fallback or {}]
        _, _, diffs = self.best_match(live, candidates)
        return diffs
