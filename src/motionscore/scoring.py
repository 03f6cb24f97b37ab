"""
오차 누적 및 최종 점수 계산
"""

import math
from typing import NamedTuple

from .config import CONFIG
from .pose_utils import JOINT_GROUPS, GROUPS


class SessionScores(NamedTuple):
    overall: float
    arms: float
    legs: float


class ErrorStats:
    """(sum |diff|, sum diff^2, count) 누적"""

    __slots__ = ("sum_abs", "sum_sq", "count")

    def __init__(self):
        self.reset()

    def add(self, diff):
        self.sum_abs += diff
        self.sum_sq += diff * diff
        self.count += 1

    def reset(self):
        self.sum_abs = 0.0
        self.sum_sq = 0.0
        self.count = 0

    def mean_abs(self):
        return self.sum_abs / self.count if self.count else 0.0

    def rms(self):
        if self.count == 0:
            return 0.0
        return math.sqrt(max(0.0, self.sum_sq / self.count))

    def __repr__(self):
        return f"ErrorStats(sum_abs={self.sum_abs:.2f}, sum_sq={self.sum_sq:.2f}, count={self.count})"


class ScoreAccumulator:
    def __init__(self, groups=None):
        self.groups = groups if groups is not None else JOINT_GROUPS
        # overall / arms / legs는 항상 있고, 테이블에 다른 그룹이 있으면 추가
        self.stats = {name: ErrorStats() for name in GROUPS}
        for joint_groups in self.groups.values():
            for name in joint_groups:
                self.stats.setdefault(name, ErrorStats())

    def add_sample(self, sample):
        """ComparisonSample(dict: JointId -> diff)를 그룹별로 누적"""
        for joint, diff in sample.items():
            for name in self.groups.get(joint, ("overall",)):
                self.stats[name].add(float(diff))

    def reset(self):
        for s in self.stats.values():
            s.reset()

    @property
    def overall(self):
        return self.stats["overall"]

    @property
    def arms(self):
        return self.stats["arms"]

    @property
    def legs(self):
        return self.stats["legs"]


def score_from_rms(rms, tolerance=CONFIG['SCORE_TOLERANCE_DEG'], exponent=CONFIG['SCORE_EXPONENT']):
    """
    RMS 오차(도) -> 0~100점.
      score = 100 * (1 - (rms / tolerance) ** exponent), rms >= tolerance 이면 0

    calibration: 가만히 서 있기(~34deg) -> ~57점, 열심히 따라하기(~26deg) -> ~80점
    """
    if rms >= tolerance:
        return 0.0
    return max(0.0, 100.0 * (1.0 - (rms / tolerance) ** exponent))


def stats_score(stats, tolerance=CONFIG['SCORE_TOLERANCE_DEG'], exponent=CONFIG['SCORE_EXPONENT']):
    if stats.count == 0:
        return 0.0
    return score_from_rms(stats.rms(), tolerance, exponent)


def final_scores(acc, tolerance=CONFIG['SCORE_TOLERANCE_DEG'], exponent=CONFIG['SCORE_EXPONENT']):
    if tolerance <= 0:
        raise ValueError(f"tolerance must be > 0, got {tolerance}")
    if exponent <= 0:
        raise ValueError(f"exponent must be > 0, got {exponent}")
    return SessionScores(
        overall=stats_score(acc.overall, tolerance, exponent),
        arms=stats_score(acc.arms, tolerance, exponent),
        legs=stats_score(acc.legs, tolerance, exponent),
    )
