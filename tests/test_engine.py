"""Tests for the matching core: joint angles, extraction, history buffer, matcher, scoring."""

import math

import numpy as np
import pytest

from motionscore import (
    GROUPS,
    JOINT_GROUPS,
    FrameMatcher,
    HistoryBuffer,
    JointId,
    ScoreAccumulator,
    angles_to_array,
    array_to_angles,
    extract_joint_angles,
    final_scores,
    joint_angle,
    score_from_rms,
)

ARMS = {JointId.LEFT_ELBOW, JointId.RIGHT_ELBOW, JointId.LEFT_SHOULDER, JointId.RIGHT_SHOULDER}
LEGS = {JointId.LEFT_KNEE, JointId.RIGHT_KNEE, JointId.LEFT_HIP, JointId.RIGHT_HIP}


def _pose(vis=1.0):
    """Standing pose, forearms raised, (33, 3) [x, y, visibility]."""
    lm = np.zeros((33, 3), dtype=np.float32)
    lm[:, 2] = vis
    pts = {
        11: (0.40, 0.30), 12: (0.60, 0.30),
        13: (0.30, 0.30), 14: (0.70, 0.30),
        15: (0.30, 0.10), 16: (0.70, 0.10),
        23: (0.42, 0.60), 24: (0.58, 0.60),
        25: (0.42, 0.80), 26: (0.58, 0.80),
        27: (0.42, 1.00), 28: (0.58, 1.00),
    }
    for idx, (x, y) in pts.items():
        lm[idx, 0] = x
        lm[idx, 1] = y
    return lm


def _frame(value):
    return {j: float(value) for j in JointId}


# ---------------------------------------------------------------------------
# 1. Angle computation
# ---------------------------------------------------------------------------

class TestJointAngle:
    def test_right_angle(self):
        assert joint_angle((1, 0), (0, 0), (0, 1)) == pytest.approx(90.0)

    def test_straight_line_is_180(self):
        assert joint_angle((-1, 0), (0, 0), (3, 0)) == pytest.approx(180.0)

    def test_folded_is_0(self):
        assert joint_angle((1, 1), (0, 0), (2, 2)) == pytest.approx(0.0, abs=1e-4)

    def test_range(self):
        rng = np.random.default_rng(0)
        for _ in range(200):
            a, b, c = rng.uniform(-5, 5, size=(3, 2))
            ang = joint_angle(a, b, c)
            assert 0.0 <= ang <= 180.0

    def test_ignores_extra_columns(self):
        assert joint_angle((1, 0, 0.9), (0, 0, 0.9), (0, 1, 0.9)) == pytest.approx(90.0)


# ---------------------------------------------------------------------------
# 2. Joint angle extraction
# ---------------------------------------------------------------------------

class TestExtraction:
    def test_all_joints_when_visible(self):
        frame = extract_joint_angles(_pose())
        assert set(frame) == set(JointId)
        for v in frame.values():
            assert 0.0 <= v <= 180.0

    def test_known_angles(self):
        frame = extract_joint_angles(_pose())
        assert frame[JointId.LEFT_ELBOW] == pytest.approx(90.0, abs=1e-4)
        assert frame[JointId.RIGHT_ELBOW] == pytest.approx(90.0, abs=1e-4)
        assert frame[JointId.LEFT_KNEE] == pytest.approx(180.0, abs=1e-4)
        assert frame[JointId.RIGHT_KNEE] == pytest.approx(180.0, abs=1e-4)

    def test_low_visibility_joint_omitted(self):
        lm = _pose()
        lm[13, 2] = 0.1  # left elbow landmark
        frame = extract_joint_angles(lm, vis_thresh=0.15)
        assert JointId.LEFT_ELBOW not in frame
        assert JointId.LEFT_SHOULDER not in frame
        assert JointId.RIGHT_ELBOW in frame

    def test_no_threshold_keeps_everything(self):
        lm = _pose(vis=0.01)
        assert set(extract_joint_angles(lm, vis_thresh=None)) == set(JointId)
        assert extract_joint_angles(lm, vis_thresh=0.15) == {}

    def test_raising_threshold_only_removes_keys(self):
        lm = _pose()
        rng = np.random.default_rng(1)
        lm[:, 2] = rng.uniform(0.0, 1.0, size=33)
        prev = set(extract_joint_angles(lm, vis_thresh=None))
        for th in np.linspace(0.0, 1.0, 11):
            keys = set(extract_joint_angles(lm, vis_thresh=float(th)))
            assert keys <= prev
            prev = keys

    def test_four_column_landmarks(self):
        lm3 = _pose()
        lm4 = np.zeros((33, 4), dtype=np.float32)
        lm4[:, :2] = lm3[:, :2]
        lm4[:, 3] = lm3[:, 2]
        assert extract_joint_angles(lm4) == pytest.approx(extract_joint_angles(lm3))

    def test_missing_landmarks_short_array(self):
        lm = _pose()[:17]  # upper body only
        frame = extract_joint_angles(lm)
        assert set(frame) == {JointId.LEFT_ELBOW, JointId.RIGHT_ELBOW}

    def test_nan_coordinates_are_absent(self):
        lm = _pose()
        lm[27, 0] = np.nan
        assert JointId.LEFT_KNEE not in extract_joint_angles(lm)

    def test_degenerate_triplet_omitted(self):
        lm = _pose()
        lm[25, :2] = lm[23, :2]  # knee on top of hip
        frame = extract_joint_angles(lm)
        assert JointId.LEFT_KNEE not in frame
        assert JointId.LEFT_HIP not in frame

    def test_pixel_space(self):
        lm = np.zeros((33, 3), dtype=np.float32)
        lm[:, 2] = 1.0
        lm[11, :2] = (0.1, 0.0)
        lm[13, :2] = (0.0, 0.0)
        lm[15, :2] = (0.1, 0.1)
        assert extract_joint_angles(lm)[JointId.LEFT_ELBOW] == pytest.approx(45.0, abs=1e-4)
        scaled = extract_joint_angles(lm, image_size=(100, 200))
        assert scaled[JointId.LEFT_ELBOW] == pytest.approx(math.degrees(math.atan(2.0)), abs=1e-4)

    def test_none_landmarks(self):
        assert extract_joint_angles(None) == {}

    def test_bad_shape_raises(self):
        with pytest.raises(ValueError):
            extract_joint_angles(np.zeros(33))

    def test_array_codec(self):
        frame = {JointId.LEFT_KNEE: 120.0, JointId.RIGHT_ELBOW: 45.5}
        row = angles_to_array(frame)
        assert row.shape == (8,)
        assert np.isnan(row[int(JointId.LEFT_ELBOW)])
        assert array_to_angles(row) == pytest.approx(frame)


# ---------------------------------------------------------------------------
# 3. History buffer
# ---------------------------------------------------------------------------

class TestHistoryBuffer:
    def test_keeps_last_k_in_order(self):
        buf = HistoryBuffer(capacity=10)
        for i in range(11):
            buf.push(_frame(i))
        snap = buf.snapshot()
        assert len(snap) == 10
        assert [f[JointId.LEFT_ELBOW] for f in snap] == [float(i) for i in range(1, 11)]

    def test_push_without_eviction_appends(self):
        buf = HistoryBuffer(capacity=4)
        buf.push(_frame(1))
        buf.push(_frame(2))
        before = buf.snapshot()
        buf.push(_frame(3))
        after = buf.snapshot()
        assert after[:-1] == before
        assert after[-1] == _frame(3)

    def test_snapshot_is_a_copy(self):
        buf = HistoryBuffer(capacity=2)
        src = _frame(5)
        buf.push(src)
        src[JointId.LEFT_ELBOW] = 99.0
        snap = buf.snapshot()
        snap[0][JointId.LEFT_ELBOW] = 42.0
        assert buf.snapshot()[0][JointId.LEFT_ELBOW] == 5.0

    def test_latest_and_clear(self):
        buf = HistoryBuffer(capacity=3)
        assert buf.latest() is None
        buf.push(_frame(1))
        buf.push(_frame(2))
        assert buf.latest() == _frame(2)
        buf.clear()
        assert len(buf) == 0
        assert buf.snapshot() == []

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            HistoryBuffer(capacity=0)


# ---------------------------------------------------------------------------
# 4. Frame matcher
# ---------------------------------------------------------------------------

class TestFrameMatcher:
    def test_missing_live_joint_gets_penalty(self):
        m = FrameMatcher(missing_penalty=90.0)
        ref = {JointId.LEFT_ELBOW: 90.0, JointId.LEFT_KNEE: 100.0}
        live = {JointId.LEFT_ELBOW: 80.0}
        assert m.joint_diffs(ref, live) == {JointId.LEFT_ELBOW: 10.0, JointId.LEFT_KNEE: 90.0}
        assert m.frame_error(ref, live) == pytest.approx((10.0 ** 2 + 90.0 ** 2) / 2)

    def test_only_reference_joints_count(self):
        m = FrameMatcher()
        ref = {JointId.LEFT_ELBOW: 90.0}
        live = {JointId.LEFT_ELBOW: 90.0, JointId.LEFT_KNEE: 10.0}
        assert m.joint_diffs(ref, live) == {JointId.LEFT_ELBOW: 0.0}

    def test_picks_lowest_error(self):
        m = FrameMatcher()
        live = _frame(100)
        candidates = [_frame(60), _frame(95), _frame(130)]
        idx, err, diffs = m.best_match(live, candidates)
        assert idx == 1
        assert err == pytest.approx(25.0)
        assert set(diffs.values()) == {5.0}

    def test_tie_goes_to_oldest(self):
        m = FrameMatcher()
        idx, _, _ = m.best_match(_frame(100), [_frame(90), _frame(110), _frame(90)])
        assert idx == 0

    def test_empty_reference_frame_never_beats_real_one(self):
        m = FrameMatcher()
        idx, _, diffs = m.best_match(_frame(100), [{}, _frame(170)])
        assert idx == 1
        assert set(diffs.values()) == {70.0}

    def test_deterministic(self):
        m = FrameMatcher()
        rng = np.random.default_rng(3)
        candidates = [{j: float(v) for j, v in zip(JointId, rng.uniform(0, 180, 8))} for _ in range(10)]
        live = {j: float(v) for j, v in zip(JointId, rng.uniform(0, 180, 8))}
        first = m.compare(live, candidates)
        for _ in range(5):
            assert m.compare(live, candidates) == first

    def test_empty_buffer_uses_fallback(self):
        m = FrameMatcher()
        ref = {JointId.RIGHT_KNEE: 150.0}
        assert m.compare({JointId.RIGHT_KNEE: 140.0}, [], fallback=ref) == {JointId.RIGHT_KNEE: 10.0}
        assert m.compare(_frame(10), [], fallback=None) == {}
        assert m.best_match(_frame(10), []) == (-1, math.inf, {})

    def test_negative_penalty_rejected(self):
        with pytest.raises(ValueError):
            FrameMatcher(missing_penalty=-1)


# ---------------------------------------------------------------------------
# 5. Accumulator & scoring
# ---------------------------------------------------------------------------

class TestScoring:
    def test_group_table_is_exhaustive(self):
        assert set(JOINT_GROUPS) == set(JointId)
        for groups in JOINT_GROUPS.values():
            assert "overall" in groups
            assert set(groups) <= set(GROUPS)
        assert {j for j, g in JOINT_GROUPS.items() if "arms" in g} == ARMS
        assert {j for j, g in JOINT_GROUPS.items() if "legs" in g} == LEGS

    def test_accumulates_per_group(self):
        acc = ScoreAccumulator()
        acc.add_sample({JointId.LEFT_ELBOW: 10.0, JointId.RIGHT_KNEE: 20.0, JointId.LEFT_HIP: 0.0})
        assert acc.overall.count == 3
        assert acc.overall.sum_abs == pytest.approx(30.0)
        assert acc.overall.sum_sq == pytest.approx(500.0)
        assert acc.arms.count == 1
        assert acc.arms.sum_sq == pytest.approx(100.0)
        assert acc.legs.count == 2
        assert acc.legs.sum_abs == pytest.approx(20.0)

    def test_ungrouped_joint_counts_only_overall(self):
        acc = ScoreAccumulator(groups={JointId.LEFT_HIP: ("overall",)})
        acc.add_sample({JointId.LEFT_HIP: 12.0})
        assert acc.overall.count == 1
        assert acc.arms.count == 0
        assert acc.legs.count == 0

    def test_extra_group_in_table(self):
        table = {JointId.LEFT_HIP: ("overall", "torso"), JointId.RIGHT_HIP: ("overall", "torso")}
        acc = ScoreAccumulator(groups=table)
        acc.add_sample({JointId.LEFT_HIP: 3.0, JointId.RIGHT_HIP: 4.0, JointId.LEFT_KNEE: 5.0})
        assert acc.stats["torso"].count == 2
        assert acc.stats["torso"].sum_sq == pytest.approx(25.0)
        assert acc.overall.count == 3
        acc.reset()
        assert acc.stats["torso"].count == 0

    def test_zero_samples_scores_zero(self):
        assert final_scores(ScoreAccumulator()) == (0.0, 0.0, 0.0)

    def test_curve_endpoints(self):
        assert score_from_rms(0.0) == 100.0
        assert score_from_rms(45.0) == 0.0
        assert score_from_rms(90.0) == 0.0

    def test_calibration_points(self):
        assert score_from_rms(15.0) == pytest.approx(100.0 * (1 - 1 / 27))
        assert score_from_rms(34.0) == pytest.approx(57, abs=1.0)
        assert score_from_rms(26.0) == pytest.approx(80, abs=1.0)

    def test_monotonic(self):
        values = [score_from_rms(r) for r in np.linspace(0, 60, 61)]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_smaller_diffs_score_higher(self):
        small, large = ScoreAccumulator(), ScoreAccumulator()
        for _ in range(8):
            small.add_sample(_frame(10))
            large.add_sample(_frame(20))
        s, l = final_scores(small), final_scores(large)
        assert s.overall > l.overall
        assert s.arms > l.arms
        assert s.legs > l.legs

    def test_reset(self):
        acc = ScoreAccumulator()
        acc.add_sample(_frame(30))
        acc.reset()
        assert acc.overall.count == 0
        assert acc.overall.rms() == 0.0
        assert final_scores(acc).overall == 0.0

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError):
            final_scores(ScoreAccumulator(), tolerance=0)

    def test_invalid_exponent(self):
        acc = ScoreAccumulator()
        acc.add_sample({JointId.LEFT_ELBOW: 0.0})
        with pytest.raises(ValueError):
            final_scores(acc, exponent=-1)
        with pytest.raises(ValueError):
            final_scores(acc, exponent=0)
