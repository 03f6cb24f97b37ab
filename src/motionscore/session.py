"""
연습 세션 엔진: 히스토리 버퍼, 매처, 누적기를 하나의 객체로 묶고
세션 토큰으로 리셋 이후 늦게 도착한 콜백을 걸러낸다.
"""

from enum import Enum

from .config import CONFIG
from .history import HistoryBuffer
from .matcher import FrameMatcher
from .pose_utils import extract_joint_angles
from .scoring import ScoreAccumulator, SessionScores, final_scores


class SessionState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    SCORED = "scored"


ZERO_SCORES = SessionScores(0.0, 0.0, 0.0)


class SessionEngine:
    """
    Idle -> Accumulating -> Scored -> Idle

    All methods are synchronous and bounded-time, so they can be called
    directly from frame-arrival callbacks. A callback should capture
    `token` when it subscribes and pass it back; updates carrying a stale
    token are dropped.
    """

    def __init__(self,
                 history_size=CONFIG['HISTORY_SIZE'],
                 live_stride=CONFIG['LIVE_STRIDE'],
                 missing_penalty=CONFIG['MISSING_PENALTY_DEG'],
                 tolerance=CONFIG['SCORE_TOLERANCE_DEG'],
                 exponent=CONFIG['SCORE_EXPONENT'],
                 vis_thresh=CONFIG['VIS_THRESHOLD']):
        if int(live_stride) < 1:
            raise ValueError(f"live_stride must be >= 1, got {live_stride}")
        if tolerance <= 0:
            raise ValueError(f"tolerance must be > 0, got {tolerance}")
        if exponent <= 0:
            raise ValueError(f"exponent must be > 0, got {exponent}")
        self.history = HistoryBuffer(history_size)
        self.matcher = FrameMatcher(missing_penalty)
        self.accumulator = ScoreAccumulator()
        self.live_stride = int(live_stride)
        self.tolerance = float(tolerance)
        self.exponent = float(exponent)
        self.vis_thresh = vis_thresh

        self._state = SessionState.IDLE
        self._token = 0
        self._live_count = 0
        self._comparisons = 0
        self._last_sample = None
        self._last_result = None

    # ---- read-only views ----
    @property
    def state(self):
        return self._state

    @property
    def token(self):
        return self._token

    @property
    def last_sample(self):
        return None if self._last_sample is None else dict(self._last_sample)

    @property
    def last_result(self):
        return self._last_result

    @property
    def comparisons(self):
        return self._comparisons

    # ---- lifecycle ----
    def _clear(self, keep_counts=False):
        self.accumulator.reset()
        self.history.clear()
        self._live_count = 0
        if not keep_counts:
            self._comparisons = 0
            self._last_sample = None
        self._token += 1

    def start(self):
        """재생 시작. 이미 누적 중이면 현재 토큰을 그대로 돌려준다."""
        if self._state is SessionState.ACCUMULATING:
            return self._token
        self._clear()
        self._state = SessionState.ACCUMULATING
        return self._token

    def restart(self):
        self._clear()
        self._last_result = None
        self._state = SessionState.ACCUMULATING
        return self._token

    def stop(self):
        """Scored/Accumulating -> Idle without scoring."""
        self._clear()
        self._state = SessionState.IDLE

    def end(self):
        """재생 완료 이벤트. 세션당 한 번만 점수를 계산한다."""
        if self._state is SessionState.SCORED:
            return self._last_result
        if self._state is SessionState.IDLE:
            return ZERO_SCORES
        result = final_scores(self.accumulator, self.tolerance, self.exponent)
        self._last_result = result
        # 다음 세션을 위해 리셋. 토큰이 바뀌므로 진행 중이던 콜백은 버려짐
        self._clear(keep_counts=True)
        self._state = SessionState.SCORED
        return result

    def _accepts(self, token):
        if self._state is not SessionState.ACCUMULATING:
            return False
        return token is None or token == self._token

    # ---- frame callbacks ----
    def push_reference(self, frame, token=None):
        if not self._accepts(token):
            return False
        self.history.push(frame)
        return True

    def push_live(self, frame, token=None):
        if not self._accepts(token):
            return None
        self._live_count += 1
        # 첫 프레임 포함, live_stride 프레임마다 한 번 비교
        if (self._live_count - 1) % self.live_stride != 0:
            return None
        sample = self.matcher.compare(frame, self.history.snapshot(), fallback=self.history.latest())
        self.accumulator.add_sample(sample)
        self._comparisons += 1
        self._last_sample = sample
        return dict(sample)

    def push_reference_landmarks(self, landmarks, token=None, image_size=None):
        frame = extract_joint_angles(landmarks, vis_thresh=self.vis_thresh, image_size=image_size)
        return self.push_reference(frame, token)

    def push_live_landmarks(self, landmarks, token=None, image_size=None):
        frame = extract_joint_angles(landmarks, vis_thresh=self.vis_thresh, image_size=image_size)
        return self.push_live(frame, token)
