"""
관절 각도 관련 유틸리티: 관절 정의, 각도 계산, 랜드마크 -> AngleFrame 변환
"""

import math
from enum import IntEnum

import numpy as np

from .config import CONFIG


class JointId(IntEnum):
    LEFT_ELBOW = 0
    RIGHT_ELBOW = 1
    LEFT_SHOULDER = 2
    RIGHT_SHOULDER = 3
    LEFT_KNEE = 4
    RIGHT_KNEE = 5
    LEFT_HIP = 6
    RIGHT_HIP = 7


# (proximal, vertex, distal) in MediaPipe Pose numbering
JOINT_TRIPLES = {
    # 왼어깨, 왼팔꿈치, 왼손목 -> 팔꿈치
    JointId.LEFT_ELBOW: (11, 13, 15),
    JointId.RIGHT_ELBOW: (12, 14, 16),
    # 왼팔꿈치, 왼어깨, 왼엉덩 -> 겨드랑이
    JointId.LEFT_SHOULDER: (13, 11, 23),
    JointId.RIGHT_SHOULDER: (14, 12, 24),
    # 왼엉덩, 왼무릎, 왼발목 -> 무릎 굽힘
    JointId.LEFT_KNEE: (23, 25, 27),
    JointId.RIGHT_KNEE: (24, 26, 28),
    # 왼어깨, 왼엉덩, 왼무릎 -> 고관절
    JointId.LEFT_HIP: (11, 23, 25),
    JointId.RIGHT_HIP: (12, 24, 26),
}

JOINT_NAMES = {j: j.name.lower().replace("_", " ") for j in JointId}

# 관절 -> 점수 그룹. 모든 관절은 "overall"에 포함됨
JOINT_GROUPS = {
    JointId.LEFT_ELBOW: ("overall", "arms"),
    JointId.RIGHT_ELBOW: ("overall", "arms"),
    JointId.LEFT_SHOULDER: ("overall", "arms"),
    JointId.RIGHT_SHOULDER: ("overall", "arms"),
    JointId.LEFT_KNEE: ("overall", "legs"),
    JointId.RIGHT_KNEE: ("overall", "legs"),
    JointId.LEFT_HIP: ("overall", "legs"),
    JointId.RIGHT_HIP: ("overall", "legs"),
}
GROUPS = ("overall", "arms", "legs")


def joint_angle(a, b, c) -> float:
    """
    Angle ABC in degrees, in [0, 180].
    Callers guarantee B differs from A and C.
    """
    v1 = np.asarray(a, dtype=np.float64)[:2] - np.asarray(b, dtype=np.float64)[:2]
    v2 = np.asarray(c, dtype=np.float64)[:2] - np.asarray(b, dtype=np.float64)[:2]
    cos = np.dot(v1, v2) / (np.linalg.norm(v1) * np.linalg.norm(v2))
    cos = float(np.clip(cos, -1.0, 1.0))
    return math.degrees(math.acos(cos))


def _as_landmarks(landmarks):
    lm = np.asarray(landmarks, dtype=np.float64)
    if lm.ndim != 2 or lm.shape[1] < 2:
        raise ValueError(f"landmarks must be (N, 3) or (N, 4), got shape {lm.shape}")
    return lm


def _safe_get_xy(lm, idx, vis_thresh):
    if idx >= lm.shape[0]:
        return None
    xy = lm[idx, :2]
    if not np.all(np.isfinite(xy)):
        return None
    # 마지막 열이 visibility. (x, y)만 있으면 visibility 없음으로 간주
    if vis_thresh is not None and lm.shape[1] > 2:
        vis = lm[idx, -1]
        if not np.isfinite(vis) or vis < vis_thresh:
            return None
    return xy


def extract_joint_angles(landmarks, vis_thresh=CONFIG['VIS_THRESHOLD'], image_size=None):
    """
    랜드마크 배열에서 AngleFrame(dict: JointId -> degrees)을 만든다.

    landmarks: (N, 3) [x, y, visibility] 또는 (N, 4) [x, y, z, visibility]
    vis_thresh: None이면 visibility를 보지 않음
    image_size: (w, h). 주어지면 정규화 좌표를 픽셀 좌표로 바꿔서 각도 계산

    세 랜드마크 중 하나라도 없거나 visibility가 낮으면 해당 관절은 생략한다 (0으로 채우지 않음).
    """
    if landmarks is None:
        return {}
    lm = _as_landmarks(landmarks)
    scale = None
    if image_size is not None:
        scale = np.array(image_size[:2], dtype=np.float64)

    frame = {}
    for joint, (ia, ib, ic) in JOINT_TRIPLES.items():
        A = _safe_get_xy(lm, ia, vis_thresh)
        B = _safe_get_xy(lm, ib, vis_thresh)
        C = _safe_get_xy(lm, ic, vis_thresh)
        if A is None or B is None or C is None:
            continue
        if scale is not None:
            A, B, C = A * scale, B * scale, C * scale
        if np.linalg.norm(A - B) < 1e-9 or np.linalg.norm(C - B) < 1e-9:
            continue
        frame[joint] = joint_angle(A, B, C)
    return frame


def angles_to_array(frame):
    """AngleFrame -> (8,) float32, 없는 관절은 NaN"""
    row = np.full(len(JointId), np.nan, dtype=np.float32)
    for joint, deg in frame.items():
        row[int(joint)] = deg
    return row


def array_to_angles(row):
    """(8,) 배열 -> AngleFrame, NaN은 제외"""
    return {JointId(i): float(v) for i, v in enumerate(row) if np.isfinite(v)}
