"""
포즈 추출기 클래스 (MediaPipe Pose Landmarker 래퍼)
"""

import os

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks.python import BaseOptions
from mediapipe.tasks.python.vision import (
    PoseLandmarker, PoseLandmarkerOptions, RunningMode,
)

from .config import CONFIG
from .pose_utils import extract_joint_angles

NUM_LANDMARKS = 33

_RUNNING_MODES = {
    "image": RunningMode.IMAGE,
    "video": RunningMode.VIDEO,
}


class PoseExtractor:
    def __init__(self, model_path=None, running_mode="video",
                 min_detection_confidence=0.5, min_tracking_confidence=0.5):
        model_path = model_path or CONFIG['POSE_MODEL_PATH']
        if not os.path.isfile(model_path):
            raise FileNotFoundError(
                f"Pose landmarker model not found at {model_path}. "
                "Set POSE_LANDMARKER_MODEL or place pose_landmarker_lite.task in models/."
            )
        if running_mode not in _RUNNING_MODES:
            raise ValueError(f"running_mode must be one of {sorted(_RUNNING_MODES)}, got {running_mode!r}")
        self.running_mode = running_mode
        self.landmarker = PoseLandmarker.create_from_options(
            PoseLandmarkerOptions(
                base_options=BaseOptions(model_asset_path=model_path),
                running_mode=_RUNNING_MODES[running_mode],
                num_poses=1,
                min_pose_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
        )

    def infer(self, bgr, timestamp_ms=0):
        """(33, 4) [x, y, z, visibility] 또는 사람이 없으면 None"""
        rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        if self.running_mode == "video":
            res = self.landmarker.detect_for_video(mp_image, int(timestamp_ms))
        else:
            res = self.landmarker.detect(mp_image)
        if not res.pose_landmarks:
            return None
        arr = np.zeros((NUM_LANDMARKS, 4), dtype=np.float32)
        for i, p in enumerate(res.pose_landmarks[0][:NUM_LANDMARKS]):
            vis = p.visibility if p.visibility is not None else 1.0
            arr[i, 0] = p.x; arr[i, 1] = p.y; arr[i, 2] = p.z; arr[i, 3] = vis
        return arr

    def angles(self, bgr, timestamp_ms=0, vis_thresh=CONFIG['VIS_THRESHOLD']):
        """프레임 -> AngleFrame (픽셀 좌표 기준 각도)"""
        arr = self.infer(bgr, timestamp_ms)
        if arr is None:
            return {}
        h, w = bgr.shape[:2]
        return extract_joint_angles(arr, vis_thresh=vis_thresh, image_size=(w, h))

    def close(self):
        self.landmarker.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
