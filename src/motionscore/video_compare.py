"""
비디오 비교 모드: 로컬 사용자 동영상과 레퍼런스 동영상을 비교해서 최종 점수 계산
"""

import sys

import cv2
import numpy as np

from .config import CONFIG
from .extractor import PoseExtractor
from .pose_utils import angles_to_array, JointId
from .sections import clip_to_section
from .session import SessionEngine
from .streams import compare_angle_streams, load_reference


def video_angle_frames(video_path, pe, stride=1, max_frames=None, vis_thresh=CONFIG['VIS_THRESHOLD']):
    """
    영상의 stride 프레임마다 AngleFrame 추출.
    Returns list of (timestamp_ms, AngleFrame).
    """
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise SystemExit(f"영상 열기 실패: {video_path}")
    fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
    fps = float(fps if fps > 1e-3 else 30.0)
    stride = max(1, int(stride))

    frames = []
    idx = 0
    try:
        while True:
            ok, bgr = cap.read()
            if not ok:
                break
            if idx % stride == 0:
                # 일부 코덱은 POS_MSEC가 0을 반환하므로 fps로 계산
                t_ms = int(round(idx * 1000.0 / fps))
                frames.append((t_ms, pe.angles(bgr, t_ms, vis_thresh=vis_thresh)))
                if max_frames and len(frames) >= max_frames:
                    break
            idx += 1
    finally:
        cap.release()
    return frames


def extract_reference(video_path, stride=1, max_frames=None, model_path=None,
                      vis_thresh=CONFIG['VIS_THRESHOLD']):
    """레퍼런스 영상 -> (angles (T, 8) float32, timestamps (T,) int64)"""
    with PoseExtractor(model_path=model_path, running_mode="video") as pe:
        frames = video_angle_frames(video_path, pe, stride=stride, max_frames=max_frames,
                                    vis_thresh=vis_thresh)
    if not frames:
        return np.zeros((0, len(JointId)), dtype=np.float32), np.zeros((0,), dtype=np.int64)
    angles = np.stack([angles_to_array(f) for _, f in frames]).astype(np.float32)
    ts = np.array([t for t, _ in frames], dtype=np.int64)
    return angles, ts


def print_summary(scores, comparisons, title="VIDEO COMPARE SUMMARY"):
    print(f"\n===== {title} =====")
    print(f"Comparisons: {comparisons}")
    print(f"OVERALL: {scores.overall:.1f}%")
    print(f"ARMS   : {scores.arms:.1f}%")
    print(f"LEGS   : {scores.legs:.1f}%")


def compare_videos(ref_video,
                   user_video,
                   section=None,
                   stride=1,
                   live_stride=CONFIG['LIVE_STRIDE'],
                   history_size=CONFIG['HISTORY_SIZE'],
                   vis_thresh=CONFIG['VIS_THRESHOLD'],
                   model_path=None):
    """
    - ref_video: 레퍼런스 영상 또는 extract.py로 만든 .npy
    - user_video: 비교 대상 로컬 동영상
    - section: sections.Section (주어지면 그 구간만 채점)
    - stride: 영상에서 몇 프레임마다 포즈를 추출할지
    Returns SessionScores.
    """
    if ref_video.endswith(".npy"):
        ref_frames = load_reference(ref_video)
    else:
        with PoseExtractor(model_path=model_path, running_mode="video") as pe:
            ref_frames = video_angle_frames(ref_video, pe, stride=stride, vis_thresh=vis_thresh)
    # VIDEO 모드는 타임스탬프가 증가해야 하므로 사용자 영상용 추출기를 새로 만든다
    with PoseExtractor(model_path=model_path, running_mode="video") as pe:
        user_frames = video_angle_frames(user_video, pe, stride=stride, vis_thresh=vis_thresh)

    if section is not None:
        print(f"[INFO] 섹션 '{section.title}' ({section.start_ms}ms ~ {section.end_ms}ms)만 채점",
              file=sys.stderr, flush=True)
        # 사용자 영상은 섹션 연습 녹화본이므로 레퍼런스만 자른다
        ref_frames = clip_to_section(ref_frames, section)

    engine = SessionEngine(history_size=history_size, live_stride=live_stride, vis_thresh=vis_thresh)
    scores = compare_angle_streams(ref_frames, user_frames, engine=engine)
    print_summary(scores, engine.comparisons)
    return scores
