"""
두 개의 타임스탬프 스트림(레퍼런스 / 라이브)을 SessionEngine에 흘려보내는 드라이버
"""

from __future__ import annotations

import asyncio
import heapq
import os
import sys

import numpy as np

from .pose_utils import JointId, angles_to_array, array_to_angles
from .session import SessionEngine

REFERENCE = 0
LIVE = 1


def merge_streams(ref_frames, live_frames):
    """
    (timestamp_ms, AngleFrame) 두 시퀀스를 시간순으로 합친다.
    같은 시각이면 레퍼런스가 먼저. Yields (kind, timestamp_ms, frame).
    """
    ref_iter = ((t, REFERENCE, i, f) for i, (t, f) in enumerate(ref_frames))
    live_iter = ((t, LIVE, i, f) for i, (t, f) in enumerate(live_frames))
    for t, kind, _, frame in heapq.merge(ref_iter, live_iter, key=lambda x: (x[0], x[1], x[2])):
        yield kind, t, frame


def compare_angle_streams(ref_frames, live_frames, engine: SessionEngine | None = None, **engine_kw):
    """Replay two recorded streams in timestamp order and return the final SessionScores."""
    if engine is None:
        engine = SessionEngine(**engine_kw)
    token = engine.start()
    for kind, _, frame in merge_streams(ref_frames, live_frames):
        if kind == REFERENCE:
            engine.push_reference(frame, token)
        else:
            engine.push_live(frame, token)
    return engine.end()


async def _pump(source, push, token):
    async for _, frame in source:
        push(frame, token)
        # 다른 생산자에게 이벤트 루프 양보
        await asyncio.sleep(0)


async def run_streams(engine: SessionEngine, reference, live):
    """
    reference / live: async iterable of (timestamp_ms, AngleFrame).
    Both producers run as tasks on the current loop; each one tags its
    updates with the token captured at start. Scores once both end.
    """
    token = engine.start()
    tasks = [
        asyncio.ensure_future(_pump(reference, engine.push_reference, token)),
        asyncio.ensure_future(_pump(live, engine.push_live, token)),
    ]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        # 한쪽 생산자가 실패하면 나머지를 취소하고 세션을 닫는다
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        engine.stop()
        raise
    return engine.end()


async def replay(frames, rtf=0.0):
    """
    기록된 (timestamp_ms, AngleFrame) 시퀀스를 async 스트림으로 재생.
    rtf > 0 이면 타임스탬프 간격 * rtf 만큼 실제로 대기.
    """
    prev_t = None
    for t, frame in frames:
        if rtf > 0 and prev_t is not None and t > prev_t:
            await asyncio.sleep((t - prev_t) / 1000.0 * rtf)
        prev_t = t
        yield t, frame


def timestamps_path(npy_path):
    root, _ = os.path.splitext(npy_path)
    return root + "_ts.npy"


def save_reference(npy_path, frames):
    """(timestamp_ms, AngleFrame) 리스트 -> <name>.npy (T, 8) + <name>_ts.npy (T,)"""
    angles = np.zeros((len(frames), len(JointId)), dtype=np.float32)
    for i, (_, f) in enumerate(frames):
        angles[i] = angles_to_array(f)
    ts = np.array([t for t, _ in frames], dtype=np.int64)
    np.save(npy_path, angles)
    np.save(timestamps_path(npy_path), ts)


def load_reference(npy_path, ts_path=None, fps=30.0):
    """
    extract.py로 만든 .npy를 (timestamp_ms, AngleFrame) 리스트로 로드.
    타임스탬프 파일이 없으면 fps 기준으로 만든다.
    """
    if not os.path.exists(npy_path):
        raise FileNotFoundError(f"{npy_path} not found.")
    angles = np.load(npy_path)
    if angles.ndim != 2 or angles.shape[1] != len(JointId):
        raise ValueError(f"{npy_path}: expected (T, {len(JointId)}) angles, got {angles.shape}")
    ts_path = ts_path or timestamps_path(npy_path)
    if os.path.exists(ts_path):
        ts = np.load(ts_path)
    else:
        print(f"[INFO] 타임스탬프 파일이 없음: {ts_path} (fps={fps}로 계산)", file=sys.stderr, flush=True)
        ts = np.round(np.arange(len(angles)) * 1000.0 / fps).astype(np.int64)
    if len(ts) != len(angles):
        raise ValueError(f"timestamps ({len(ts)}) and angles ({len(angles)}) length mismatch")
    return [(int(t), array_to_angles(row)) for t, row in zip(ts, angles)]
