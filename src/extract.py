# extract.py
# -----------------
# Usage:
#   python3 extract.py --ref_video data/clap.mp4 --out data/angles/clap.npy --stride 2
# Output:
#   - clap.npy    (T, 8) joint angles in degrees, NaN where the joint was not visible
#   - clap_ts.npy (T,)   timestamps in ms

import argparse
import os
import sys

import numpy as np

from motionscore.config import CONFIG
from motionscore.pose_utils import JOINT_NAMES, JointId
from motionscore.streams import timestamps_path
from motionscore.video_compare import extract_reference


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--ref_video", type=str, required=True, help="레퍼런스 비디오 경로")
    ap.add_argument("--out", type=str, default="ref.npy", help="각도 저장 경로")
    ap.add_argument("--stride", type=int, default=2, help="프레임 샘플링 간격")
    ap.add_argument("--max_frames", type=int, default=0, help="최대 프레임(0=무제한)")
    ap.add_argument("--vis_th", type=float, default=CONFIG['VIS_THRESHOLD'], help="랜드마크 visibility 임계값 (음수면 사용 안 함)")
    ap.add_argument("--model", type=str, default=None, help="pose_landmarker .task 경로")
    args = ap.parse_args()

    if not os.path.exists(args.ref_video):
        print(f"[extract error] 파일을 찾을 수 없습니다: {args.ref_video}")
        sys.exit(1)
    mf = None if args.max_frames == 0 else args.max_frames
    vis_th = None if args.vis_th < 0 else args.vis_th
    try:
        angles, ts = extract_reference(args.ref_video, stride=args.stride, max_frames=mf,
                                       model_path=args.model, vis_thresh=vis_th)
    except Exception as e:
        print(f"[extract error] {e}")
        sys.exit(1)
    if len(angles) == 0:
        print("[extract error] 레퍼런스에서 프레임을 읽지 못했습니다.")
        sys.exit(1)

    out_dir = os.path.dirname(args.out)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    np.save(args.out, angles)
    np.save(timestamps_path(args.out), ts)
    coverage = np.isfinite(angles).mean(axis=0) * 100.0
    print(f"Saved: {args.out}, {timestamps_path(args.out)} (frames={len(angles)}, stride={args.stride})")
    for j in JointId:
        print(f"   {JOINT_NAMES[j]:<15} {coverage[int(j)]:5.1f}% visible")


if __name__ == "__main__":
    main()
