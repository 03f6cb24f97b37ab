"""run_compare.py
사용자 동영상을 레퍼런스와 비교해서 최종 점수(overall / arms / legs)를 출력.
사용 예:
  python3 src/demo/run_compare.py \
    --ref-video /path/to/ref_video.mp4 \
    --user-video /path/to/user.mp4 \
    --sections /path/to/sections.json --section "Arm Wave"
"""
from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path

CUR = Path(__file__).resolve()
SRC_DIR = CUR.parents[1]
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from motionscore import CONFIG, load_sections, find_section
from motionscore.video_compare import compare_videos


def parse_args():
    p = argparse.ArgumentParser()
    p.add_argument('--ref-video', required=True, help='레퍼런스 영상 또는 extract.py로 만든 .npy')
    p.add_argument('--user-video', required=True)
    p.add_argument('--sections', default=None, help='섹션 JSON 경로')
    p.add_argument('--section', default=None, help='섹션 제목 또는 0부터 시작하는 번호')
    p.add_argument('--stride', type=int, default=1, help='포즈 추출 프레임 간격')
    p.add_argument('--live-stride', type=int, default=CONFIG['LIVE_STRIDE'], help='N번째 라이브 프레임마다 비교')
    p.add_argument('--model', default=None, help='pose_landmarker .task 경로')
    return p.parse_args()


def main():
    a = parse_args()
    for path in [a.ref_video, a.user_video]:
        if not os.path.exists(path):
            print(f'[run_compare error] 파일을 찾을 수 없습니다: {path}')
            sys.exit(1)
    try:
        section = None
        if a.section is not None:
            sections = load_sections(a.sections or CONFIG['SECTIONS_JSON_PATH'],
                                     video_name=os.path.basename(a.ref_video))
            section = find_section(sections, a.section)
        compare_videos(
            ref_video=a.ref_video,
            user_video=a.user_video,
            section=section,
            stride=a.stride,
            live_stride=a.live_stride,
            model_path=a.model,
        )
    except Exception as e:
        print(f'[run_compare error] {e}')
        sys.exit(1)


if __name__ == '__main__':
    main()
