"""
엔진 기본 설정값 (여기서 기본값을 수정하세요)
"""

import os

# ============================================================
# 설정 섹션
# ============================================================
CONFIG = {
    # 랜드마크 설정
    'VIS_THRESHOLD': 0.15,  # 랜드마크 최소 visibility (None: 임계값 없이 모두 사용)

    # 매칭 설정
    'HISTORY_SIZE': 10,           # 레퍼런스 히스토리 길이 K (약 1초 분량)
    'MISSING_PENALTY_DEG': 90.0,  # 라이브 프레임에 관절이 없을 때 적용하는 기본 오차 (도)
    'LIVE_STRIDE': 10,            # 라이브 프레임 N개마다 한 번 비교

    # 점수 계산 설정
    'SCORE_TOLERANCE_DEG': 45.0,  # RMS가 이 값 이상이면 0점
    'SCORE_EXPONENT': 3.0,        # 감쇠 곡선 지수 (3: cubic)

    # 포즈 추출 설정
    'POSE_MODEL_PATH': os.environ.get('POSE_LANDMARKER_MODEL', 'models/pose_landmarker_lite.task'),

    # 섹션 구간 설정
    'SECTIONS_JSON_PATH': 'data/sections.json',
}
# ============================================================
