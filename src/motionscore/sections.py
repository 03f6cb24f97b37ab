"""
섹션 구간(sections) 관련 함수들

영상 분할 결과 JSON 형식 예:
{
  "clap.mp4": {
    "intervals": [
      {"start": 0, "end": 4200, "chunk_title": "Intro"},
      {"start": 4200, "end": 9000, "chunk_title": "Arm Wave"}
    ]
  }
}
파일명 키 없이 {"intervals": [...]} 만 있어도 된다. 시간 단위는 ms.
"""

import os
import json
import sys
from typing import NamedTuple


class Section(NamedTuple):
    start_ms: int
    end_ms: int
    title: str

    def contains(self, t_ms):
        return self.start_ms <= t_ms <= self.end_ms


def parse_sections(data, video_name=None):
    """Parse the segmentation payload; malformed entries are skipped."""
    if isinstance(data, dict) and video_name is not None and video_name in data:
        data = data[video_name]
    if isinstance(data, dict):
        items = data.get("intervals", [])
    elif isinstance(data, list):
        items = data
    else:
        items = []

    sections = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            s = int(item["start"])
            e = int(item["end"])
        except (KeyError, TypeError, ValueError):
            continue
        if e < s:
            s, e = e, s
        title = str(item.get("chunk_title", "")).strip() or f"Section {len(sections) + 1}"
        sections.append(Section(s, e, title))
    sections.sort(key=lambda sec: sec.start_ms)
    return sections


def load_sections(json_path, video_name=None):
    """
    섹션 JSON을 읽어서 Section 리스트로 반환. 파일이 없거나 깨졌으면 빈 리스트.
    """
    if not json_path or not os.path.exists(json_path):
        print(f"[INFO] 섹션 파일이 없음: {json_path}", file=sys.stderr, flush=True)
        return []
    try:
        with open(json_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[WARN] 섹션 JSON 파싱 실패: {json_path} ({e})", file=sys.stderr, flush=True)
        return []
    sections = parse_sections(data, video_name)
    if not sections:
        print(f"[INFO] '{video_name}'에 해당하는 섹션이 없습니다.", file=sys.stderr, flush=True)
    else:
        print(f"[INFO] 섹션 {len(sections)}개 로드됨:", file=sys.stderr, flush=True)
        for sec in sections:
            print(f"   - {sec.title}: {sec.start_ms}ms ~ {sec.end_ms}ms", file=sys.stderr, flush=True)
    return sections


def find_section(sections, title):
    """Section by title (case-insensitive) or by 0-based index string."""
    if isinstance(title, int) or (isinstance(title, str) and title.isdigit()):
        idx = int(title)
        if 0 <= idx < len(sections):
            return sections[idx]
        raise KeyError(f"section index {idx} out of range ({len(sections)} sections)")
    for sec in sections:
        if sec.title.lower() == str(title).lower():
            return sec
    raise KeyError(f"'{title}' not found in sections.")


def section_at(sections, t_ms):
    for sec in sections:
        if sec.contains(t_ms):
            return sec
    return None


def clip_to_section(frames, section):
    """
    (timestamp_ms, AngleFrame) 시퀀스 중 구간 안의 것만 남기고
    타임스탬프를 구간 시작 기준(0ms)으로 옮긴다.
    """
    if section is None:
        return list(frames)
    return [(t - section.start_ms, f) for t, f in frames if section.contains(t)]
