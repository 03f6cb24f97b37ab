"""
Motion comparison & scoring 모듈
"""

from .config import CONFIG
from .pose_utils import (
    JointId, JOINT_TRIPLES, JOINT_NAMES, JOINT_GROUPS, GROUPS,
    joint_angle, extract_joint_angles, angles_to_array, array_to_angles
)
from .history import HistoryBuffer
from .matcher import FrameMatcher
from .scoring import (
    ErrorStats, ScoreAccumulator, SessionScores,
    score_from_rms, stats_score, final_scores
)
from .session import SessionEngine, SessionState
from .streams import (
    merge_streams, compare_angle_streams, run_streams, replay,
    timestamps_path, save_reference, load_reference
)
from .sections import (
    Section, parse_sections, load_sections, find_section, section_at, clip_to_section
)

__all__ = [
    'CONFIG',
    'JointId',
    'JOINT_TRIPLES',
    'JOINT_NAMES',
    'JOINT_GROUPS',
    'GROUPS',
    'joint_angle',
    'extract_joint_angles',
    'angles_to_array',
    'array_to_angles',
    'HistoryBuffer',
    'FrameMatcher',
    'ErrorStats',
    'ScoreAccumulator',
    'SessionScores',
    'score_from_rms',
    'stats_score',
    'final_scores',
    'SessionEngine',
    'SessionState',
    'merge_streams',
    'compare_angle_streams',
    'run_streams',
    'replay',
    'timestamps_path',
    'save_reference',
    'load_reference',
    'Section',
    'parse_sections',
    'load_sections',
    'find_section',
    'section_at',
    'clip_to_section',
]
