"""
레퍼런스 프레임 히스토리 버퍼
"""

from collections import deque

from .config import CONFIG


class HistoryBuffer:
    """최근 K개의 레퍼런스 AngleFrame을 보관하는 FIFO 버퍼"""

    def __init__(self, capacity=CONFIG['HISTORY_SIZE']):
        if int(capacity) < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._frames = deque(maxlen=self.capacity)

    def push(self, frame):
        # deque(maxlen)이 꽉 차면 head가 자동으로 빠진다
        self._frames.append(dict(frame))

    def snapshot(self):
        """Oldest-to-newest copy of the buffered frames."""
        return [dict(f) for f in self._frames]

    def latest(self):
        if not self._frames:
            return None
        return dict(self._frames[-1])

    def clear(self):
        self._frames.clear()

    def __len__(self):
        return len(self._frames)
