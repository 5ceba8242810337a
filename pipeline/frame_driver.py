"""单帧处理驱动：检测 -> 分类 -> 发布状态 -> 渲染"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from classifiers.attention_classifier import AttentionClassifier
from models.data_models import ClassificationResult, LandmarkSet, Status

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """一帧的处理结果"""
    faces: List[LandmarkSet]
    classification: ClassificationResult
    rendered: Optional[np.ndarray] = None


class FrameDriver:
    """
    串行化关键点检测调用。

    上一帧的检测尚未完成时新到的帧直接丢弃（计入 overrun_count），
    不会出现并发的检测调用。
    """

    def __init__(
        self,
        face_detector,
        classifier: Optional[AttentionClassifier] = None,
        renderer=None,
        status_sink: Optional[Callable[[Status], None]] = None,
    ):
        self.face_detector = face_detector
        self.classifier = classifier or AttentionClassifier()
        self.renderer = renderer
        self.status_sink = status_sink
        self.overrun_count = 0
        self._busy = threading.Lock()
        self._status_lock = threading.Lock()
        self._current_status = Status.NO_FACE
        self._last_result: Optional[ClassificationResult] = None

    @property
    def current_status(self) -> Status:
        with self._status_lock:
            return self._current_status

    @property
    def last_result(self) -> Optional[ClassificationResult]:
        with self._status_lock:
            return self._last_result

    def process_frame(self, frame: np.ndarray, alert_active: bool = False) -> Optional[FrameResult]:
        """处理一帧；检测仍在进行中时返回 None"""
        if not self._busy.acquire(blocking=False):
            self.overrun_count += 1
            logger.debug("上一帧检测未完成，丢弃当前帧 (累计 %d)", self.overrun_count)
            return None

        try:
            faces = self.face_detector.detect_all(frame)
            result = self.classifier.classify(faces)
        finally:
            self._busy.release()

        with self._status_lock:
            self._current_status = result.status
            self._last_result = result

        if self.status_sink is not None:
            self.status_sink(result.status)

        rendered = None
        if self.renderer is not None:
            rendered = self.renderer.render(frame, faces, result, alert_active=alert_active)

        return FrameResult(faces=faces, classification=result, rendered=rendered)
