"""眼睛状态分析模块，负责计算 EAR 值并判断眨眼/闭眼"""

import logging
from typing import Optional

from detectors.geometry import eye_aspect_ratio
from models.data_models import EyeResult, LandmarkSet
from models.errors import DegenerateGeometryError

logger = logging.getLogger(__name__)

# 关键点索引常量（MediaPipe FaceMesh）
LEFT_EYE_INDICES = {"top": 159, "bottom": 145, "inner": 133, "outer": 33}
RIGHT_EYE_INDICES = {"top": 386, "bottom": 374, "inner": 362, "outer": 263}


class EyeAnalyzer:
    """计算双眼平均 EAR，低于阈值判定为眨眼或闭眼"""

    def __init__(self, ear_threshold: float = 0.2):
        self.ear_threshold = ear_threshold

    @staticmethod
    def calculate_ear(landmarks: LandmarkSet, indices: dict) -> float:
        """按索引取出四个眼部关键点并计算 EAR"""
        return eye_aspect_ratio(
            landmarks[indices["top"]],
            landmarks[indices["bottom"]],
            landmarks[indices["inner"]],
            landmarks[indices["outer"]],
        )

    def analyze(self, landmarks: LandmarkSet) -> EyeResult:
        """
        分析双眼状态。

        任一只眼睛关键点退化时跳过本帧的眨眼判断（is_closed=False），
        并记录一条警告日志。

        Args:
            landmarks: 单张人脸的全部关键点

        Returns:
            EyeResult(left_ear, right_ear, ear, is_closed, is_degenerate)
        """
        left_ear: Optional[float] = None
        right_ear: Optional[float] = None
        try:
            left_ear = self.calculate_ear(landmarks, LEFT_EYE_INDICES)
            right_ear = self.calculate_ear(landmarks, RIGHT_EYE_INDICES)
        except DegenerateGeometryError as e:
            logger.warning("跳过本帧眨眼判断: %s", e)
            return EyeResult(
                left_ear=left_ear, right_ear=right_ear, ear=None,
                is_closed=False, is_degenerate=True,
            )

        avg_ear = (left_ear + right_ear) / 2.0

        return EyeResult(
            left_ear=left_ear,
            right_ear=right_ear,
            ear=avg_ear,
            is_closed=avg_ear < self.ear_threshold,
        )
