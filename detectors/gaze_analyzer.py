"""视线方向分析模块，根据内眼角相对鼻尖的归一化位移判断朝向"""

import logging

from models.data_models import GazeResult, LandmarkSet, Status

logger = logging.getLogger(__name__)

GAZE_INDICES = {
    "left_eye_inner": 133,
    "right_eye_inner": 362,
    "nose_tip": 1,
    "left_cheek": 234,
    "right_cheek": 454,
    "chin": 152,
    "forehead": 10,
}


class GazeAnalyzer:
    """用四个独立阈值把归一化位移划分为 左/右/上/下/正视"""

    def __init__(
        self,
        left_threshold: float = -0.08,
        right_threshold: float = 0.08,
        top_threshold: float = -0.15,
        bottom_threshold: float = -0.33,
    ):
        self.left_threshold = left_threshold
        self.right_threshold = right_threshold
        self.top_threshold = top_threshold
        self.bottom_threshold = bottom_threshold

    def classify(self, left_dx: float, right_dx: float, left_dy: float, right_dy: float) -> Status:
        """按 左、右、上、下 的固定顺序判断，先满足者优先，比较均为严格不等"""
        if left_dx < self.left_threshold and right_dx < self.left_threshold:
            return Status.LEFT
        if left_dx > self.right_threshold and right_dx > self.right_threshold:
            return Status.RIGHT
        if left_dy > self.top_threshold and right_dy > self.top_threshold:
            return Status.TOP
        if left_dy < self.bottom_threshold and right_dy < self.bottom_threshold:
            return Status.BOTTOM
        return Status.STRAIGHT

    def analyze(self, landmarks: LandmarkSet) -> GazeResult:
        """
        计算内眼角到鼻尖的位移，分别用脸宽、脸高归一化后分类。

        脸宽或脸高为零时无法归一化，记录警告并返回正视。
        """
        left_inner = landmarks[GAZE_INDICES["left_eye_inner"]]
        right_inner = landmarks[GAZE_INDICES["right_eye_inner"]]
        nose = landmarks[GAZE_INDICES["nose_tip"]]

        face_width = landmarks[GAZE_INDICES["right_cheek"]].x - landmarks[GAZE_INDICES["left_cheek"]].x
        face_height = landmarks[GAZE_INDICES["chin"]].y - landmarks[GAZE_INDICES["forehead"]].y

        if face_width == 0.0 or face_height == 0.0:
            logger.warning(
                "人脸包围框退化 (width=%s, height=%s)，按正视处理", face_width, face_height
            )
            return GazeResult(
                left_dx=0.0, right_dx=0.0, left_dy=0.0, right_dy=0.0,
                direction=Status.STRAIGHT, is_degenerate=True,
            )

        left_dx = (left_inner.x - nose.x) / face_width
        right_dx = (right_inner.x - nose.x) / face_width
        left_dy = (left_inner.y - nose.y) / face_height
        right_dy = (right_inner.y - nose.y) / face_height

        return GazeResult(
            left_dx=left_dx,
            right_dx=right_dx,
            left_dy=left_dy,
            right_dy=right_dy,
            direction=self.classify(left_dx, right_dx, left_dy, right_dy),
        )
