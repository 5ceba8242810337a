"""单帧注意力分类模块"""

from typing import Optional, Sequence

from detectors.eye_analyzer import EyeAnalyzer
from detectors.gaze_analyzer import GazeAnalyzer
from models.data_models import ClassificationResult, LandmarkSet, Status


class AttentionClassifier:
    """
    按固定优先级输出单帧状态：多人 > 无人 > 眨眼/闭眼 > 视线方向。

    每帧独立判断，不跨帧保留任何状态。
    """

    def __init__(
        self,
        eye_analyzer: Optional[EyeAnalyzer] = None,
        gaze_analyzer: Optional[GazeAnalyzer] = None,
    ):
        self.eye_analyzer = eye_analyzer or EyeAnalyzer()
        self.gaze_analyzer = gaze_analyzer or GazeAnalyzer()

    def classify(self, faces: Sequence[LandmarkSet]) -> ClassificationResult:
        """
        Args:
            faces: 关键点检测器返回的全部人脸，长度即人脸数

        Returns:
            ClassificationResult，单人脸时附带眼睛和视线的中间结果
        """
        face_count = len(faces)

        if face_count > 1:
            return ClassificationResult(status=Status.MULTI_FACE, face_count=face_count)
        if face_count == 0:
            return ClassificationResult(status=Status.NO_FACE, face_count=0)

        landmarks = faces[0]
        eye = self.eye_analyzer.analyze(landmarks)
        gaze = self.gaze_analyzer.analyze(landmarks)

        status = Status.BLINK_OR_CLOSED if eye.is_closed else gaze.direction

        return ClassificationResult(status=status, face_count=1, eye=eye, gaze=gaze)
