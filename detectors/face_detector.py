"""人脸关键点检测模块，基于 MediaPipe FaceMesh"""

from typing import List

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import LandmarkSet, Point2D

# 虹膜关键点索引（仅 refine_landmarks=True 时存在）
LEFT_IRIS_INDICES = [468, 469, 470, 471, 472]
RIGHT_IRIS_INDICES = [473, 474, 475, 476, 477]


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测画面中所有人脸的关键点"""

    def __init__(
        self,
        max_num_faces: int = 3,
        refine_landmarks: bool = True,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        """初始化 MediaPipe FaceMesh，默认允许多张人脸以便检测多人入镜"""
        self.max_num_faces = max_num_faces
        self.refine_landmarks = refine_landmarks
        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=max_num_faces,
            refine_landmarks=refine_landmarks,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect_all(self, frame: np.ndarray) -> List[LandmarkSet]:
        """
        检测单帧图像中的全部人脸关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            每张人脸一个 LandmarkSet（归一化坐标）；未检测到人脸时返回空列表
        """
        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return []

        return [
            [Point2D(lm.x, lm.y) for lm in face.landmark]
            for face in results.multi_face_landmarks
        ]

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
