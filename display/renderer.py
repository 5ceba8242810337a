"""界面渲染模块 - 在视频帧上绘制关键点、虹膜、状态文字和报警提示。"""

from typing import List

import cv2
import numpy as np

from detectors.face_detector import LEFT_IRIS_INDICES, RIGHT_IRIS_INDICES
from models.data_models import ClassificationResult, LandmarkSet, Status


def format_value(v: float) -> str:
    """格式化浮点数为两位小数字符串。"""
    return f"{v:.2f}"


class DisplayRenderer:
    """在视频帧上绘制检测结果和注意力报警。"""

    LANDMARK_COLOR = (0, 0, 255)      # 红
    IRIS_COLOR = (0, 0, 0)            # 黑
    OK_COLOR = (0, 255, 0)            # 绿
    WARN_COLOR = (0, 165, 255)        # 橙

    def __init__(self, font_path: str = "SimHei"):
        """初始化中文字体，字体不存在时回退到 OpenCV 默认英文字体。"""
        self._pil_font_large = None
        self._use_pil = False

        try:
            font = self._try_load_font(font_path)
            if font is not None:
                self._pil_font_large = font
                self._use_pil = True
        except ImportError:
            self._use_pil = False

    @staticmethod
    def _try_load_font(font_path: str, size: int = 40):
        """尝试加载字体文件，返回 PIL ImageFont 或 None。"""
        from PIL import ImageFont

        try:
            return ImageFont.truetype(font_path, size)
        except (OSError, IOError):
            pass

        common_paths = [
            "/usr/share/fonts/truetype/simhei/SimHei.ttf",
            "/usr/share/fonts/SimHei.ttf",
            "C:\\Windows\\Fonts\\simhei.ttf",
            "/System/Library/Fonts/STHeiti Medium.ttc",
        ]
        for path in common_paths:
            try:
                return ImageFont.truetype(path, size)
            except (OSError, IOError):
                continue

        return None

    def render(
        self,
        frame: np.ndarray,
        faces: List[LandmarkSet],
        result: ClassificationResult,
        alert_active: bool = False,
    ) -> np.ndarray:
        """渲染检测结果到视频帧，返回渲染后的帧图像，原始帧不变。"""
        output = frame.copy()

        # 仅单人脸时绘制关键点
        if result.face_count == 1 and faces:
            self._draw_landmarks(output, faces[0])
            self._draw_iris(output, faces[0])

        self._draw_status(output, result)

        if alert_active:
            self._draw_alert_warning(output)

        return output

    @classmethod
    def _draw_landmarks(cls, frame: np.ndarray, landmarks: LandmarkSet) -> None:
        h, w = frame.shape[:2]
        for p in landmarks:
            cv2.circle(frame, (int(p.x * w), int(p.y * h)), 2, cls.LANDMARK_COLOR, -1)

    @classmethod
    def _draw_iris(cls, frame: np.ndarray, landmarks: LandmarkSet) -> None:
        """refine_landmarks 关闭时没有 478 个点，不绘制虹膜。"""
        if len(landmarks) <= RIGHT_IRIS_INDICES[-1]:
            return
        h, w = frame.shape[:2]
        for idx in LEFT_IRIS_INDICES + RIGHT_IRIS_INDICES:
            p = landmarks[idx]
            cv2.circle(frame, (int(p.x * w), int(p.y * h)), 3, cls.IRIS_COLOR, -1)

    @classmethod
    def status_color(cls, status: Status) -> tuple:
        return cls.OK_COLOR if status is Status.STRAIGHT else cls.WARN_COLOR

    def _draw_status(self, frame: np.ndarray, result: ClassificationResult) -> None:
        """左上角绘制状态文字和 EAR 数值。"""
        lines = [result.status.label]
        if result.eye is not None and result.eye.ear is not None:
            lines.append(f"EAR: {format_value(result.eye.ear)}")

        color = self.status_color(result.status)
        y = 30
        for text in lines:
            cv2.putText(frame, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
            y += 30

    def _draw_alert_warning(self, frame: np.ndarray) -> None:
        """在画面中央显示红色报警文字。"""
        h, w = frame.shape[:2]

        if self._use_pil:
            from PIL import Image, ImageDraw

            warning = "请集中注意力！"
            img_pil = Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
            draw = ImageDraw.Draw(img_pil)
            bbox = draw.textbbox((0, 0), warning, font=self._pil_font_large)
            text_w = bbox[2] - bbox[0]
            text_h = bbox[3] - bbox[1]
            x = (w - text_w) // 2
            y = (h - text_h) // 2
            draw.text((x, y), warning, font=self._pil_font_large, fill=(255, 0, 0))
            frame[:] = cv2.cvtColor(np.array(img_pil), cv2.COLOR_RGB2BGR)
        else:
            warning_en = "STAY FOCUSED!"
            font_scale = 1.5
            thickness = 3
            (text_w, text_h), _ = cv2.getTextSize(
                warning_en, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
            )
            x = (w - text_w) // 2
            y = (h + text_h) // 2
            cv2.putText(
                frame, warning_en, (x, y),
                cv2.FONT_HERSHEY_SIMPLEX, font_scale, (0, 0, 255), thickness,
            )
