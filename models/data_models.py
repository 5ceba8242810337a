"""核心数据模型定义"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Point2D:
    """单个人脸关键点（归一化坐标）"""
    x: float
    y: float


# 一张人脸的全部关键点，按索引访问（468 点，refine 后 478 点）
LandmarkSet = List[Point2D]


class Status(Enum):
    """注意力状态，声明顺序即窗口统计时的平票顺序"""
    STRAIGHT = "Looking Straight!"
    LEFT = "Looking Left!"
    RIGHT = "Looking Right!"
    TOP = "Looking Top!"
    BOTTOM = "Looking Bottom!"
    BLINK_OR_CLOSED = "Blink or Eyes Closed!"
    NO_FACE = "Status: No face detected!"
    MULTI_FACE = "Multiple faces detected!"

    @property
    def label(self) -> str:
        return self.value


# 除正视以外的状态都需要报警
ALERT_STATUSES = frozenset(s for s in Status if s is not Status.STRAIGHT)


@dataclass
class EyeResult:
    """眼睛分析结果，关键点退化时 EAR 为 None"""
    left_ear: Optional[float]
    right_ear: Optional[float]
    ear: Optional[float]
    is_closed: bool
    is_degenerate: bool = False


@dataclass
class GazeResult:
    """视线方向分析结果"""
    left_dx: float
    right_dx: float
    left_dy: float
    right_dy: float
    direction: Status
    is_degenerate: bool = False


@dataclass
class ClassificationResult:
    """单帧分类结果"""
    status: Status
    face_count: int
    eye: Optional[EyeResult] = None
    gaze: Optional[GazeResult] = None


@dataclass
class WindowSummary:
    """一个统计窗口的众数状态"""
    status: Status
    count: int
    total: int
    should_alert: bool
