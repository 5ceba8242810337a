"""关键点几何工具：欧氏距离与眼睛纵横比"""

import math

from models.data_models import Point2D
from models.errors import DegenerateGeometryError


def distance(p1: Point2D, p2: Point2D) -> float:
    """两点间的欧氏距离"""
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def eye_aspect_ratio(top: Point2D, bottom: Point2D, inner: Point2D, outer: Point2D) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = |top-bottom| / |inner-outer|

    Raises:
        DegenerateGeometryError: 内外眼角重合，眼宽为零
    """
    horizontal = distance(inner, outer)
    if horizontal == 0.0:
        raise DegenerateGeometryError(
            f"eye width is zero: inner=({inner.x}, {inner.y}) outer=({outer.x}, {outer.y})"
        )
    return distance(top, bottom) / horizontal
