"""注意力监测系统异常定义"""


class AttentionMonitorError(Exception):
    """所有自定义异常的基类"""


class DeviceUnavailableError(AttentionMonitorError):
    """摄像头无法打开（无权限、被占用或不存在）"""

    def __init__(self, camera_index: int = 0, message: str = "Error: Unable to access webcam."):
        super().__init__(message)
        self.camera_index = camera_index
        self.message = message


class DegenerateGeometryError(AttentionMonitorError):
    """关键点重合导致比值分母为零"""
