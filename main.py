"""注意力监测系统入口文件（桌面窗口版）"""

import argparse
import logging
import sys
import time

import cv2

from alerts.alert_trigger import AlertTrigger
from alerts.sinks import ConsoleAlertSink, PygameBeepSink
from classifiers.attention_classifier import AttentionClassifier
from detectors.eye_analyzer import EyeAnalyzer
from detectors.face_detector import FaceDetector
from detectors.gaze_analyzer import GazeAnalyzer
from display.renderer import DisplayRenderer
from evaluators.status_aggregator import StatusAggregator
from models.data_models import Status
from models.errors import DeviceUnavailableError
from pipeline.frame_driver import FrameDriver
from pipeline.periodic import PeriodicTask
from settings import load_config

logger = logging.getLogger(__name__)

_WINDOW_NAME = "注意力监测系统"

# 连续读取失败达到该次数即退出主循环
_MAX_READ_FAILURES = 50
_READ_FAILURE_MESSAGE = "Error: Unable to read from webcam."


def build_classifier(config):
    """根据配置构建单帧分类器。"""
    return AttentionClassifier(
        eye_analyzer=EyeAnalyzer(ear_threshold=config["ear_threshold"]),
        gaze_analyzer=GazeAnalyzer(
            left_threshold=config["gaze_left_threshold"],
            right_threshold=config["gaze_right_threshold"],
            top_threshold=config["gaze_top_threshold"],
            bottom_threshold=config["gaze_bottom_threshold"],
        ),
    )


def build_face_detector(config):
    return FaceDetector(
        max_num_faces=config["max_num_faces"],
        refine_landmarks=config["refine_landmarks"],
        min_detection_confidence=config["min_detection_confidence"],
        min_tracking_confidence=config["min_tracking_confidence"],
    )


class MonitorSystem:
    """注意力监测主程序，协调检测、窗口统计与报警，并管理视频流主循环。"""

    def __init__(self, config_path=None, sound=True, face_detector=None, alert_sink=None):
        self.config = load_config(config_path)
        self._cap = None
        self._alert_until = 0.0

        self.face_detector = face_detector or build_face_detector(self.config)
        self.renderer = DisplayRenderer()

        if alert_sink is None:
            alert_sink = PygameBeepSink() if sound else ConsoleAlertSink()
        self.alert_sink = alert_sink
        self.alert_trigger = AlertTrigger(alert_sink, cooldown_ms=self.config["alert_cooldown_ms"])

        self.driver = FrameDriver(
            self.face_detector,
            classifier=build_classifier(self.config),
            renderer=self.renderer,
            status_sink=self._on_status,
        )
        self.aggregator = StatusAggregator(
            status_source=lambda: self.driver.current_status,
            sample_interval_ms=self.config["sample_interval_ms"],
            window_interval_ms=self.config["window_interval_ms"],
        )

        self._sampler = PeriodicTask("status-sampler", self.config["sample_interval_ms"], self.aggregator.sample)
        self._evaluator = PeriodicTask("status-evaluator", self.config["window_interval_ms"], self.evaluate_window)

    def _on_status(self, status):
        """多人入镜时不等窗口统计，立即报警（仍受冷却限制）。"""
        if status is Status.MULTI_FACE and self.config["multi_face_immediate_alert"]:
            self._fire_alert()

    def _fire_alert(self):
        if self.alert_trigger.trigger():
            self._alert_until = time.monotonic() + self.config["alert_cooldown_ms"] / 1000.0

    def evaluate_window(self):
        """评估一个窗口，众数状态需要报警时经冷却限流后播放提示音。"""
        summary = self.aggregator.evaluate()
        if summary is not None and summary.should_alert:
            self._fire_alert()
        return summary

    @property
    def alert_active(self) -> bool:
        return time.monotonic() < self._alert_until

    def open_camera(self):
        """打开摄像头，失败时抛出 DeviceUnavailableError。"""
        index = self.config["camera_index"]
        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailableError(camera_index=index)
        self._cap = cap
        return cap

    def run(self):
        """启动主检测循环。"""
        try:
            self.open_camera()
        except DeviceUnavailableError as e:
            print(e.message)
            logger.error("无法打开摄像头 %d", e.camera_index)
            self.stop()
            sys.exit(1)

        self._sampler.start()
        self._evaluator.start()
        try:
            self._main_loop()
        finally:
            self.stop()

    def _main_loop(self):
        """视频流处理主循环，按 frame_interval_ms 节流。"""
        interval = self.config["frame_interval_ms"] / 1000.0
        read_failures = 0
        while True:
            started = time.monotonic()
            ret, frame = self._cap.read()
            if not ret:
                read_failures += 1
                if read_failures >= _MAX_READ_FAILURES:
                    print(_READ_FAILURE_MESSAGE)
                    logger.error("连续 %d 次读取摄像头失败", read_failures)
                    break
                time.sleep(interval)
                continue
            read_failures = 0

            result = self.driver.process_frame(frame, alert_active=self.alert_active)
            if result is not None and result.rendered is not None:
                cv2.imshow(_WINDOW_NAME, result.rendered)

            wait_ms = max(1, int((interval - (time.monotonic() - started)) * 1000))
            # 按 q 退出
            if cv2.waitKey(wait_ms) & 0xFF == ord("q"):
                break

    def stop(self):
        """停止定时任务，释放摄像头、窗口和人脸检测器。"""
        self._sampler.stop()
        self._evaluator.stop()
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        cv2.destroyAllWindows()
        self.face_detector.close()


def main():
    parser = argparse.ArgumentParser(description="注意力监测系统")
    parser.add_argument("--config", type=str, default=None, help="JSON 配置文件路径")
    parser.add_argument("--camera", type=int, default=None, help="摄像头编号，覆盖配置文件")
    parser.add_argument("--no-sound", action="store_true", help="不播放提示音，仅在终端输出")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="日志级别",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    system = MonitorSystem(config_path=args.config, sound=not args.no_sound)
    if args.camera is not None:
        system.config["camera_index"] = args.camera
    system.run()


if __name__ == "__main__":
    main()
