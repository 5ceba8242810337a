"""Flask Web 前端 - 注意力监测系统"""

import datetime
import logging
import threading
import time

import cv2
from flask import Flask, Response, jsonify, render_template, request

from alerts.alert_trigger import AlertTrigger
from alerts.sinks import WebAlertSink
from main import build_classifier, build_face_detector
from models.data_models import Status
from models.errors import DeviceUnavailableError
from display.renderer import DisplayRenderer
from evaluators.status_aggregator import StatusAggregator
from pipeline.frame_driver import FrameDriver
from pipeline.periodic import PeriodicTask
from settings import DEFAULTS

logger = logging.getLogger(__name__)

app = Flask(__name__, template_folder="web/templates")

# 允许运行时修改的阈值
_LIVE_KEYS = {
    "ear_threshold": float,
    "gaze_left_threshold": float,
    "gaze_right_threshold": float,
    "gaze_top_threshold": float,
    "gaze_bottom_threshold": float,
    "alert_cooldown_ms": int,
}

READ_FAILURE_MESSAGE = "Error: Unable to read from webcam."


class WebMonitorSystem:
    """Web 版监测系统，支持 MJPEG 视频流推送和实时数据 API。"""

    MAX_LOG_ENTRIES = 200
    MAX_READ_FAILURES = 50

    def __init__(self, config=None, face_detector=None):
        self.config = dict(config or DEFAULTS)
        self._cap = None
        self._running = False
        self._thread = None
        self._lock = threading.Lock()
        self._latest_frame = None
        self._error = None
        self._alert_until = 0.0
        self._prev_status = None
        self._logs = []
        self._log_seq = 0
        self._log_lock = threading.Lock()

        self._face_detector = face_detector
        self.renderer = DisplayRenderer()
        self.alert_sink = WebAlertSink()
        self.alert_trigger = AlertTrigger(self.alert_sink, cooldown_ms=self.config["alert_cooldown_ms"])
        self.driver = None
        self.aggregator = None
        self._sampler = None
        self._evaluator = None

    @property
    def face_detector(self):
        """首次使用时才创建 FaceMesh，避免导入模块即加载模型。"""
        if self._face_detector is None:
            self._face_detector = build_face_detector(self.config)
        return self._face_detector

    def _init_pipeline(self):
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

    def start(self):
        """启动摄像头、处理线程和窗口统计定时器。"""
        if self._running:
            return True
        try:
            self._open_camera()
        except DeviceUnavailableError as e:
            logger.error("无法打开摄像头 %d", e.camera_index)
            with self._lock:
                self._error = e.message
            self._add_log("danger", e.message)
            return False

        with self._lock:
            self._error = None
        self._init_pipeline()
        self._running = True
        self._add_log("info", "系统启动，摄像头已开启")
        self._thread = threading.Thread(target=self._process_loop, daemon=True)
        self._thread.start()
        self._sampler.start()
        self._evaluator.start()
        return True

    def _open_camera(self):
        index = self.config["camera_index"]
        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailableError(camera_index=index)
        self._cap = cap

    def stop(self):
        """停止检测。"""
        if not self._running:
            return
        self._running = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self._release()
        self._add_log("info", "系统已停止")

    def _release(self):
        """停止定时器并释放摄像头。"""
        if self._sampler is not None:
            self._sampler.stop()
            self._evaluator.stop()
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None

    def _halt(self, message):
        """处理线程内出现致命错误：停止整条流水线并对外报告错误。"""
        self._running = False
        self._release()
        with self._lock:
            self._error = message
        self._add_log("danger", message)

    def _process_loop(self):
        """后台处理循环。"""
        interval = self.config["frame_interval_ms"] / 1000.0
        read_failures = 0
        while self._running:
            started = time.monotonic()
            if not self._cap or not self._cap.isOpened():
                break
            ret, frame = self._cap.read()
            if not ret:
                read_failures += 1
                if read_failures >= self.MAX_READ_FAILURES:
                    logger.error("连续 %d 次读取摄像头失败", read_failures)
                    self._halt(READ_FAILURE_MESSAGE)
                    break
                time.sleep(interval)
                continue
            read_failures = 0

            try:
                result = self.driver.process_frame(frame, alert_active=self.alert_active)
            except Exception as e:
                logger.exception("帧处理失败")
                self._halt(f"Error: Frame processing failed ({e})")
                break

            if result is not None and result.rendered is not None:
                _, jpeg = cv2.imencode(".jpg", result.rendered, [cv2.IMWRITE_JPEG_QUALITY, 80])
                with self._lock:
                    self._latest_frame = jpeg.tobytes()

            remaining = interval - (time.monotonic() - started)
            if remaining > 0:
                time.sleep(remaining)

    def _on_status(self, status: Status):
        """多人入镜立即报警（受冷却限制）；状态变化时记录日志。"""
        if status is Status.MULTI_FACE and self.config["multi_face_immediate_alert"]:
            if self.alert_trigger.trigger():
                self._alert_until = time.monotonic() + self.config["alert_cooldown_ms"] / 1000.0
                self._add_log("danger", f"注意力报警: {status.label}")
        if status is self._prev_status:
            return
        if status is Status.STRAIGHT:
            self._add_log("info", status.label)
        else:
            self._add_log("warning", status.label)
        self._prev_status = status

    def evaluate_window(self):
        summary = self.aggregator.evaluate()
        if summary is None:
            return None
        if summary.should_alert:
            if self.alert_trigger.trigger():
                self._alert_until = time.monotonic() + self.config["alert_cooldown_ms"] / 1000.0
                self._add_log("danger", f"注意力报警: {summary.status.label} ({summary.count}/{summary.total})")
            else:
                self._add_log("warning", f"报警冷却中: {summary.status.label}")
        return summary

    @property
    def alert_active(self) -> bool:
        return time.monotonic() < self._alert_until

    def _add_log(self, level, message):
        """添加一条系统日志。level: info / warning / danger"""
        with self._log_lock:
            self._log_seq += 1
            self._logs.append({
                "seq": self._log_seq,
                "time": datetime.datetime.now().strftime("%H:%M:%S"),
                "level": level,
                "message": message,
            })
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    def get_logs(self, since=0):
        """获取 seq 大于 since 的日志，并返回最新的 seq。"""
        with self._log_lock:
            return [e for e in self._logs if e["seq"] > since], self._log_seq

    def get_frame(self):
        with self._lock:
            return self._latest_frame

    def get_data(self):
        with self._lock:
            error = self._error

        data = {
            "running": self._running,
            "error": error,
            "status": error or Status.NO_FACE.label,
            "face_count": 0,
            "ear": None,
            "gaze": None,
            "last_window": None,
            "alert_seq": self.alert_sink.seq,
            "alert_active": self.alert_active,
        }
        if self.driver is None:
            return data

        result = self.driver.last_result
        if result is not None:
            data["status"] = result.status.label
            data["face_count"] = result.face_count
            if result.eye is not None and result.eye.ear is not None:
                data["ear"] = round(result.eye.ear, 4)
            if result.gaze is not None:
                data["gaze"] = {
                    "left_dx": round(result.gaze.left_dx, 4),
                    "right_dx": round(result.gaze.right_dx, 4),
                    "left_dy": round(result.gaze.left_dy, 4),
                    "right_dy": round(result.gaze.right_dy, 4),
                }
        summary = self.aggregator.last_summary
        if summary is not None:
            data["last_window"] = {
                "status": summary.status.label,
                "count": summary.count,
                "total": summary.total,
                "alert": summary.should_alert,
            }
        data["overruns"] = self.driver.overrun_count
        if error:
            data["status"] = error
        return data

    def update_config(self, config):
        """
        动态更新阈值配置，只接受 _LIVE_KEYS 中的字段。

        所有字段校验通过后才会生效。

        Raises:
            ValueError: 请求体不是对象，或字段值无法转换为数值
        """
        if not isinstance(config, dict):
            raise ValueError("配置必须是 JSON 对象")

        updates = {}
        for key, cast in _LIVE_KEYS.items():
            value = config.get(key)
            if value is None:
                continue
            if isinstance(value, bool):
                raise ValueError(f"{key} 必须是数值")
            try:
                updates[key] = cast(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} 必须是数值: {value!r}") from None
            if updates[key] != updates[key]:
                raise ValueError(f"{key} 不能为 NaN")

        self.config.update(updates)
        self.alert_trigger.cooldown_ms = self.config["alert_cooldown_ms"]
        if self.driver is not None:
            self.driver.classifier = build_classifier(self.config)


# 全局监测系统实例
system = WebMonitorSystem()


# ---- Flask 路由 ----

@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/start", methods=["POST"])
def api_start():
    ok = system.start()
    return jsonify({"success": ok, "message": "摄像头启动成功" if ok else system.get_data()["error"]})


@app.route("/api/stop", methods=["POST"])
def api_stop():
    system.stop()
    return jsonify({"success": True, "message": "检测已停止"})


@app.route("/api/data")
def api_data():
    return jsonify(system.get_data())


@app.route("/api/config", methods=["POST"])
def api_config():
    data = request.get_json(force=True, silent=True)
    try:
        system.update_config(data)
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    return jsonify({"success": True, "message": "配置已更新"})


@app.route("/api/logs")
def api_logs():
    since = request.args.get("since", 0, type=int)
    logs, last_seq = system.get_logs(since)
    return jsonify({"logs": logs, "last_seq": last_seq})


@app.route("/video_feed")
def video_feed():
    def generate():
        while True:
            frame = system.get_frame()
            if frame is not None:
                yield (b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame + b"\r\n")
            time.sleep(0.03)
    return Response(generate(), mimetype="multipart/x-mixed-replace; boundary=frame")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
