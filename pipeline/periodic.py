"""固定间隔的后台定时任务"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """在守护线程中每隔 interval_ms 调用一次 callback"""

    def __init__(self, name: str, interval_ms: int, callback: Callable[[], object]):
        if interval_ms <= 0:
            raise ValueError("interval_ms 必须为正数")
        self.name = name
        self.interval_ms = interval_ms
        self.callback = callback
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0):
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def _run(self):
        interval = self.interval_ms / 1000.0
        # wait() 返回 True 表示收到停止信号
        while not self._stop_event.wait(interval):
            try:
                self.callback()
            except Exception:
                logger.exception("定时任务 %s 执行失败", self.name)
