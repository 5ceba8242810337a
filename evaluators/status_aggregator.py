"""状态平滑模块：按固定间隔采样当前状态，每个窗口取众数决定是否报警"""

import logging
import threading
from collections import Counter
from typing import Callable, Dict, Iterable, Optional

from models.data_models import ALERT_STATUSES, Status, WindowSummary

logger = logging.getLogger(__name__)


class StatusWindow:
    """
    一个统计窗口内各状态的出现次数。

    sample() 与 evaluate_and_reset() 是仅有的两个修改入口，
    二者在同一把锁下执行，读取与清空对采样是原子的。
    """

    def __init__(self):
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def sample(self, status: Status) -> None:
        with self._lock:
            self._counts[status] += 1

    def counts(self) -> Dict[Status, int]:
        """返回当前计数的副本"""
        with self._lock:
            return dict(self._counts)

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def evaluate_and_reset(self) -> Optional[WindowSummary]:
        """
        取出出现次数最多的状态并清空窗口。

        平票时取 Status 声明顺序中靠前者。窗口为空时返回 None。
        should_alert 由调用方根据报警集合填写，这里默认 False。
        """
        with self._lock:
            counts = self._counts
            self._counts = Counter()

        if not counts:
            return None

        winner = None
        best = 0
        for status in Status:
            count = counts.get(status, 0)
            if count > best:
                winner, best = status, count

        return WindowSummary(
            status=winner, count=best, total=sum(counts.values()), should_alert=False,
        )


class StatusAggregator:
    """驱动 StatusWindow 的采样与窗口评估"""

    def __init__(
        self,
        status_source: Callable[[], Status],
        sample_interval_ms: int = 100,
        window_interval_ms: int = 4000,
        alert_statuses: Iterable[Status] = ALERT_STATUSES,
        window: Optional[StatusWindow] = None,
    ):
        if sample_interval_ms <= 0 or window_interval_ms <= 0:
            raise ValueError("采样间隔和窗口间隔必须为正数")
        if window_interval_ms % sample_interval_ms != 0:
            raise ValueError(
                f"窗口间隔 {window_interval_ms}ms 必须是采样间隔 {sample_interval_ms}ms 的整数倍"
            )

        self.status_source = status_source
        self.sample_interval_ms = sample_interval_ms
        self.window_interval_ms = window_interval_ms
        self.alert_statuses = frozenset(alert_statuses)
        self.window = window if window is not None else StatusWindow()
        self.last_summary: Optional[WindowSummary] = None

    @property
    def samples_per_window(self) -> int:
        return self.window_interval_ms // self.sample_interval_ms

    def sample(self) -> Status:
        """采样器回调：读取当前状态并计数"""
        status = self.status_source()
        self.window.sample(status)
        return status

    def evaluate(self) -> Optional[WindowSummary]:
        """评估器回调：返回本窗口众数状态，并标记是否需要报警"""
        summary = self.window.evaluate_and_reset()
        if summary is None:
            logger.debug("窗口内没有采样，跳过评估")
            return None

        summary.should_alert = summary.status in self.alert_statuses
        self.last_summary = summary

        logger.info(
            'AI update last %.0f seconds: "%s" (%d times)',
            self.window_interval_ms / 1000.0, summary.status.label, summary.count,
        )
        return summary
