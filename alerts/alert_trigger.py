"""报警触发模块：基于时间戳的冷却限流"""

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class AlertTrigger:
    """
    冷却期内的报警请求直接丢弃，不排队。

    冷却状态由 now < cooldown_until 判断，无需定时回调清除。
    """

    def __init__(self, sink, cooldown_ms: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.sink = sink
        self.cooldown_ms = cooldown_ms
        self._clock = clock
        self._cooldown_until = float("-inf")
        self.fired_count = 0
        self.suppressed_count = 0

    @property
    def in_cooldown(self) -> bool:
        return self._clock() < self._cooldown_until

    def trigger(self) -> bool:
        """请求一次报警，实际播放时返回 True"""
        now = self._clock()
        if now < self._cooldown_until:
            self.suppressed_count += 1
            logger.debug("报警冷却中，忽略本次请求")
            return False

        self._cooldown_until = now + self.cooldown_ms / 1000.0
        self.fired_count += 1
        self.sink.play()
        return True
