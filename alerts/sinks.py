"""报警输出：桌面端蜂鸣与 Web 端报警序号"""

import logging
import os
import threading

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame  # noqa: E402

logger = logging.getLogger(__name__)


def make_tone(frequency: float = 880.0, duration_ms: int = 300, sample_rate: int = 44100,
              volume: float = 0.3) -> np.ndarray:
    """生成单声道 16 位正弦波"""
    t = np.linspace(0, duration_ms / 1000.0, int(sample_rate * duration_ms / 1000.0), False)
    tone = np.sin(frequency * 2 * np.pi * t) * volume
    return (tone * (2 ** 15 - 1)).astype(np.int16)


class PygameBeepSink:
    """通过 pygame.mixer 播放短促蜂鸣，首次播放时才初始化音频设备"""

    def __init__(self, frequency: float = 880.0, duration_ms: int = 300, sample_rate: int = 44100):
        self.frequency = frequency
        self.duration_ms = duration_ms
        self.sample_rate = sample_rate
        self._sound = None

    def _ensure_sound(self):
        if self._sound is None:
            pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            samples = make_tone(self.frequency, self.duration_ms, self.sample_rate)
            self._sound = pygame.mixer.Sound(buffer=samples.tobytes())
        return self._sound

    def play(self):
        try:
            self._ensure_sound().play()
        except pygame.error as e:
            logger.warning("无法播放报警音: %s", e)

    def close(self):
        if self._sound is not None:
            pygame.mixer.quit()
            self._sound = None


class WebAlertSink:
    """Web 端报警：递增序号，由浏览器轮询到新序号后播放提示音"""

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = 0

    def play(self):
        with self._lock:
            self._seq += 1

    @property
    def seq(self) -> int:
        with self._lock:
            return self._seq


class ConsoleAlertSink:
    """静音模式：只在终端输出提示"""

    def play(self):
        print("ALERT: 注意力不集中")
