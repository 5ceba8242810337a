"""AlertTrigger 与报警输出单元测试"""

from unittest.mock import MagicMock, patch

import numpy as np

from alerts.alert_trigger import AlertTrigger
from alerts.sinks import ConsoleAlertSink, PygameBeepSink, WebAlertSink, make_tone


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestAlertTrigger:
    def test_first_trigger_plays(self):
        sink = MagicMock()
        trigger = AlertTrigger(sink, cooldown_ms=1000, clock=FakeClock())
        assert trigger.trigger() is True
        sink.play.assert_called_once()

    def test_suppressed_during_cooldown(self):
        sink = MagicMock()
        clock = FakeClock()
        trigger = AlertTrigger(sink, cooldown_ms=1000, clock=clock)
        trigger.trigger()
        clock.now += 0.5
        assert trigger.in_cooldown is True
        assert trigger.trigger() is False
        assert sink.play.call_count == 1
        assert trigger.suppressed_count == 1

    def test_cooldown_expires_without_callback(self):
        sink = MagicMock()
        clock = FakeClock()
        trigger = AlertTrigger(sink, cooldown_ms=1000, clock=clock)
        trigger.trigger()
        clock.now += 1.0
        assert trigger.in_cooldown is False
        assert trigger.trigger() is True
        assert sink.play.call_count == 2
        assert trigger.fired_count == 2

    def test_suppressed_request_does_not_extend_cooldown(self):
        sink = MagicMock()
        clock = FakeClock()
        trigger = AlertTrigger(sink, cooldown_ms=1000, clock=clock)
        trigger.trigger()
        clock.now += 0.9
        trigger.trigger()
        clock.now += 0.2
        assert trigger.trigger() is True

    def test_not_in_cooldown_initially(self):
        trigger = AlertTrigger(MagicMock(), clock=FakeClock())
        assert trigger.in_cooldown is False


class TestSinks:
    def test_web_sink_increments_seq(self):
        sink = WebAlertSink()
        assert sink.seq == 0
        sink.play()
        sink.play()
        assert sink.seq == 2

    def test_console_sink_prints(self, capsys):
        ConsoleAlertSink().play()
        assert "ALERT" in capsys.readouterr().out

    def test_make_tone(self):
        tone = make_tone(frequency=440.0, duration_ms=500, sample_rate=8000)
        assert tone.dtype == np.int16
        assert len(tone) == 4000
        assert np.abs(tone).max() <= int(0.3 * (2 ** 15 - 1)) + 1

    @patch("alerts.sinks.pygame")
    def test_pygame_sink_initializes_once(self, mock_pygame):
        sink = PygameBeepSink()
        sink.play()
        sink.play()
        mock_pygame.mixer.init.assert_called_once()
        mock_pygame.mixer.Sound.assert_called_once()
        assert mock_pygame.mixer.Sound.return_value.play.call_count == 2

    @patch("alerts.sinks.pygame")
    def test_pygame_sink_close(self, mock_pygame):
        sink = PygameBeepSink()
        sink.close()
        mock_pygame.mixer.quit.assert_not_called()
        sink.play()
        sink.close()
        mock_pygame.mixer.quit.assert_called_once()
