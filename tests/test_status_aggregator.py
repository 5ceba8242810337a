"""StatusWindow / StatusAggregator 单元测试"""

import threading

import pytest

from evaluators.status_aggregator import StatusAggregator, StatusWindow
from models.data_models import ALERT_STATUSES, Status, WindowSummary


def _fill(window, status, n):
    for _ in range(n):
        window.sample(status)


class TestStatusWindow:
    def test_counts_sum_to_samples(self):
        window = StatusWindow()
        _fill(window, Status.STRAIGHT, 3)
        _fill(window, Status.LEFT, 2)
        assert window.counts() == {Status.STRAIGHT: 3, Status.LEFT: 2}
        assert window.total == 5

    def test_majority_wins(self):
        window = StatusWindow()
        _fill(window, Status.STRAIGHT, 30)
        _fill(window, Status.LEFT, 10)
        summary = window.evaluate_and_reset()
        assert isinstance(summary, WindowSummary)
        assert summary.status is Status.STRAIGHT
        assert summary.count == 30
        assert summary.total == 40

    def test_empty_after_evaluation(self):
        window = StatusWindow()
        _fill(window, Status.TOP, 7)
        window.evaluate_and_reset()
        assert window.counts() == {}
        assert window.total == 0
        assert len(window) == 0

    def test_counts_do_not_carry_over(self):
        window = StatusWindow()
        _fill(window, Status.LEFT, 30)
        window.evaluate_and_reset()
        _fill(window, Status.STRAIGHT, 5)
        summary = window.evaluate_and_reset()
        assert summary.status is Status.STRAIGHT
        assert summary.total == 5

    def test_empty_window_returns_none(self):
        assert StatusWindow().evaluate_and_reset() is None

    def test_tie_broken_by_enumeration_order(self):
        """平票时取声明顺序靠前者，与采样先后无关"""
        window = StatusWindow()
        _fill(window, Status.NO_FACE, 20)
        _fill(window, Status.LEFT, 20)
        assert window.evaluate_and_reset().status is Status.LEFT

    def test_tie_between_straight_and_alert_status(self):
        window = StatusWindow()
        _fill(window, Status.BOTTOM, 20)
        _fill(window, Status.STRAIGHT, 20)
        assert window.evaluate_and_reset().status is Status.STRAIGHT

    def test_concurrent_sampling(self):
        window = StatusWindow()

        def worker():
            _fill(window, Status.RIGHT, 500)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert window.total == 2000


class TestStatusAggregator:
    def test_rejects_non_multiple_window(self):
        with pytest.raises(ValueError):
            StatusAggregator(lambda: Status.STRAIGHT, sample_interval_ms=300, window_interval_ms=4000)

    def test_rejects_non_positive_intervals(self):
        with pytest.raises(ValueError):
            StatusAggregator(lambda: Status.STRAIGHT, sample_interval_ms=0, window_interval_ms=4000)

    def test_samples_per_window(self):
        agg = StatusAggregator(lambda: Status.STRAIGHT)
        assert agg.samples_per_window == 40

    def test_sample_reads_current_status(self):
        current = {"status": Status.LEFT}
        agg = StatusAggregator(lambda: current["status"])
        agg.sample()
        current["status"] = Status.RIGHT
        agg.sample()
        assert agg.window.counts() == {Status.LEFT: 1, Status.RIGHT: 1}

    def test_straight_majority_does_not_alert(self):
        statuses = iter([Status.STRAIGHT] * 30 + [Status.LEFT] * 10)
        agg = StatusAggregator(lambda: next(statuses))
        for _ in range(agg.samples_per_window):
            agg.sample()
        summary = agg.evaluate()
        assert summary.status is Status.STRAIGHT
        assert summary.should_alert is False

    def test_left_majority_alerts(self):
        statuses = iter([Status.LEFT] * 25 + [Status.STRAIGHT] * 15)
        agg = StatusAggregator(lambda: next(statuses))
        for _ in range(40):
            agg.sample()
        summary = agg.evaluate()
        assert summary.status is Status.LEFT
        assert summary.should_alert is True
        assert agg.last_summary is summary
        assert agg.window.total == 0

    @pytest.mark.parametrize("status", sorted(ALERT_STATUSES, key=lambda s: s.name))
    def test_every_non_straight_status_alerts(self, status):
        agg = StatusAggregator(lambda: status)
        agg.sample()
        assert agg.evaluate().should_alert is True

    def test_empty_window_no_alert(self):
        agg = StatusAggregator(lambda: Status.LEFT)
        assert agg.evaluate() is None
        assert agg.last_summary is None

    def test_custom_alert_set(self):
        agg = StatusAggregator(lambda: Status.BLINK_OR_CLOSED, alert_statuses={Status.NO_FACE})
        agg.sample()
        assert agg.evaluate().should_alert is False

    def test_evaluation_logged(self, caplog):
        import logging
        agg = StatusAggregator(lambda: Status.TOP)
        agg.sample()
        with caplog.at_level(logging.INFO, logger="evaluators.status_aggregator"):
            agg.evaluate()
        assert 'AI update last 4 seconds: "Looking Top!" (1 times)' in caplog.text
