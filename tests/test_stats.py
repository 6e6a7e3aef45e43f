import math

import pytest

from batcher.core.job import Job, JobOutcome
from batcher.core.stats import RunStats, percentage


def _done(job_id: int, exit_status: int, duration: float) -> Job:
    job = Job.create(job_id, "bgjob", ["true"])
    job.mark_started()
    job.duration = duration
    if exit_status < 0:
        job.fail_launch(FileNotFoundError("missing"))
    else:
        job.exit_status = exit_status
        job.outcome = JobOutcome.SUCCEEDED if exit_status == 0 else JobOutcome.FAILED
    return job


def _stats(samples) -> RunStats:
    stats = RunStats(len(samples))
    stats.start()
    for i, (rc, dur) in enumerate(samples, start=1):
        stats.update(_done(i, rc, dur))
    stats.finish()
    return stats


def test_percentage_rounding():
    assert percentage(1, 3) == 33.333
    assert percentage(2, 3) == 66.667
    assert percentage(0, 0) == 0.0


def test_counts_add_up():
    stats = _stats([(0, 0.1), (3, 0.2), (-1, 0.0), (0, 0.4), (1, 0.3)])
    assert stats.completed == 5
    assert stats.succeeded == 2
    assert stats.failed == 2
    assert stats.invalid == 1
    assert stats.succeeded + stats.failed + stats.invalid == stats.completed


def test_percentages_sum_to_100_when_complete():
    stats = _stats([(0, 0.1), (1, 0.1), (-1, 0.1)])
    total_pct = stats.success_percentage() + stats.failure_percentage() + stats.invalid_percentage()
    assert total_pct == pytest.approx(100.0, abs=1e-2)
    assert stats.completion_percentage() == 100.0


def test_invalid_percentage_counts_invalid_jobs():
    stats = _stats([(1, 0.1), (1, 0.1), (-1, 0.0), (0, 0.1)])
    assert stats.failure_percentage() == 50.0
    assert stats.invalid_percentage() == 25.0


def test_duration_moments():
    stats = _stats([(0, 1.0), (0, 2.0), (0, 3.0), (0, 4.0)])
    assert stats.aggregate_run_time() == pytest.approx(10.0)
    assert stats.average_run_time() == pytest.approx(2.5)
    assert stats.minimum_run_time() == pytest.approx(1.0)
    assert stats.maximum_run_time() == pytest.approx(4.0)
    # population variance, seconds squared
    assert stats.variance() == pytest.approx(1.25)
    assert stats.stddev() == pytest.approx(math.sqrt(1.25))
    assert stats.root_mean_square() == pytest.approx(math.sqrt(7.5))


def test_average_bounds_and_aggregate():
    stats = _stats([(0, 0.013), (1, 0.5), (0, 0.25), (-1, 0.0), (0, 0.125)])
    avg = stats.average_run_time()
    assert avg * stats.completed == pytest.approx(stats.aggregate_run_time())
    assert stats.minimum_run_time() <= avg <= stats.maximum_run_time()


def test_zero_duration_is_a_real_minimum():
    stats = _stats([(0, 0.0), (0, 0.2), (0, 0.1)])
    assert stats.minimum_run_time() == 0.0


def test_identical_durations_have_zero_variance():
    stats = _stats([(0, 0.5)] * 6)
    assert stats.variance() == pytest.approx(0.0, abs=1e-12)
    assert stats.stddev() == pytest.approx(0.0, abs=1e-6)
    assert stats.root_mean_square() == pytest.approx(0.5)


def test_empty_stats_are_guarded():
    stats = RunStats(5)
    assert stats.completion_rate() == 0.0
    assert stats.average_run_time() is None
    assert stats.minimum_run_time() is None
    assert stats.maximum_run_time() is None
    assert stats.variance() is None
    assert stats.stddev() is None
    assert stats.root_mean_square() is None
    stats.start()
    stats.finish()
    assert stats.completion_rate() == 0.0
    summary = stats.summary()
    assert summary.completed == 0 and summary.aggregate_run_time is None


def test_completion_rate_uses_active_time():
    stats = _stats([(0, 0.1)] * 4)
    assert stats.active_time > 0
    assert stats.completion_rate() == pytest.approx(4 / stats.active_time)
    stats.active_time = 2.0
    assert stats.completion_rate() == pytest.approx(2.0)


def test_queries_are_idempotent():
    stats = _stats([(0, 0.3), (2, 0.7), (0, 0.2)])
    first = stats.summary().model_dump()
    for _ in range(3):
        assert stats.variance() == first["variance"]
        assert stats.completion_rate() == first["completion_rate"]
    assert stats.summary().model_dump() == first


def test_update_requires_finished_job():
    stats = RunStats(1)
    with pytest.raises(ValueError):
        stats.update(Job.create(1, "bgjob", ["true"]))
    assert stats.completed == 0


def test_finish_requires_start():
    with pytest.raises(RuntimeError):
        RunStats(1).finish()
