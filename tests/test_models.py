from batcher.core.models import BatchConfig, JobRecord, RunSummary
import pytest


def test_batch_config_defaults():
    cfg = BatchConfig()
    assert cfg.total == 50
    assert cfg.batch == 10
    assert cfg.prefix == "bgjob"
    assert cfg.command == ("sleep", "1")
    assert cfg.ticks == 20


def test_batch_config_validation():
    # total, batch and ticks must be positive
    with pytest.raises(Exception):
        BatchConfig(total=0)
    with pytest.raises(Exception):
        BatchConfig(total=5, batch=0)
    with pytest.raises(Exception):
        BatchConfig(total=5, batch=2, ticks=0)
    # batch cannot exceed total
    with pytest.raises(Exception):
        BatchConfig(total=2, batch=3)
    # prefix needs at least two characters
    with pytest.raises(Exception):
        BatchConfig(prefix="x")
    with pytest.raises(Exception):
        BatchConfig(command=[])
    with pytest.raises(Exception):
        BatchConfig(command=["", "arg"])
    # ok case: batch == total
    cfg = BatchConfig(total=3, batch=3, prefix="ab", command=["true"])
    assert cfg.batch == cfg.total


def test_batch_config_is_immutable():
    cfg = BatchConfig(total=4, batch=2)
    with pytest.raises(Exception):
        cfg.total = 10
    assert cfg.total == 4
    with pytest.raises(AttributeError):
        cfg.command.append("extra")
    assert cfg.command == ("sleep", "1")


def test_job_record_outcome_consistency():
    base = dict(id=1, name="bgjob_000001", command=["true"], created_at=1.0, started_at=1.5, duration=0.1)
    ok = JobRecord(outcome="succeeded", exit_status=0, **base)
    assert ok.launch_error is None
    failed = JobRecord(outcome="failed", exit_status=7, **base)
    assert failed.exit_status == 7
    invalid = JobRecord(outcome="invalid", exit_status=-1, launch_error="No such file", **base)
    assert invalid.launch_error == "No such file"
    # launch error without negative status
    with pytest.raises(Exception):
        JobRecord(outcome="failed", exit_status=1, launch_error="boom", **base)
    # negative status without launch error
    with pytest.raises(Exception):
        JobRecord(outcome="invalid", exit_status=-1, **base)
    # outcome must follow exit status
    with pytest.raises(Exception):
        JobRecord(outcome="succeeded", exit_status=2, **base)


def test_job_record_start_after_creation():
    with pytest.raises(Exception):
        JobRecord(id=1, name="n", command=["true"], outcome="succeeded", exit_status=0,
                  created_at=2.0, started_at=1.0, duration=0.0)


def test_run_summary_counts_must_add_up():
    fields = dict(total=3, completion_pct=100.0, success_pct=66.667, failure_pct=33.333,
                  invalid_pct=0.0, active_time=1.0, completion_rate=3.0)
    s = RunSummary(completed=3, succeeded=2, failed=1, invalid=0, **fields)
    assert s.variance is None
    with pytest.raises(Exception):
        RunSummary(completed=3, succeeded=2, failed=0, invalid=0, **fields)
