import pytest

from otcalc import worker as worker_module
from otcalc.worker import AnalysisWorker, analyze_snapshot
from otcalc import codec


def test_latest_request_wins(make_record, make_context):
    context = make_context()
    with AnalysisWorker(max_workers=2, use_processes=False) as pool:
        stale = pool.submit([make_record("r1", "2024-01-15T08:00", 9)], context)
        fresh = pool.submit([make_record("r1", "2024-01-15T08:00", 10)], context)

        assert fresh > stale
        assert pool.latest_request_id == fresh
        assert pool.collect(stale) is None
        results = pool.collect(fresh, timeout=30)

    assert results[0].totals.overtime == 2
    assert results[0].totals.amount == 220


def test_unknown_request_raises(make_context):
    with AnalysisWorker(use_processes=False) as pool:
        with pytest.raises(KeyError):
            pool.collect(42)


def test_collected_request_cannot_be_collected_twice(make_record, make_context):
    with AnalysisWorker(use_processes=False) as pool:
        request_id = pool.submit([make_record("r1", "2024-01-15T08:00", 4)], make_context())
        pool.collect(request_id, timeout=30)

        with pytest.raises(KeyError):
            pool.collect(request_id)


def test_falls_back_to_in_process_when_pool_unavailable(monkeypatch, make_record, make_context):
    def unavailable(*args, **kwargs):
        raise OSError("no threads here")

    monkeypatch.setattr(worker_module, "ThreadPoolExecutor", unavailable)

    pool = AnalysisWorker(use_processes=False)
    request_id = pool.submit([make_record("r1", "2024-01-15T08:00", 10)], make_context())

    assert pool.in_process
    assert pool.collect(request_id)[0].totals.regular == 8
    pool.shutdown()


def test_analyze_snapshot_returns_plain_data(make_record, make_context):
    payload = codec.dump_snapshot([make_record("r1", "2024-01-15T08:00", 10)], make_context())

    dumped = analyze_snapshot(payload)

    assert dumped[0]["person_id"] == "u1"
    assert dumped[0]["totals"]["amount"] == 220
    assert dumped[0]["days"][0]["date"] == "2024-01-15"
