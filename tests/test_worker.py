"""
Tests for the fetch-and-diff task body.
"""

import pytest

from apiparity.cache import ResponseCache
from apiparity.models import ComparisonTask
from apiparity.worker import run_task

URL_A = "https://prod.example.com/api/i/teams/42/score"
URL_B = "https://staging.example.com/api/i/teams/42/score"


@pytest.fixture
def task():
    return ComparisonTask(
        key="score",
        params={"teamId": 42},
        geo="IN",
        url_a=URL_A,
        url_b=URL_B,
        header_template={"accept": "application/json", "cb-loc": ["IN", "US"]},
    )


def _run(fake_fetcher_cls, routes, task, ignore_paths=()):
    cache = ResponseCache(fake_fetcher_cls(routes), max_retries=3, delay_ms=0)
    return run_task(task, cache, ignore_paths)


class TestRunTask:

    def test_numeric_edit_scenario(self, fake_fetcher_cls, task):
        record = _run(fake_fetcher_cls, {URL_A: {"runs": 100}, URL_B: {"runs": 105}}, task)

        assert record.error is None
        assert len(record.diffs) == 1
        diff = record.diffs[0]
        assert diff.kind == "Edit"
        assert (diff.severity, diff.change_type, diff.priority) == ("Warning", "value", 1)
        assert record.raw_json_a == {"runs": 100}
        assert record.raw_json_b == {"runs": 105}
        assert (record.status_a, record.status_b) == (200, 200)

    def test_deletion_scenario(self, fake_fetcher_cls, task):
        record = _run(fake_fetcher_cls, {URL_A: {"ad": {"id": 1}}, URL_B: {}}, task)

        assert len(record.diffs) == 1
        diff = record.diffs[0]
        assert diff.kind == "Delete"
        assert (diff.severity, diff.change_type, diff.priority) == ("Error", "structural", 10)

    def test_identical_payloads_have_no_diffs(self, fake_fetcher_cls, task):
        record = _run(fake_fetcher_cls, {URL_A: {"a": [1]}, URL_B: {"a": [1]}}, task)
        assert record.diffs == []
        assert record.error is None

    def test_side_a_failure(self, fake_fetcher_cls, task):
        record = _run(fake_fetcher_cls, {URL_A: 500, URL_B: {"runs": 1}}, task)

        assert record.error.startswith("A failed (loc=IN)")
        assert "500" in record.error
        assert record.diffs == []
        assert record.raw_json_a is None
        assert record.raw_json_b == {"runs": 1}
        assert record.status_a == 500

    def test_side_b_failure(self, fake_fetcher_cls, task):
        record = _run(fake_fetcher_cls, {URL_A: {"runs": 1}, URL_B: 503}, task)
        assert record.error.startswith("B failed (loc=IN)")
        assert record.raw_json_a == {"runs": 1}
        assert record.raw_json_b is None

    def test_both_sides_are_fetched_even_when_a_fails(self, fake_fetcher_cls, task):
        fetcher = fake_fetcher_cls({URL_A: 500, URL_B: {}})
        run_task(task, ResponseCache(fetcher, max_retries=0, delay_ms=0))
        assert [c[0] for c in fetcher.calls] == [URL_A, URL_B]

    def test_ignore_paths_drop_diffs(self, fake_fetcher_cls, task):
        routes = {
            URL_A: {"meta": {"ts": 1}, "runs": 1},
            URL_B: {"meta": {"ts": 2}, "runs": 1},
        }
        assert _run(fake_fetcher_cls, routes, task, ignore_paths=["meta"]).diffs == []
        assert len(_run(fake_fetcher_cls, routes, task, ignore_paths=["meta.x"]).diffs) == 1

    def test_headers_narrowed_to_geo(self, fake_fetcher_cls, task):
        fetcher = fake_fetcher_cls({URL_A: {}, URL_B: {}})
        record = run_task(task, ResponseCache(fetcher, max_retries=0, delay_ms=0))
        assert fetcher.calls[0][1] == {"accept": "application/json", "cb-loc": "IN"}
        assert record.headers_used == {"accept": "application/json", "cb-loc": "IN"}

    def test_record_serializes(self, fake_fetcher_cls, task):
        record = _run(fake_fetcher_cls, {URL_A: {"runs": 100}, URL_B: {"runs": 105}}, task)
        d = record.to_dict()
        assert d["key"] == "score"
        assert d["params"] == {"teamId": 42}
        assert d["cbLoc"] == "IN"
        assert d["diffs"][0] == {
            "kind": "Edit",
            "path": ["runs"],
            "lhs": 100,
            "rhs": 105,
            "severity": "Warning",
            "changeType": "value",
            "priority": 1,
        }
