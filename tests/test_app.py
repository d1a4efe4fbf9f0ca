"""
Tests for config file loading, result persistence and the CLI.
"""

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from apiparity import app
from apiparity.schema import ConfigError
from apiparity.storage import load_config_dir, save_results
from apiparity.models import JobResult


@pytest.fixture
def config_dir(tmp_path, job_dict, header_templates, id_catalog, endpoint_catalog):
    d = tmp_path / "config"
    d.mkdir()
    (d / "comparison.json").write_text(json.dumps({"jobs": [job_dict]}), encoding="utf-8")
    (d / "headers.json").write_text(json.dumps(header_templates), encoding="utf-8")
    (d / "ids.json").write_text(json.dumps(id_catalog), encoding="utf-8")
    (d / "endpoints.json").write_text(json.dumps(endpoint_catalog), encoding="utf-8")
    return d


def _main(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["apiparity", *argv])
    app.main()


def _json_response(payload):
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = payload
    return resp


class TestStorage:

    def test_load_config_dir(self, config_dir, job_dict):
        cfg = load_config_dir(config_dir)
        assert cfg["jobs"] == [job_dict]
        assert "i" in cfg["headers"]
        assert cfg["ids"]["teamId"] == [42, 7, 13]
        assert len(cfg["endpoints"]) == 5

    def test_missing_file(self, config_dir):
        (config_dir / "ids.json").unlink()
        with pytest.raises(ConfigError, match="ids.json"):
            load_config_dir(config_dir)

    def test_invalid_json(self, config_dir):
        (config_dir / "headers.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config_dir(config_dir)

    def test_jobs_list_required(self, config_dir):
        (config_dir / "comparison.json").write_text("{}", encoding="utf-8")
        with pytest.raises(ConfigError, match="jobs"):
            load_config_dir(config_dir)

    def test_save_results(self, tmp_path):
        out = tmp_path / "reports" / "diff_data.json"
        save_results(out, [JobResult(job_name="j", platform="i")])
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data[0]["jobName"] == "j"
        assert data[0]["summary"]["totalComparisons"] == 0


class TestCli:

    def test_version(self, monkeypatch, capsys):
        _main(monkeypatch, "--version")
        assert capsys.readouterr().out.strip() == app.__version__

    def test_validate_ok(self, monkeypatch, capsys, config_dir):
        _main(monkeypatch, "validate", "--config-dir", str(config_dir))
        assert "Valid job ios-smoke" in capsys.readouterr().out

    def test_validate_reports_errors(self, monkeypatch, capsys, config_dir, job_dict):
        del job_dict["retryPolicy"]
        (config_dir / "comparison.json").write_text(json.dumps({"jobs": [job_dict]}), encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            _main(monkeypatch, "validate", "--config-dir", str(config_dir))
        assert exc_info.value.code == 2
        assert "retryPolicy" in capsys.readouterr().out

    def test_tasks(self, monkeypatch, capsys, config_dir):
        _main(monkeypatch, "tasks", "--config-dir", str(config_dir), "--job", "ios-smoke", "--quick")
        out = capsys.readouterr().out
        assert "1 tasks for job 'ios-smoke'" in out
        assert "/i/teams/42/score" in out

    def test_unknown_job(self, monkeypatch, config_dir):
        with pytest.raises(SystemExit, match="No job named"):
            _main(monkeypatch, "tasks", "--config-dir", str(config_dir), "--job", "nope")

    def test_run_writes_results(self, monkeypatch, capsys, config_dir, tmp_path):
        out = tmp_path / "out.json"
        with patch("apiparity.fetch.requests.get", return_value=_json_response({"runs": 1})) as get:
            _main(
                monkeypatch, "run", "--config-dir", str(config_dir),
                "--quick", "--insecure", "--output", str(out),
            )

        assert get.call_args.kwargs["verify"] is False
        printed = capsys.readouterr().out
        assert "[ios-smoke] 1 comparisons, 0 failed" in printed
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data[0]["summary"]["totalComparisons"] == 1
