"""Tests for the report orchestrator.

Invariants:
1. Two runs over unchanged documents store byte-identical value_json
2. An inaccessible document root fails the run without touching records
3. Records are written in configured model order plus one dashboard
"""

import json
from pathlib import Path

import pytest

from evaldash.adapter.documents import DocumentRootError
from evaldash.db import repo
from evaldash.models.types import DashboardData, ModelData
from evaldash.worker.orchestrator import ReportOrchestrator


def stored_values(session, experiment_id: str) -> dict[str, str]:
    values = {r.name: r.value_json for r in repo.list_model_records(session, experiment_id)}
    values["__dashboard__"] = repo.get_dashboard_record(session, experiment_id).value_json
    return values


class TestBuild:
    def test_build_is_pure(self, session, config):
        report = ReportOrchestrator(session, config).build()
        assert [m.name for m in report.models] == ["Bank", "Restaurant"]
        assert [m.name for m in report.dashboard.models] == ["Bank", "Restaurant"]
        assert repo.get_latest_run(session, config.experiment_id) is None

    def test_build_propagates_root_error(self, session, config, tmp_path: Path):
        bad = config.model_copy(update={"data_root": tmp_path / "missing"})
        with pytest.raises(DocumentRootError):
            ReportOrchestrator(session, bad).build()


class TestRun:
    def test_run_stores_records(self, session, config):
        run = ReportOrchestrator(session, config).run()
        assert run.status == "succeeded"
        assert run.model_count == 2
        assert run.ended_at is not None

        records = repo.list_model_records(session, config.experiment_id)
        assert [r.name for r in records] == ["Bank", "Restaurant"]
        for record in records:
            assert record.run_id == run.run_id
            ModelData.model_validate_json(record.value_json)
        dashboard = repo.get_dashboard_record(session, config.experiment_id)
        assert DashboardData.model_validate_json(dashboard.value_json).experiment_id == "exp-test"

    def test_idempotent(self, session, config):
        """Unchanged documents produce byte-identical stored records."""
        ReportOrchestrator(session, config).run()
        first = stored_values(session, config.experiment_id)
        ReportOrchestrator(session, config).run()
        second = stored_values(session, config.experiment_id)
        assert first == second

    def test_rerun_replaces_records(self, session, config):
        first = ReportOrchestrator(session, config).run()
        second = ReportOrchestrator(session, config).run()
        records = repo.list_model_records(session, config.experiment_id)
        assert len(records) == 2
        assert {r.run_id for r in records} == {second.run_id}
        assert first.run_id != second.run_id

    def test_root_error_records_failed_run(self, session, config, tmp_path: Path):
        ReportOrchestrator(session, config).run()
        before = stored_values(session, config.experiment_id)

        bad = config.model_copy(update={"data_root": tmp_path / "missing"})
        with pytest.raises(DocumentRootError):
            ReportOrchestrator(session, bad).run()

        latest = repo.get_latest_run(session, config.experiment_id)
        assert latest.status == "failed"
        assert latest.error_code == "DocumentRootError"
        assert stored_values(session, config.experiment_id) == before

    def test_root_error_writes_no_record(self, session, config, tmp_path: Path):
        bad = config.model_copy(update={"data_root": tmp_path / "missing"})
        with pytest.raises(DocumentRootError):
            ReportOrchestrator(session, bad).run()
        assert repo.list_model_records(session, config.experiment_id) == []
        assert repo.get_dashboard_record(session, config.experiment_id) is None


class TestWriteJson:
    def test_layout(self, session, config, tmp_path: Path):
        out = tmp_path / "out"
        written = ReportOrchestrator(session, config).write_json(out)
        assert written[0] == out / "dashboard.json"
        assert (out / "models" / "Bank.json").is_file()
        assert (out / "models" / "Restaurant.json").is_file()

        bank = json.loads((out / "models" / "Bank.json").read_text(encoding="utf-8"))
        assert bank["name"] == "Bank"
        assert len(bank["simple"]["generations"]) == 3
        assert len(bank["cot"]["generations"][0]["categories"]) == 5

    def test_generation_files(self, session, config, tmp_path: Path):
        """Per-generation files carry validation counts at the top level of metrics."""
        out = tmp_path / "out"
        ReportOrchestrator(session, config).write_json(out)
        gen_dir = out / "generations" / "bank"
        assert sorted(p.name for p in gen_dir.iterdir()) == [
            "cot-gen1.json",
            "cot-gen2.json",
            "simple-gen1.json",
            "simple-gen2.json",
            "simple-gen3.json",
        ]

        simple = json.loads((gen_dir / "simple-gen1.json").read_text(encoding="utf-8"))
        assert simple["id"] == "gen1"
        assert simple["metrics"]["syntax_errors"] == 0
        assert simple["metrics"]["syntax_total"] == 10
        assert simple["metrics"]["multiplicities_errors"] == 1
        assert simple["metrics"]["coverage"]["classes"] == 1.0
        assert "errors" not in simple["metrics"]

        cot = json.loads((gen_dir / "cot-gen1.json").read_text(encoding="utf-8"))
        categories = {c["category"]: c for c in cot["categories"]}
        assert len(categories) == 5
        assert categories["baseline"]["metrics"]["syntax_errors"] == 1
        assert categories["invalid"]["metrics"]["overconstraints"]["multiplicities_errors"] == 2
        assert categories["baseline"]["metrics"]["overconstraints"] is None

    def test_reuses_report_from_run(self, session, config, tmp_path: Path, monkeypatch):
        orchestrator = ReportOrchestrator(session, config)
        orchestrator.run()
        assert orchestrator.report is not None

        def fail_build():
            raise AssertionError("documents parsed twice")

        monkeypatch.setattr(orchestrator, "build", fail_build)
        written = orchestrator.write_json(tmp_path / "out", orchestrator.report)
        assert written[0] == tmp_path / "out" / "dashboard.json"
