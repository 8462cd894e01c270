"""Report orchestrator.

Per-run pipeline:
1. Validate the document root and open a fresh DocumentCache
2. Parse the cross-model documents once
3. Assemble one ModelData per configured model
4. Fold the model summaries into the DashboardData record
5. Replace the experiment's stored records in a single transaction

Records are written only after every model has been assembled; a failed
run leaves the previously stored records untouched.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from evaldash.adapter.documents import DocumentCache, DocumentStore
from evaldash.aggregation.assembler import ModelAssembler
from evaldash.aggregation.dashboard import build_dashboard
from evaldash.config import ExperimentConfig
from evaldash.core.identity import compute_record_id, sha256_text
from evaldash.db import repo
from evaldash.db.repo import DbSession
from evaldash.models.domain import ReportRecordEntity, ReportRunEntity
from evaldash.models.types import (
    CotCategoryFile,
    CotGenerationFile,
    DashboardData,
    FlatGenerationMetrics,
    ModelData,
    SimpleGenerationFile,
)

logger = logging.getLogger(__name__)

DASHBOARD_FILE = "dashboard.json"
MODELS_DIR = "models"
GENERATIONS_DIR = "generations"


@dataclass
class ReportBuild:
    """Output of one pass over an experiment's documents."""

    models: list[ModelData]
    dashboard: DashboardData


class ReportOrchestrator:
    """Builds and stores the output records of one experiment.

    Thin layer that:
    - Builds records from documents (pure, no database access)
    - Records a report_runs row per run with its final status
    - Persists all records of a run in one transaction
    """

    def __init__(self, session: DbSession, config: ExperimentConfig):
        """Initialize orchestrator.

        Args:
            session: Database session for run and record storage.
            config: Experiment configuration (root, models, counts).
        """
        self.session = session
        self.config = config
        self.report: ReportBuild | None = None

    def build(self) -> ReportBuild:
        """Build every model record and the dashboard from the documents.

        Returns:
            ReportBuild with models in configured order.

        Raises:
            DocumentRootError: If the document root is not an accessible directory.
        """
        documents = DocumentStore(
            self.config.data_root,
            cache=DocumentCache(),
            diagram_root=self.config.diagram_root,
        )
        assembler = ModelAssembler(self.config, documents)
        global_docs = assembler.parse_global_documents()

        models = [assembler.assemble_model(name, global_docs) for name in self.config.models]
        dashboard = build_dashboard(
            models,
            global_docs.total_prices,
            global_docs.combined_difference,
            self.config.experiment_id,
        )
        logger.info(
            f"Built {len(models)} model records for {self.config.experiment_id} "
            f"({len(documents.cache)} documents read)"
        )
        return ReportBuild(models=models, dashboard=dashboard)

    def run(self) -> ReportRunEntity:
        """Build and persist the experiment's records.

        Returns:
            The finished ReportRunEntity.

        Raises:
            DocumentRootError: If the document root is not accessible. The
                run is recorded as failed and no record is written.
        """
        run_id = str(uuid.uuid4())
        experiment_id = self.config.experiment_id
        repo.create_run(
            self.session,
            ReportRunEntity(run_id=run_id, experiment_id=experiment_id, status="running"),
        )
        repo.commit(self.session)
        logger.info(f"Report run {run_id} started for {experiment_id}")

        try:
            report = self.build()
            records = self._to_records(run_id, report)
            repo.replace_records(self.session, experiment_id, records)
            repo.update_run_status(
                self.session, run_id, "succeeded", model_count=len(report.models)
            )
            repo.commit(self.session)
        except Exception as e:
            self.session.rollback()
            repo.update_run_status(
                self.session,
                run_id,
                "failed",
                error_code=type(e).__name__,
                error_detail=str(e),
            )
            repo.commit(self.session)
            logger.error(f"Report run {run_id} failed: {e}")
            raise

        self.report = report
        logger.info(f"Report run {run_id} stored {len(records)} records")
        return repo.get_run(self.session, run_id)

    def write_json(self, output_dir: Path, report: ReportBuild | None = None) -> list[Path]:
        """Write the records as JSON files.

        Layout:
            <output_dir>/dashboard.json
            <output_dir>/models/<Model>.json
            <output_dir>/generations/<model>/simple-genN.json and cot-genN.json

        Args:
            output_dir: Destination directory, created if missing.
            report: Already built records (e.g. self.report after run());
                built from the documents when omitted.

        Returns:
            Paths written, dashboard first.
        """
        if report is None:
            report = self.build()
        output_dir = Path(output_dir)
        models_dir = output_dir / MODELS_DIR
        models_dir.mkdir(parents=True, exist_ok=True)

        dashboard_path = output_dir / DASHBOARD_FILE
        dashboard_path.write_text(report.dashboard.model_dump_json(indent=2), encoding="utf-8")
        written = [dashboard_path]
        for model in report.models:
            path = models_dir / f"{model.name}.json"
            path.write_text(model.model_dump_json(indent=2), encoding="utf-8")
            written.append(path)
            written += _write_generation_files(output_dir / GENERATIONS_DIR / model.name.lower(), model)

        logger.info(f"Wrote {len(written)} JSON files to {output_dir}")
        return written

    def _to_records(self, run_id: str, report: ReportBuild) -> list[ReportRecordEntity]:
        experiment_id = self.config.experiment_id
        payloads = [("dashboard", experiment_id, report.dashboard.model_dump_json())]
        payloads += [("model", m.name, m.model_dump_json()) for m in report.models]
        return [
            ReportRecordEntity(
                record_id=compute_record_id(experiment_id, kind, name),
                run_id=run_id,
                experiment_id=experiment_id,
                kind=kind,
                name=name,
                value_json=value_json,
                sha256=sha256_text(value_json),
            )
            for kind, name, value_json in payloads
        ]


def _write_generation_files(gen_dir: Path, model: ModelData) -> list[Path]:
    """One flat file per generation, validation counts lifted out of errors."""
    gen_dir.mkdir(parents=True, exist_ok=True)
    files: list[tuple[str, SimpleGenerationFile | CotGenerationFile]] = []

    for gen in model.simple.generations:
        metrics = gen.metrics
        files.append(
            (
                f"simple-{gen.id}.json",
                SimpleGenerationFile(
                    id=gen.id,
                    metrics=FlatGenerationMetrics(
                        **metrics.errors.model_dump(),
                        coverage=metrics.coverage,
                        instantiation=metrics.instantiation,
                        diversity=metrics.diversity,
                    ),
                    judge=gen.judge,
                    pdf_available=gen.pdf_available,
                    pdf_url=gen.pdf_url,
                    code=gen.code,
                ),
            )
        )

    for gen in model.cot.generations:
        categories = [
            CotCategoryFile(
                category=cat.category,
                metrics=FlatGenerationMetrics(
                    **cat.metrics.errors.model_dump(),
                    coverage=cat.metrics.coverage,
                    instantiation=cat.metrics.instantiation,
                    overconstraints=cat.metrics.overconstraints,
                ),
                pdf_available=cat.pdf_available,
                pdf_url=cat.pdf_url,
                code=cat.code,
            )
            for cat in gen.categories
        ]
        files.append(
            (
                f"cot-{gen.id}.json",
                CotGenerationFile(
                    id=gen.id,
                    categories=categories,
                    diversity=gen.diversity,
                    all_categories_diversity=gen.all_categories_diversity,
                ),
            )
        )

    written = []
    for filename, payload in files:
        path = gen_dir / filename
        path.write_text(payload.model_dump_json(indent=2), encoding="utf-8")
        written.append(path)
    return written
