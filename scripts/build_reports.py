#!/usr/bin/env python3
"""Build and store the report records of one experiment.

Usage:
    python scripts/build_reports.py [--json-dir DIR]

Configuration comes from EVALDASH_* environment variables (see
evaldash.config). This script:
1. Initializes the database
2. Parses the experiment documents and stores one record per model
   plus the dashboard record
3. Optionally writes the same records as JSON files, including one
   flat file per generation
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from evaldash.adapter.documents import DocumentRootError  # noqa: E402
from evaldash.config import ExperimentConfig  # noqa: E402
from evaldash.db.session import get_db_session, init_db  # noqa: E402
from evaldash.worker.orchestrator import ReportOrchestrator  # noqa: E402


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--json-dir", type=Path, help="also write JSON records here")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ExperimentConfig.from_env()
    init_db(config.db_path)

    try:
        with get_db_session(config.db_path) as session:
            orchestrator = ReportOrchestrator(session, config)
            run = orchestrator.run()
            if args.json_dir:
                orchestrator.write_json(args.json_dir, orchestrator.report)
    except DocumentRootError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Run {run.run_id}: {run.status}, {run.model_count} models")
    print(f"Database: {config.db_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
