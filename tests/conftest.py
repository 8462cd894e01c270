"""Shared pytest fixtures for evaldash tests."""

from pathlib import Path
from textwrap import dedent

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from evaldash.config import ExperimentConfig
from evaldash.db.schema import Base

SIMPLE_RUN = "2024-01-01_10-00"
COT_RUN = "2024-01-02_10-00"


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


def write(path: Path, text: str) -> Path:
    """Write dedented text, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dedent(text).lstrip("\n"), encoding="utf-8")
    return path


PRICE_MD = """
# Simple
## Bank
precio: 5.12$
token-input: 12000
token-output: 4800
## Restaurant
precio: 2.00$
token-input: 1000
token-output: 500
## All Systems
precio: 7.12$
token-input: 13000
token-output: 5300
# CoT
## Bank
precio: 3.00$
token-input: 9000
token-output: 3000
"""

SIMPLE_COVERAGE_MD = """
## Bank
### gen1
| Model Coverage | instantiated | defined | coverage |
|---|---|---|---|
| **classes** | 4.0000 | 4.0000 | 1.0000 |
| **attributes** | 6.0000 | 8.0000 | 0.7500 |
| **relationships** | 1.0000 | 2.0000 | 0.5000 |

| Instantiation Stats | total instantiated | total possible | ratio |
|---|---|---|---|
| **classes** | 14.0000 | Infinity | 0.0000 |
| **attributes** | 40.0000 | Infinity | 0.0000 |
| **relationships** | 9.0000 | Infinity | 0.0000 |
### gen2
| Model Coverage | instantiated | defined | coverage |
|---|---|---|---|
| **classes** | 2.0000 | 4.0000 | 0.5000 |
## restaurant
### gen1
| Model Coverage | instantiated | defined | coverage |
|---|---|---|---|
| **classes** | 1.0000 | 4.0000 | 0.2500 |
"""

SIMPLE_DIFFERENCE_MD = """
## Bank
| Generations | Numeric | StringEquals | StringLv |
|---|---|---|---|
| gen1 | 1.0000 | 1.0000 | 0.7762 |
| gen2 | 0.9000 | 0.9500 | 0.8000 |
| ALL Gen | 0.9639 | 0.9997 | 0.8372 |
"""

SIMPLE_SHANNON_MD = """
## Bank
### gen1
| Account.type | Nº |
|---|---|
| **Savings** | 1.0000 |
| **Checking** | 0.0000 |

| Entropy | Value |
|---|---|
| **Entropy** | 1.0000 |
| **Evenness (all groups)** | 0.5000 |
"""

COT_COVERAGE_MD = """
## Bank
### gen1
#### baseline
| Model Coverage | instantiated | defined | coverage |
|---|---|---|---|
| **classes** | 4.0000 | 4.0000 | 1.0000 |
Uncovered: [Branch]
Hallucinations: []
#### ALL Categories
| Model Coverage | instantiated | defined | coverage |
|---|---|---|---|
| **classes** | 9.0000 | 9.0000 | 0.2000 |
"""

COT_DIFFERENCE_MD = """
## Bank
| gen1 | Numeric | StringEquals | StringLv |
|---|---|---|---|
| invalid | 0.7000 | 1.0000 | 0.6000 |
| baseline | 0.9000 | 1.0000 | 0.8000 |
| edge | 0.8000 | 1.0000 | 0.7000 |
| ALL Categories | 0.8000 | 1.0000 | 0.7000 |

| ALL Generations | Numeric | StringEquals | StringLv |
|---|---|---|---|
| ALL Generations | 0.9500 | 0.9900 | 0.8800 |
"""

COMBINED_DIFFERENCE_MD = """
## Bank
| Mode | Numeric | StringEquals | StringLv |
|---|---|---|---|
| ALL Generations | 0.9000 | 0.9900 | 0.8500 |
"""

GLOBAL_JUDGE_RESULTS_MD = """
| Model | Realistic | Unrealistic | Unknown | Success Rate |
|---|---|---|---|---|
| **Bank** | 2 | 1 | 0 | 66.67 |
| Total | 2 | 1 | 0 | 66.67 |
"""

SIMPLE_METRICS_MD = """
# Generation 1
```soil
!new Bank('b1')
```
## Generation 1 summary
| General | Errors | Total | Failure (%) |
|---|---|---|---|
| Syntax Errors | 0 | 10 | 0.00% |
| Multiplicities Errors | 1 | 4 | 25.00% |
| Invariants Errors | 0 | 2 | 0.00% |

| Bank | Invalid | Total | Failure (%) |
|---|---|---|---|
| IBANs | 1 | 2 | 50.00% |

| Failed IBANs |
|---|
```ES00 0000```

# Generation 2
## Generation 2 summary
| General | Errors | Total | Failure (%) |
|---|---|---|---|
| Syntax Errors | 5 | 10 | 50.00% |

# Summary for all generations
| General | Errors | Total | Failure (%) |
|---|---|---|---|
| Syntax Errors | 99 | 100 | 99.00% |
"""

SIMPLE_LOGS_MD = """
# Input ISimple : gen1
Create an instance of the Bank model.
|Response|
|---|
Finish Reason: STOP
Input Tokens: 670
Output Tokens: 592
# Input ISimple : gen2
|Response|
Input Tokens: 100
Output Tokens: 50
"""

GRAKEL_MD = """
# Adj, edge, label
```
Adj1: [[0, 1], [1, 0]]
Labels1: {0: 'Bank', 1: 'Account'}
Edges1: [(0, 1)]
Adj2: [[0]]
Labels2: {0: 'Bank'}
Edges2: []
```
# Kernel 2D table:
|          | gen1 | gen2 |
|----------|------|------|
| **gen1** | 1.0  | 0.5  |
| **gen2** |      | 1.0  |
"""

COT_METRICS_MD = """
# Generation 1
## Category baseline
| General | Errors | Total | Failure (%) |
|---|---|---|---|
| Syntax Errors | 1 | 4 | 25.00% |
## Category invalid
| [Overconstraints Detection] | Errors | Total | Failure (%) |
|---|---|---|---|
| Multiplicities Errors (Not included on General) | 2 | 9 | 22.22% |

| General | Errors | Total | Failure (%) |
|---|---|---|---|
| Syntax Errors | 0 | 4 | 0.00% |
## Generation 1 summary
| General | Errors | Total | Failure (%) |
|---|---|---|---|
| Syntax Errors | 50 | 100 | 50.00% |
"""

COT_LOGS_MD = """
# Input ICoT_baseline : gen1
|Response|
Input Tokens: 10
Output Tokens: 5
# Input ICoT_invalid : gen1
|Response|
Input Tokens: 20
Output Tokens: 7
"""

RESTAURANT_RESPONSES_MD = """
# output.soil
**Response**: Realistic
**Why**: Plausible values.
# gen2
**Response**: Realistic
**Why**: Fine.
# gen3
**Response**: maybe
"""


def write_experiment(root: Path, diagram_root: Path) -> Path:
    """Write a two-model experiment (Bank fully populated, Restaurant sparse)."""
    write(root / "price.md", PRICE_MD)
    write(root / "simpleCoverage.md", SIMPLE_COVERAGE_MD)
    write(root / "simpleDifference.md", SIMPLE_DIFFERENCE_MD)
    write(root / "simpleShannon.md", SIMPLE_SHANNON_MD)
    write(root / "cotCoverage.md", COT_COVERAGE_MD)
    write(root / "cotDifference.md", COT_DIFFERENCE_MD)
    write(root / "combinedDifference.md", COMBINED_DIFFERENCE_MD)
    write(root / "Simple" / "judge-results.md", GLOBAL_JUDGE_RESULTS_MD)

    bank_simple = root / "Simple" / "Bank" / SIMPLE_RUN
    write(bank_simple / "metrics.md", SIMPLE_METRICS_MD)
    write(bank_simple / "logs.md", SIMPLE_LOGS_MD)
    write(bank_simple / "grakel.md", GRAKEL_MD)
    write(bank_simple / "gen1" / "output.soil", "!new Bank('b1')\n")
    write(bank_simple / "gen1" / "output.pdf", "%PDF-1.4\n")

    bank_cot = root / "CoT" / "Bank" / COT_RUN
    write(bank_cot / "metrics.md", COT_METRICS_MD)
    write(bank_cot / "logs.md", COT_LOGS_MD)
    write(bank_cot / "gen1" / "baseline.pdf", "%PDF-1.4\n")

    restaurant_simple = root / "Simple" / "Restaurant"
    write(restaurant_simple / "2024-02-01_09-00" / "judge-responses.md", RESTAURANT_RESPONSES_MD)
    (restaurant_simple / "2024-03-01_09-00").mkdir(parents=True)

    write(diagram_root / "bank" / "diagram.pdf", "%PDF-1.4\n")
    return root


@pytest.fixture
def experiment_root(tmp_path: Path) -> Path:
    """Document root of a small two-model experiment."""
    return write_experiment(tmp_path / "exp-test", tmp_path / "prompts")


@pytest.fixture
def config(tmp_path: Path, experiment_root: Path) -> ExperimentConfig:
    """Config over experiment_root with three simple and two CoT generations."""
    return ExperimentConfig(
        experiment_id="exp-test",
        data_root=experiment_root,
        models=["Bank", "Restaurant"],
        simple_generations=3,
        cot_generations=2,
        diagram_root=tmp_path / "prompts",
        db_path=tmp_path / "evaldash.db",
    )
