"""Document access for one experiment.

Adapter between the filesystem layout of an experiment and the pure
extractors. Handles run folder discovery, artifact availability and
memoized reads.

Layout:
    <root>/price.md, simpleCoverage.md, ... (global documents)
    <root>/Simple/judge-results.md, Simple/judge-responses.md
    <root>/<Mode>/<Model>/<timestamp>/metrics.md, grakel.md, logs.md
    <root>/<Mode>/<Model>/<timestamp>/gen<N>/<artifact>
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

SIMPLE_DIR = "Simple"
COT_DIR = "CoT"
MODE_DIRS = {"simple": SIMPLE_DIR, "cot": COT_DIR}


class DocumentRootError(Exception):
    """Raised when the configured document root is not an accessible directory."""


class DocumentCache:
    """Memoized document reads for the lifetime of one run.

    A missing or unreadable document is cached as None so it is only
    looked up once.
    """

    def __init__(self) -> None:
        self._texts: dict[Path, str | None] = {}

    def read(self, path: Path) -> str | None:
        """Return the text at path, or None if it cannot be read."""
        if path not in self._texts:
            self._texts[path] = self._load(path)
        return self._texts[path]

    def _load(self, path: Path) -> str | None:
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def __contains__(self, path: Path) -> bool:
        return path in self._texts

    def __len__(self) -> int:
        return len(self._texts)


class DocumentStore:
    """Reads the documents and artifacts of one experiment root."""

    def __init__(
        self,
        root: Path,
        cache: DocumentCache | None = None,
        diagram_root: Path | None = None,
    ):
        """Initialize the store.

        Args:
            root: Experiment document root.
            cache: Cache shared by every read of this run.
            diagram_root: Directory holding <model>/diagram.pdf files.

        Raises:
            DocumentRootError: If root is not an accessible directory.
        """
        root = Path(root)
        if not root.is_dir() or not os.access(root, os.R_OK | os.X_OK):
            raise DocumentRootError(f"Document root is not an accessible directory: {root}")
        self.root = root
        self.cache = cache if cache is not None else DocumentCache()
        self.diagram_root = diagram_root
        self._run_folders: dict[tuple[str, str], str | None] = {}

    def read_global(self, relative: str) -> str | None:
        """Read a document relative to the experiment root."""
        text = self.cache.read(self.root / relative)
        if text is None:
            logger.warning(f"Missing global document: {relative}")
        return text

    def run_folder(self, mode: str, model: str) -> str | None:
        """Name of the model's run (timestamp) folder for a mode.

        The first folder in sorted order is used when there are several.
        """
        key = (mode, model)
        if key not in self._run_folders:
            model_dir = self.root / MODE_DIRS[mode] / model
            try:
                folders = sorted(p.name for p in model_dir.iterdir() if p.is_dir())
            except OSError as e:
                if model_dir.exists():
                    logger.warning(f"Could not list {model_dir}: {e}")
                folders = []
            self._run_folders[key] = folders[0] if folders else None
        return self._run_folders[key]

    def run_path(self, mode: str, model: str) -> Path | None:
        folder = self.run_folder(mode, model)
        if folder is None:
            return None
        return self.root / MODE_DIRS[mode] / model / folder

    def read_model(self, mode: str, model: str, relative: str) -> str | None:
        """Read a document inside the model's run folder."""
        run_path = self.run_path(mode, model)
        if run_path is None:
            return None
        return self.cache.read(run_path / relative)

    def artifact_exists(self, mode: str, model: str, relative: str) -> bool:
        run_path = self.run_path(mode, model)
        return run_path is not None and (run_path / relative).is_file()

    def artifact_url(self, base_url: str, mode: str, model: str, relative: str) -> str | None:
        """URL of an artifact if it exists, else None."""
        if not self.artifact_exists(mode, model, relative):
            return None
        folder = self.run_folder(mode, model)
        return f"{base_url}/{MODE_DIRS[mode]}/{model}/{folder}/{relative}"

    def diagram_exists(self, model: str) -> bool:
        if self.diagram_root is None:
            return False
        return (self.diagram_root / model.lower() / "diagram.pdf").is_file()
