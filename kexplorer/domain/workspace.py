"""Workspace handle for a pipeline run.

Every stage runs with the workspace as its working directory and refers to
its inputs and outputs by relative file name. The handle is passed
explicitly to every stage so runs can be given private directories.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SOURCE_FILE_NAME = "KotlinExplorer.kt"
RULES_FILE_NAME = "rules.txt"
CLASS_FILE_SUFFIX = ".class"

R8_RULES = "-keep,allowoptimization class * { <methods>; }"


@dataclass(frozen=True)
class Workspace:
    """A directory owned by one pipeline run at a time."""

    path: Path

    @classmethod
    def shared(cls, path: Path) -> Workspace:
        """Reuse one fixed directory across runs.

        Only safe while runs are serialised (see PipelineOrchestrator.start).
        """
        return cls(path)

    @classmethod
    def private(cls, root: Path) -> Workspace:
        """Create a fresh directory under root for a single run."""
        root.mkdir(parents=True, exist_ok=True)
        return cls(Path(tempfile.mkdtemp(prefix="run-", dir=root)))

    @property
    def source_path(self) -> Path:
        return self.path / SOURCE_FILE_NAME

    @property
    def rules_path(self) -> Path:
        return self.path / RULES_FILE_NAME

    def prepare(self) -> int:
        """Create the directory and delete class files left by a previous run.

        Only *.class files are removed. Other artifacts (rules.txt,
        classes.dex) are overwritten in place by the stages that produce them.

        Returns:
            Number of class files removed.
        """
        self.path.mkdir(parents=True, exist_ok=True)
        removed = 0
        for entry in self.path.iterdir():
            if entry.suffix == CLASS_FILE_SUFFIX and entry.is_file():
                entry.unlink()
                removed += 1
        if removed:
            logger.debug("Removed %d stale class file(s) from %s", removed, self.path)
        return removed

    def write_source(self, source: str) -> Path:
        """Write the submitted source to the fixed source file name."""
        self.source_path.write_text(source)
        return self.source_path

    def write_rules(self) -> Path:
        """Write the R8 keep rule consumed by the optimize stage."""
        self.rules_path.write_text(R8_RULES)
        return self.rules_path

    def class_files(self) -> list[str]:
        """Names of the compiled class files present, sorted ascending.

        Sorting makes javap and R8 argument order, and therefore their
        output, identical across runs of the same source.
        """
        return sorted(
            entry.name
            for entry in self.path.iterdir()
            if entry.suffix == CLASS_FILE_SUFFIX and entry.is_file()
        )
