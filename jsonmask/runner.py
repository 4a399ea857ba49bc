"""Batch runner that masks a folder of JSON files with one schema file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .engine import MaskEngine
from .models import EngineConfig, MaskResult, MaskSchema
from .io import load_document, schema_from_file, to_string
from .exceptions import DocumentParseError, MaskError

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    """Result of masking a single file."""
    name: str
    input_path: str
    matched: bool
    output_path: Optional[str] = None
    summary: Optional[dict] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "input_path": self.input_path,
            "matched": self.matched,
        }
        if self.output_path:
            result["output_path"] = self.output_path
        if self.summary:
            result["summary"] = self.summary
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class RunReport:
    """Report across all files of a run."""
    total: int = 0
    matched: int = 0
    rejected: int = 0
    failed: int = 0
    files: list[FileResult] = field(default_factory=list)
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

    def add(self, result: FileResult):
        self.total += 1
        self.files.append(result)
        if result.error:
            self.failed += 1
        elif result.matched:
            self.matched += 1
        else:
            self.rejected += 1

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "summary": {
                "total_files": self.total,
                "matched": self.matched,
                "rejected": self.rejected,
                "failed": self.failed,
            },
            "files": [f.to_dict() for f in self.files],
        }

    def print_summary(self):
        print(f"\nMasked {self.matched}/{self.total} files")
        if self.rejected > 0:
            print(f"  Rejected: {self.rejected}")
        if self.failed > 0:
            print(f"  Failed: {self.failed}")
            for f in self.files:
                if f.error:
                    print(f"    {f.name}: {f.error}")


class MaskRunner:
    """
    Loads a mask schema from a YAML/JSON file and applies it to input files.

    Usage:
        runner = MaskRunner("mask.yaml")
        result = runner.mask_file("payload.json")

        report = runner.run("payloads/", "masked/")
        report.print_summary()
    """

    def __init__(self, schema_path: str, engine_config: Optional[EngineConfig] = None):
        """
        Initialize the runner.

        Args:
            schema_path: Path to YAML/JSON schema file
            engine_config: Optional engine configuration
        """
        self.schema_path = Path(schema_path)
        self.engine_config = engine_config or EngineConfig()
        self.engine = MaskEngine(self.engine_config)
        self._schema: Optional[MaskSchema] = None

    @property
    def schema(self) -> MaskSchema:
        """Load and cache the schema from file."""
        if self._schema is None:
            self._schema = schema_from_file(self.schema_path, self.engine_config)
            logger.info("Loaded mask schema from %s", self.schema_path)
        return self._schema

    def mask_file(self, input_path: str) -> MaskResult:
        """Mask a single JSON/YAML file."""
        return self.engine.filter(self.schema, load_document(input_path))

    def run(
        self,
        input_folder: str,
        output_folder: Optional[str] = None,
        pretty: bool = False,
        print_report: bool = False
    ) -> RunReport:
        """
        Mask every *.json file in a folder.

        Args:
            input_folder: Folder containing the JSON files to mask
            output_folder: Where masked files are written (skipped if None)
            pretty: Indent written output
            print_report: Whether to print the summary report

        Returns:
            RunReport with one entry per file
        """
        input_folder = Path(input_folder)
        if not input_folder.exists():
            raise FileNotFoundError(f"Input folder not found: {input_folder}")

        # load once up front so schema errors surface before any file is read
        schema = self.schema

        out_dir = Path(output_folder) if output_folder else None
        if out_dir:
            out_dir.mkdir(parents=True, exist_ok=True)

        report = RunReport()
        for input_path in sorted(input_folder.glob("*.json")):
            report.add(self._run_file(schema, input_path, out_dir, pretty))

        logger.info(
            "Masked %d files: %d matched, %d rejected, %d failed",
            report.total, report.matched, report.rejected, report.failed
        )
        if print_report:
            report.print_summary()
        return report

    def _run_file(
        self,
        schema: MaskSchema,
        input_path: Path,
        out_dir: Optional[Path],
        pretty: bool
    ) -> FileResult:
        try:
            result = self.engine.filter(schema, load_document(input_path))
        except (DocumentParseError, MaskError) as e:
            logger.warning("Failed to mask %s: %s", input_path.name, e)
            return FileResult(
                name=input_path.name,
                input_path=str(input_path),
                matched=False,
                error=str(e),
            )

        output_path = None
        if out_dir and result.matched:
            output_path = out_dir / input_path.name
            output_path.write_text(to_string(result, pretty=pretty) + "\n", encoding='utf-8')

        return FileResult(
            name=input_path.name,
            input_path=str(input_path),
            matched=result.matched,
            output_path=str(output_path) if output_path else None,
            summary=result.summary.to_dict(),
        )
