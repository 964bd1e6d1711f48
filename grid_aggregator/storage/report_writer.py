"""
Report writer.

Persists the aggregation report as a JSON document.
"""
import json
import logging
from pathlib import Path
from typing import Union

from ..exceptions import ReportPersistenceException
from ..models import AggregationReport

logger = logging.getLogger(__name__)


class ReportWriter:
    """Writes aggregation reports to a JSON file."""

    def __init__(self, output_file: Union[str, Path]):
        """
        Initialize the report writer.

        Args:
            output_file: Destination path; parent directories are created.
        """
        self.output_file = Path(output_file)

    def save(self, report: AggregationReport) -> Path:
        """
        Save a report.

        Args:
            report: Report to persist.

        Returns:
            Path the report was written to.

        Raises:
            ReportPersistenceException: If the file cannot be written.
        """
        try:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            self.output_file.write_text(
                json.dumps(report.to_document(), indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise ReportPersistenceException(str(self.output_file), str(e)) from e

        logger.info(f"Results saved to {self.output_file}")
        return self.output_file
