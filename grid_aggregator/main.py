"""
EnergyGrid Aggregator - Main Entry Point.

Runs one aggregation:
1. Probes the EnergyGrid API
2. Fetches telemetry for every device, one request per interval
3. Saves the aggregated report and logs a summary
"""
import asyncio
import logging
import signal
import sys
from typing import Optional

from pydantic import ValidationError

from .config import AggregatorSettings, get_settings
from .core.aggregator import DataAggregator
from .core.summary import ReportSummary
from .exceptions import AggregatorException, ReportPersistenceException
from .storage.report_writer import ReportWriter
from .transport.api_client import EnergyGridClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def setup_signal_handlers(task: asyncio.Task, loop: asyncio.AbstractEventLoop) -> None:
    """Cancel the aggregation task on SIGINT/SIGTERM."""
    def signal_handler():
        logger.info("Received shutdown signal. Shutting down gracefully...")
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(signal_handler))


async def run_aggregation(
    settings: Optional[AggregatorSettings] = None,
    client: Optional[EnergyGridClient] = None,
    writer: Optional[ReportWriter] = None,
) -> int:
    """
    Run one aggregation and persist its report.

    Args:
        settings: Aggregator settings.
        client: EnergyGrid client (created from settings if omitted).
        writer: Report writer (created from settings if omitted).

    Returns:
        Process exit code.
    """
    settings = settings or get_settings()
    client = client or EnergyGridClient(settings)
    writer = writer or ReportWriter(settings.output.file)
    aggregator = DataAggregator(client, settings)

    try:
        async with client:
            report = await aggregator.run()
    except AggregatorException as e:
        logger.error(f"Fatal error: {e.message}")
        return EXIT_FATAL
    finally:
        await aggregator.rate_limiter.shutdown()

    try:
        writer.save(report)
    except ReportPersistenceException as e:
        logger.error(e.message)

    ReportSummary.from_report(report).log()
    logger.info("Data aggregation completed successfully!")
    return EXIT_OK


async def main() -> int:
    """Main entry point."""
    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging()
        logger.error(f"Fatal error: invalid configuration: {e}")
        return EXIT_FATAL

    configure_logging(settings.log_level)

    loop = asyncio.get_running_loop()
    task = asyncio.create_task(run_aggregation(settings), name="aggregation")
    setup_signal_handlers(task, loop)

    try:
        return await task
    except asyncio.CancelledError:
        logger.info("Interrupted, no report written")
        return EXIT_OK
    except Exception:
        logger.exception("Unexpected error during aggregation")
        return EXIT_FATAL


def cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
