"""Command-line interface for the AI video scraper."""

import asyncio
import logging
import logging.config
import signal
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import typer
from typing_extensions import Annotated

from aivideo_scraper.collector.fetcher import PostFetcher
from aivideo_scraper.collector.orchestrator import IngestionOrchestrator
from aivideo_scraper.collector.rate_limiter import RateLimiter
from aivideo_scraper.config import Config, to_dict
from aivideo_scraper.monitoring.metrics import PrometheusExporter
from aivideo_scraper.processing.classifier import Classifier
from aivideo_scraper.processing.media_resolver import MediaResolver
from aivideo_scraper.processing.tags import TagExtractor
from aivideo_scraper.processing.thumbnails import FfmpegFrameExtractor, ThumbnailGenerator
from aivideo_scraper.processing.validator import HttpProbe, VideoValidator
from aivideo_scraper.reddit_client import RedditClient
from aivideo_scraper.storage.database import Database
from aivideo_scraper.storage.video_sink import SQLAlchemyVideoSink

app = typer.Typer(help="AI video scraper - ingest AI-generated videos from Reddit")
db_app = typer.Typer(help="Manage the video database")
app.add_typer(db_app, name="db")

logger = logging.getLogger(__name__)

ConfigOption = Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")]
LogLevelOption = Annotated[Optional[str], typer.Option("--loglevel", "-l", help="Logging level")]


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": "logs/scraper.log",
                "maxBytes": 10485760,  # 10 MB
                "backupCount": 5,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": log_level,
                "propagate": True
            },
            "asyncio": {"level": "WARNING"},
            "asyncpraw": {"level": "WARNING"},
            "asyncprawcore": {"level": "WARNING"},
            "aiohttp": {"level": "WARNING"},
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str, log_level: Optional[str]) -> Config:
    """Load and validate configuration, exiting with status 1 when invalid."""
    config = Config.from_files(config_path)
    setup_logging(log_level.upper() if log_level else config.log_level)

    validation_errors = config.validate()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        logger.critical("Invalid configuration, aborting")
        sys.exit(1)

    logger.debug(f"Loaded configuration: {to_dict(config)}")
    return config


@asynccontextmanager
async def build_orchestrator(config: Config) -> AsyncIterator[IngestionOrchestrator]:
    """Wire up the pipeline components and release them on exit."""
    prometheus_exporter = None
    if config.monitoring.enable_prometheus:
        prometheus_exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
        prometheus_exporter.start_server()

    database = Database(config.postgres.database_url)
    rate_limiter = RateLimiter(config.rate_limit)
    reddit_client = RedditClient(config, rate_limiter, prometheus_exporter)
    probe = HttpProbe()

    try:
        await reddit_client.initialize()
        yield IngestionOrchestrator(
            catalog=config.sources,
            fetcher=PostFetcher(reddit_client, rate_limiter, config.fetch, prometheus_exporter),
            classifier=Classifier(),
            resolver=MediaResolver(),
            validator=VideoValidator(probe, config.probe.timeout_sec),
            thumbnails=ThumbnailGenerator(
                config.thumbnails,
                FfmpegFrameExtractor(config.thumbnails.ffmpeg_path, config.thumbnails.timeout_sec),
                prometheus_exporter,
            ),
            tag_extractor=TagExtractor(),
            sink=SQLAlchemyVideoSink(database),
            rate_limiter=rate_limiter,
            prefer_preview_thumbnails=config.thumbnails.prefer_preview,
            prometheus_exporter=prometheus_exporter,
        )
    finally:
        await probe.close()
        await reddit_client.close()
        database.dispose()


def install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    """Set ``shutdown_event`` on SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()

    def request_shutdown(signum: int) -> None:
        logger.info(f"Received {signal.Signals(signum).name} signal, initiating graceful shutdown")
        shutdown_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_shutdown, signum)
        except NotImplementedError:
            # Not available on Windows event loops
            pass


async def run_once(config: Config) -> int:
    shutdown_event = asyncio.Event()
    install_signal_handlers(shutdown_event)
    async with build_orchestrator(config) as orchestrator:
        report = await orchestrator.run_ingestion_cycle(shutdown_event)
    return report.total_processed


async def run_daemon(config: Config) -> None:
    """Run an ingestion cycle after the initial delay and then on every interval."""
    shutdown_event = asyncio.Event()
    install_signal_handlers(shutdown_event)

    async def wait(seconds: float) -> bool:
        """Sleep unless shutdown is requested first; True means keep going."""
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False

    async with build_orchestrator(config) as orchestrator:
        if not await wait(config.scheduler.initial_delay_sec):
            return
        while not shutdown_event.is_set():
            try:
                report = await orchestrator.run_ingestion_cycle(shutdown_event)
                logger.info(f"Scheduled run processed {report.total_processed} videos")
            except Exception as e:
                logger.error(f"Scheduled ingestion run failed: {e}", exc_info=True)
            if not await wait(config.scheduler.interval_sec):
                break

    logger.info("Daemon stopped")


@app.command()
def run(config: ConfigOption = "config.yaml", loglevel: LogLevelOption = None) -> None:
    """Run a single ingestion cycle over all configured sources."""
    cfg = load_config(config, loglevel)
    try:
        total = asyncio.run(run_once(cfg))
        typer.echo(f"Processed {total} videos")
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.critical(f"Unhandled exception: {str(e)}", exc_info=True)
        sys.exit(1)


@app.command()
def daemon(config: ConfigOption = "config.yaml", loglevel: LogLevelOption = None) -> None:
    """Run ingestion cycles on a fixed interval until interrupted."""
    cfg = load_config(config, loglevel)
    logger.info(
        f"Starting scheduler (interval={cfg.scheduler.interval_sec}s, "
        f"initial delay={cfg.scheduler.initial_delay_sec}s)"
    )
    try:
        asyncio.run(run_daemon(cfg))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.critical(f"Unhandled exception: {str(e)}", exc_info=True)
        sys.exit(1)


@app.command()
def submit(
    url: Annotated[str, typer.Argument(help="Reddit post URL or id")],
    nsfw: Annotated[bool, typer.Option("--nsfw", help="Mark the video as adult content")] = False,
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = None,
) -> None:
    """Ingest a single Reddit post submitted by hand."""
    cfg = load_config(config, loglevel)

    async def submit_one():
        async with build_orchestrator(cfg) as orchestrator:
            return await orchestrator.submit_post(url, is_adult=nsfw)

    result = asyncio.run(submit_one())
    if not result.success:
        typer.echo(f"Submission rejected: {result.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Stored video {result.record.natural_key}: {result.record.video_url}")


@db_app.command("init")
def db_init(config: ConfigOption = "config.yaml", loglevel: LogLevelOption = None) -> None:
    """Create the videos table if it does not exist."""
    cfg = Config.from_files(config)
    setup_logging(loglevel.upper() if loglevel else cfg.log_level)

    database = Database(cfg.postgres.database_url)
    try:
        if not database.check_connection():
            raise typer.Exit(code=1)
        database.create_schema()
        typer.echo("Database schema is ready")
    finally:
        database.dispose()


if __name__ == "__main__":
    app()
