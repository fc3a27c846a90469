"""Command-line interface for the Reddit quote scraper."""

import asyncio
import logging
import logging.config
import sys
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from reddit_quotes.collector.discovery import Discovery
from reddit_quotes.collector.extractor import DetailExtractor
from reddit_quotes.collector.http_client import RedditHttpClient
from reddit_quotes.collector.rate_limiter import RateLimiter
from reddit_quotes.config import Config
from reddit_quotes.crawler.proxy import ProxyConfiguration
from reddit_quotes.monitoring.metrics import PrometheusExporter
from reddit_quotes.pipeline import QuotePipeline
from reddit_quotes.storage.composite_sink import CompositeSink
from reddit_quotes.storage.csv_sink import CsvSink
from reddit_quotes.storage.data_sink import DataSink
from reddit_quotes.storage.dataset_sink import DatasetSink
from reddit_quotes.storage.sheets_sink import SheetsSink

app = typer.Typer(help="Reddit quote scraper - collect community quotes about configured topics")

logger = logging.getLogger(__name__)


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
                "filename": "logs/reddit_quotes.log",
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
            "aiohttp": {"level": "WARNING"},
            "playwright": {"level": "WARNING"},
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str, env_file: Optional[str] = None, test_mode: bool = False) -> Config:
    """
    Load and validate configuration, exiting with status 1 if it is invalid.
    """
    config = Config.from_files(config_path, env_file)
    if test_mode:
        config.test_mode = True

    validation_errors = config.validate()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        logger.critical("Invalid configuration, aborting")
        sys.exit(1)
    return config


def build_sinks(config: Config) -> DataSink:
    sinks: List[DataSink] = [DatasetSink(config.dataset_path)]
    if config.csv_path:
        sinks.append(CsvSink(config.csv_path))
    return CompositeSink(sinks)


async def run_scraper(config: Config) -> int:
    """
    Wire up every component and run one collection pass.

    Args:
        config: Validated configuration

    Returns:
        Number of records saved
    """
    proxy_configuration = ProxyConfiguration.from_config(config.proxy.enabled, config.proxy.urls)
    rate_limiter = RateLimiter(min_interval_sec=config.crawl.navigation_delay_sec)
    client = RedditHttpClient(
        proxy_configuration=proxy_configuration,
        rate_limiter=rate_limiter,
        timeout_sec=config.crawl.request_timeout_sec,
    )

    prometheus_exporter = None
    if config.monitoring.enable_prometheus:
        prometheus_exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
        prometheus_exporter.start_server()

    sheets_sink = SheetsSink.from_service_account(
        config.sheets.service_account_key,
        config.sheets.spreadsheet_id,
        config.sheets.sheet_name,
        batch_size=config.sheets.batch_size,
    )

    await client.initialize()
    try:
        pipeline = QuotePipeline(
            config,
            discovery=Discovery.default(client, prometheus_exporter),
            extractor=DetailExtractor.default(client, prometheus_exporter),
            data_sink=build_sinks(config),
            sheets_sink=sheets_sink,
            proxy_configuration=proxy_configuration,
            prometheus_exporter=prometheus_exporter,
            rate_limiter=rate_limiter,
        )
        return await pipeline.run(install_signal_handlers=True)
    finally:
        await client.close()


@app.command()
def scrape(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    env_file: Annotated[Optional[str], typer.Option("--env-file", help="Path to .env file")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
    test_mode: Annotated[bool, typer.Option("--test-mode", help="Run the fixed single keyword/community smoke test")] = False,
) -> None:
    """
    Search Reddit for the configured keywords and export matching quotes.
    """
    log_level = "DEBUG" if verbose else loglevel
    setup_logging(log_level)

    cfg = load_config(config, env_file, test_mode)
    logger.info(
        f"Starting Reddit quote scraper ({len(cfg.effective_keywords)} keywords, "
        f"{len(cfg.effective_subreddits) or 'all'} communities, test_mode={cfg.test_mode})"
    )

    try:
        asyncio.run(run_scraper(cfg))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.critical(f"Unhandled exception: {str(e)}", exc_info=True)
        sys.exit(1)


@app.command("check-config")
def check_config(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    env_file: Annotated[Optional[str], typer.Option("--env-file", help="Path to .env file")] = None,
) -> None:
    """
    Validate a configuration file without fetching anything.
    """
    cfg = Config.from_files(config, env_file)
    errors = cfg.validate()
    if errors:
        for error in errors:
            typer.echo(f"Configuration error: {error}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Configuration OK: {len(cfg.keywords)} keywords, "
        f"{len(cfg.subreddits) or 'all'} communities, countries={','.join(cfg.countries)}, "
        f"sheets={'on' if cfg.sheets.enabled else 'off'}"
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
