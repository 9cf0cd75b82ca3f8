"""Prometheus metrics for monitoring the ingestion pipeline."""

import logging

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
CANDIDATES_FETCHED = Counter(
    "aivideo_scraper_candidates_fetched_total",
    "Number of candidate posts fetched",
    ["source"],
)

FETCH_OPERATIONS = Counter(
    "aivideo_scraper_fetch_operations_total",
    "Number of listing requests performed",
    ["operation_type"],
)

SOFT_REJECTS = Counter(
    "aivideo_scraper_soft_rejects_total",
    "Number of posts dropped without error",
    ["source", "reason"],
)

RECORDS_UPSERTED = Counter(
    "aivideo_scraper_records_upserted_total",
    "Number of video records created or updated",
    ["source"],
)

ITEM_FAILURES = Counter(
    "aivideo_scraper_item_failures_total",
    "Number of posts that failed processing",
    ["source"],
)

SOURCE_FAILURES = Counter(
    "aivideo_scraper_source_failures_total",
    "Number of sources that failed during a run",
    ["source"],
)

INACCESSIBLE_SOURCES = Counter(
    "aivideo_scraper_inaccessible_sources_total",
    "Number of times a banned or removed source was skipped",
    ["source"],
)

THUMBNAILS = Counter(
    "aivideo_scraper_thumbnails_total",
    "Thumbnail lookups by outcome",
    ["outcome"],
)

REQUEST_DURATION = Histogram(
    "aivideo_scraper_request_duration_seconds",
    "Duration of Reddit API listing requests in seconds",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the ingestion pipeline."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_fetch_operation(self, operation_type: str) -> None:
        FETCH_OPERATIONS.labels(operation_type=operation_type).inc()

    def time_request(self):
        """Context manager timing one upstream request."""
        return REQUEST_DURATION.time()

    def record_candidates_fetched(self, source: str, count: int) -> None:
        CANDIDATES_FETCHED.labels(source=source).inc(count)

    def record_soft_reject(self, source: str, reason: str) -> None:
        SOFT_REJECTS.labels(source=source, reason=reason).inc()

    def record_upsert(self, source: str) -> None:
        RECORDS_UPSERTED.labels(source=source).inc()

    def record_item_failure(self, source: str) -> None:
        ITEM_FAILURES.labels(source=source).inc()

    def record_source_failure(self, source: str) -> None:
        SOURCE_FAILURES.labels(source=source).inc()

    def record_inaccessible_source(self, source: str) -> None:
        INACCESSIBLE_SOURCES.labels(source=source).inc()

    def record_thumbnail(self, outcome: str) -> None:
        THUMBNAILS.labels(outcome=outcome).inc()
