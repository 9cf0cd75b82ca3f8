"""End-to-end ingestion run across all configured sources."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from aivideo_scraper.collector.fetcher import PostFetcher
from aivideo_scraper.collector.rate_limiter import RateLimiter
from aivideo_scraper.models.media import ValidatedMetadata
from aivideo_scraper.models.post import RawPost
from aivideo_scraper.models.video import MediaMetadata, MediaRecord
from aivideo_scraper.processing.classifier import Classifier
from aivideo_scraper.processing.media_resolver import MediaResolver
from aivideo_scraper.processing.tags import TagExtractor
from aivideo_scraper.processing.thumbnails import ThumbnailGenerator
from aivideo_scraper.processing.validator import NATIVE_HOST, NATIVE_ID, VideoValidator
from aivideo_scraper.sources import SourceCatalog, SourceConfig
from aivideo_scraper.storage.video_sink import PersistenceGateway

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

# Manual submissions are judged against these rules instead of the catalog's
MANUAL_SUBMISSION_RULES = SourceConfig(name="manual", min_relevance_score=1)

REASON_NO_MEDIA = "no_media"
REASON_NOT_VALIDATED = "not_validated"


@dataclass
class IngestionReport:
    """Outcome of one ingestion run."""

    per_source: Dict[str, int] = field(default_factory=dict)
    failed_sources: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total_processed(self) -> int:
        return sum(self.per_source.values())

    def to_dict(self) -> Dict[str, int]:
        return {"totalProcessed": self.total_processed}


@dataclass
class SubmissionResult:
    """Outcome of a manual single-post submission."""

    success: bool
    record: Optional[MediaRecord] = None
    error: Optional[str] = None


def audio_track_url(video_url: str, fallback_url: str = "") -> Optional[str]:
    """Audio rendition URL for a v.redd.it video, keeping the fallback's query string."""
    match = NATIVE_ID.search(video_url)
    if not match:
        return None
    query = fallback_url[fallback_url.index("?"):] if "?" in fallback_url else ""
    return f"https://{NATIVE_HOST}/{match.group(1)}/DASH_AUDIO_128.mp4{query}"


class IngestionOrchestrator:
    """
    Drive fetch, classify, resolve, validate, enrich and persist for every source.

    Sources and posts are processed strictly one at a time. A failing post
    never stops its source and a failing source never stops the run.
    """

    def __init__(
        self,
        catalog: SourceCatalog,
        fetcher: PostFetcher,
        classifier: Classifier,
        resolver: MediaResolver,
        validator: VideoValidator,
        thumbnails: ThumbnailGenerator,
        tag_extractor: TagExtractor,
        sink: PersistenceGateway,
        rate_limiter: RateLimiter,
        prefer_preview_thumbnails: bool = True,
        prometheus_exporter=None,
        logger: Optional[LoggerLike] = None,
    ):
        self.catalog = catalog
        self.fetcher = fetcher
        self.classifier = classifier
        self.resolver = resolver
        self.validator = validator
        self.thumbnails = thumbnails
        self.tag_extractor = tag_extractor
        self.sink = sink
        self.rate_limiter = rate_limiter
        self.prefer_preview_thumbnails = prefer_preview_thumbnails
        self.prometheus_exporter = prometheus_exporter
        self.logger = logger or logging.getLogger(__name__)

    def _post_logger(self, post: RawPost, source: str) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(self.logger, {"post_id": post.id, "source": source})

    def _soft_reject(self, source: str, reason: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_soft_reject(source, reason)

    async def run_ingestion_cycle(self, shutdown_event: Optional[asyncio.Event] = None) -> IngestionReport:
        """
        Run one ingestion pass over every configured source.

        Args:
            shutdown_event: When set, the run stops before the next source

        Returns:
            IngestionReport with created-or-updated counts per source
        """
        report = IngestionReport()
        self.logger.info(f"Starting ingestion run over {len(self.catalog)} sources")

        for index, source in enumerate(self.catalog):
            if shutdown_event is not None and shutdown_event.is_set():
                self.logger.warning("Shutdown requested, stopping ingestion run early")
                report.cancelled = True
                break

            if index > 0:
                await self.rate_limiter.between_sources()

            try:
                report.per_source[source.name] = await self.process_source(source)
                self.logger.info(f"Processed {report.per_source[source.name]} videos from r/{source.name}")
            except Exception as e:
                report.per_source[source.name] = 0
                report.failed_sources.append(source.name)
                self.logger.error(f"Error scraping subreddit r/{source.name}: {e}", exc_info=True)
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_source_failure(source.name)

        self.logger.info(
            f"Ingestion run completed: {report.total_processed} records created or updated, "
            f"{len(report.failed_sources)} failed sources"
        )
        return report

    async def process_source(self, source: SourceConfig) -> int:
        """
        Fetch and process every candidate of one source.

        Raises:
            Exception: Fetch failures other than an inaccessible source
        """
        posts = await self.fetcher.fetch_candidates(source.name)
        processed = 0

        for post in posts:
            try:
                if await self.process_post(post, source):
                    processed += 1
            except Exception as e:
                self._post_logger(post, source.name).error(
                    f"Error processing post {post.id} from r/{source.name}: {e}", exc_info=True
                )
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_item_failure(source.name)

        return processed

    async def process_post(self, post: RawPost, source: SourceConfig, lenient: bool = False) -> bool:
        """
        Run one post through the pipeline.

        Args:
            post: Candidate post
            source: Rules of the source it came from
            lenient: Use the single-term rule for manual submissions

        Returns:
            True if a record was created or updated, False on a soft reject

        Raises:
            Exception: Unexpected failures, handled by the caller per post
        """
        log = self._post_logger(post, source.name)

        classification = self.classifier.classify(post, source, lenient=lenient)
        if not classification.accepted:
            log.debug(f"Skipping post {post.id}: {classification.reason}")
            self._soft_reject(source.name, classification.reason or "rejected")
            return False

        resolved = self.resolver.resolve(post)
        if resolved is None:
            log.debug(f"Skipping post {post.id}: no playable media")
            self._soft_reject(source.name, REASON_NO_MEDIA)
            return False

        metadata = await self.validator.validate(resolved.url)
        if metadata is None:
            log.debug(f"Skipping post {post.id}: media could not be validated")
            self._soft_reject(source.name, REASON_NOT_VALIDATED)
            return False

        if self.prefer_preview_thumbnails and post.preview_image_url:
            thumbnail_url = post.preview_image_url
        else:
            thumbnail_url = await self.thumbnails.generate_thumbnail(metadata.url)

        tags = self.tag_extractor.extract_tags(post.title, post.source_name)
        record = self.build_record(post, metadata, thumbnail_url, tags)

        self.sink.upsert(record)
        log.info(f"Stored video {post.id} from r/{source.name}")
        if self.prometheus_exporter:
            self.prometheus_exporter.record_upsert(source.name)
        return True

    def build_record(
        self, post: RawPost, metadata: ValidatedMetadata, thumbnail_url: str, tags: List[str]
    ) -> MediaRecord:
        """Assemble the persisted record for a validated post."""
        media = MediaMetadata(
            width_px=metadata.width_px,
            height_px=metadata.height_px,
            format=metadata.format,
            duration_sec=metadata.duration_sec,
            source_score=post.score,
            source_permalink_url=post.permalink_url,
            author=post.author,
        )

        video = post.native_video
        if NATIVE_HOST in metadata.url:
            fallback_url = video.fallback_url if video else ""
            media.audio_url = audio_track_url(metadata.url, fallback_url)
            if video:
                media.media_sources = {
                    name: url
                    for name, url in (
                        ("fallback_url", video.fallback_url),
                        ("dash_url", video.dash_url),
                        ("hls_url", video.hls_url),
                    )
                    if url
                }

        created_at = (
            datetime.fromtimestamp(post.created_at_epoch, tz=timezone.utc) if post.created_at_epoch else None
        )

        return MediaRecord(
            natural_key=post.id,
            title=post.title,
            description=post.body_text,
            video_url=metadata.url,
            thumbnail_url=thumbnail_url,
            source_name=post.source_name,
            tags=tags,
            is_adult=post.is_adult_flagged,
            metadata=media,
            created_at=created_at,
        )

    async def submit_post(self, id_or_url: str, is_adult: bool = False) -> SubmissionResult:
        """
        Ingest a single user-submitted post.

        Args:
            id_or_url: Post id or reddit.com comments URL
            is_adult: Force the adult flag on the stored record

        Returns:
            SubmissionResult describing the outcome
        """
        try:
            post = await self.fetcher.client.fetch_post(id_or_url)
        except Exception as e:
            self.logger.error(f"Error fetching submitted post {id_or_url}: {e}")
            return SubmissionResult(False, error=str(e))

        if self.sink.find_by_natural_key(post.id) is not None:
            return SubmissionResult(False, error="Video already exists in our collection")

        if is_adult and not post.is_adult_flagged:
            post = replace(post, is_adult_flagged=True)

        try:
            stored = await self.process_post(post, MANUAL_SUBMISSION_RULES, lenient=True)
        except Exception as e:
            self._post_logger(post, post.source_name).error(f"Error processing submitted post {post.id}: {e}")
            return SubmissionResult(False, error=str(e))

        if not stored:
            return SubmissionResult(
                False,
                error=(
                    "This video does not appear to be AI-generated content or has no playable "
                    "Reddit-hosted or direct video."
                ),
            )

        return SubmissionResult(True, record=self.sink.find_by_natural_key(post.id))
