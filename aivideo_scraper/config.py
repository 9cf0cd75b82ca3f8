"""Configuration handling for the AI video scraper."""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from aivideo_scraper.sources import SourceCatalog

# Named pipeline delays and limits
FETCH_DELAY_SEC = 1.2
SOURCE_DELAY_SEC = 2.0
POPULAR_LIMIT = 15
TOP_RECENT_LIMIT = 15
TOP_RECENT_WINDOW = "week"
PROBE_TIMEOUT_SEC = 5.0
THUMBNAIL_TIMEOUT_SEC = 30.0
THUMBNAIL_AT_SECONDS = 1.0
THUMBNAIL_SIZE = "640x360"
PLACEHOLDER_THUMBNAIL_URL = "https://via.placeholder.com/640x360?text=Video+Preview&bg=121212&fg=ffffff"
SCHEDULER_INTERVAL_SEC = 24 * 60 * 60
SCHEDULER_INITIAL_DELAY_SEC = 10

VALID_TIME_WINDOWS = ("hour", "day", "week", "month", "year", "all")


@dataclass
class RateLimitConfig:
    """Rate limiting configuration."""

    max_requests_per_minute: int = 60
    fetch_delay_sec: float = FETCH_DELAY_SEC
    source_delay_sec: float = SOURCE_DELAY_SEC


@dataclass
class FetchConfig:
    """Upstream listing configuration."""

    popular_limit: int = POPULAR_LIMIT
    top_recent_limit: int = TOP_RECENT_LIMIT
    top_recent_window: str = TOP_RECENT_WINDOW
    max_attempts: int = 3


@dataclass
class ProbeConfig:
    """HTTP probe configuration."""

    timeout_sec: float = PROBE_TIMEOUT_SEC


@dataclass
class ThumbnailConfig:
    """Thumbnail cache and frame extraction configuration."""

    cache_dir: str = "public/thumbnails"
    public_prefix: str = "/thumbnails"
    ffmpeg_path: str = "ffmpeg"
    at_seconds: float = THUMBNAIL_AT_SECONDS
    size: str = THUMBNAIL_SIZE
    timeout_sec: float = THUMBNAIL_TIMEOUT_SEC
    placeholder_url: str = PLACEHOLDER_THUMBNAIL_URL
    prefer_preview: bool = True


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


@dataclass
class SchedulerConfig:
    """Daemon scheduling configuration."""

    interval_sec: int = SCHEDULER_INTERVAL_SEC
    initial_delay_sec: int = SCHEDULER_INITIAL_DELAY_SEC


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "aivideos"
    user: str = "postgres"
    password: str = ""
    url: str = ""

    @property
    def database_url(self) -> str:
        """Explicit URL if one was given, otherwise one built from the parts."""
        if self.url:
            return self.url
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


def _merge_section(section: Any, values: Any) -> Any:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    if not isinstance(values, dict):
        return section
    known = {f.name for f in fields(section)}
    for key, value in values.items():
        if key in known:
            setattr(section, key, value)
    return section


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    # Reddit API credentials from environment
    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    user_agent: str = "aivideo_scraper/0.1"

    sources: SourceCatalog = field(default_factory=SourceCatalog.default)
    log_level: str = "INFO"
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    thumbnails: ThumbnailConfig = field(default_factory=ThumbnailConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)

    _SECTIONS = ("rate_limit", "fetch", "probe", "thumbnails", "monitoring", "scheduler", "postgres")

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from YAML file and environment variables.

        Args:
            config_path: Path to YAML configuration file
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()
        config.client_id = os.getenv("REDDIT_CLIENT_ID", "")
        config.client_secret = os.getenv("REDDIT_CLIENT_SECRET", "")
        config.refresh_token = os.getenv("REDDIT_REFRESH_TOKEN", "")
        config.user_agent = os.getenv("REDDIT_USER_AGENT", config.user_agent)
        config.log_level = os.getenv("LOG_LEVEL", config.log_level).upper()
        config.postgres = PostgresConfig(
            host=os.getenv("PG_HOST", "localhost"),
            port=int(os.getenv("PG_PORT", "5432")),
            database=os.getenv("PG_DB", "aivideos"),
            user=os.getenv("PG_USER", "postgres"),
            password=os.getenv("PG_PASSWORD", ""),
            url=os.getenv("DATABASE_URL", ""),
        )

        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file) or {}

            if "log_level" in yaml_config:
                config.log_level = str(yaml_config["log_level"]).upper()

            for section in cls._SECTIONS:
                if section in yaml_config:
                    _merge_section(getattr(config, section), yaml_config[section])

            # An environment DATABASE_URL always wins over the YAML file
            if os.getenv("DATABASE_URL"):
                config.postgres.url = os.environ["DATABASE_URL"]

            if "sources" in yaml_config:
                config.sources = SourceCatalog.from_list(yaml_config["sources"])

        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.client_id:
            errors.append("Missing REDDIT_CLIENT_ID in environment")
        if not self.client_secret:
            errors.append("Missing REDDIT_CLIENT_SECRET in environment")

        if len(self.sources) == 0:
            errors.append("No sources specified in configuration")

        if self.fetch.popular_limit <= 0 or self.fetch.top_recent_limit <= 0:
            errors.append("fetch limits must be greater than 0")
        if self.fetch.top_recent_window not in VALID_TIME_WINDOWS:
            errors.append(f"fetch.top_recent_window must be one of {', '.join(VALID_TIME_WINDOWS)}")
        if self.fetch.max_attempts <= 0:
            errors.append("fetch.max_attempts must be greater than 0")

        if self.rate_limit.fetch_delay_sec < 0 or self.rate_limit.source_delay_sec < 0:
            errors.append("rate_limit delays must not be negative")
        if self.rate_limit.max_requests_per_minute <= 0:
            errors.append("rate_limit.max_requests_per_minute must be greater than 0")

        if self.probe.timeout_sec <= 0:
            errors.append("probe.timeout_sec must be greater than 0")

        try:
            parse_size(self.thumbnails.size)
        except ValueError as e:
            errors.append(str(e))
        if self.thumbnails.timeout_sec <= 0:
            errors.append("thumbnails.timeout_sec must be greater than 0")

        if self.scheduler.interval_sec < 60:
            errors.append("scheduler.interval_sec must be at least 60 seconds")

        if not self.postgres.url and not self.postgres.host:
            errors.append("PG_HOST or DATABASE_URL must be specified")

        return errors


def parse_size(size: str) -> Tuple[int, int]:
    """
    Parse a ``WIDTHxHEIGHT`` string.

    Raises:
        ValueError: If the string is not two positive integers separated by 'x'
    """
    try:
        width_str, height_str = size.lower().split("x")
        width, height = int(width_str), int(height_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid thumbnail size: {size!r}. Expected WIDTHxHEIGHT")
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid thumbnail size: {size!r}. Dimensions must be positive")
    return width, height


def to_dict(config: Config) -> Dict[str, Any]:
    """Summarise the configuration for logging, without credentials."""
    return {
        "sources": config.sources.names,
        "rate_limit": vars(config.rate_limit),
        "fetch": vars(config.fetch),
        "thumbnails_dir": config.thumbnails.cache_dir,
        "prometheus": config.monitoring.enable_prometheus,
    }
