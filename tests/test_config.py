"""Tests for the configuration module."""

import os
import tempfile
import unittest
from unittest.mock import patch

import yaml

from aivideo_scraper.config import Config, PostgresConfig, parse_size, to_dict

ENV_KEYS = (
    "REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET", "REDDIT_REFRESH_TOKEN", "REDDIT_USER_AGENT",
    "LOG_LEVEL", "PG_HOST", "PG_PORT", "PG_DB", "PG_USER", "PG_PASSWORD", "DATABASE_URL",
)


class TestConfig(unittest.TestCase):
    """Test cases for the Config class."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")
        self.env_path = os.path.join(self.temp_dir.name, ".env")

        self.sample_config = {
            "log_level": "debug",
            "sources": [
                {"name": "aivideo", "min_relevance_score": 10, "exempt_from_term_filter": True},
                {"name": "nextfuckinglevel", "min_relevance_score": 20, "exclude_terms": ["Meme"]},
            ],
            "rate_limit": {"fetch_delay_sec": 0.5, "source_delay_sec": 1.0, "sleep_buffer_sec": 3},
            "fetch": {"popular_limit": 25, "top_recent_window": "day", "unknown_key": 1},
            "thumbnails": {"cache_dir": "/tmp/thumbs", "prefer_preview": False},
            "postgres": {"url": "sqlite:///from-yaml.db"},
        }
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.sample_config, f)

        with open(self.env_path, "w", encoding="utf-8") as f:
            f.write("REDDIT_CLIENT_ID=test_client_id\n")
            f.write("REDDIT_CLIENT_SECRET=test_client_secret\n")
            f.write("REDDIT_USER_AGENT=test_user_agent\n")

        # Isolate from the developer's environment; load_dotenv writes into os.environ
        self.env_patch = patch.dict(os.environ, {}, clear=False)
        self.env_patch.start()
        for key in ENV_KEYS:
            os.environ.pop(key, None)

    def tearDown(self):
        """Clean up test environment."""
        self.env_patch.stop()
        self.temp_dir.cleanup()

    def test_load_from_files(self):
        config = Config.from_files(self.config_path, self.env_path)

        self.assertEqual(config.client_id, "test_client_id")
        self.assertEqual(config.client_secret, "test_client_secret")
        self.assertEqual(config.user_agent, "test_user_agent")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.sources.names, ["aivideo", "nextfuckinglevel"])
        self.assertEqual(config.sources.get("nextfuckinglevel").exclude_terms, frozenset({"meme"}))
        self.assertEqual(config.rate_limit.fetch_delay_sec, 0.5)
        self.assertEqual(config.rate_limit.max_requests_per_minute, 60)
        self.assertFalse(hasattr(config.rate_limit, "sleep_buffer_sec"))
        self.assertEqual(config.fetch.popular_limit, 25)
        self.assertEqual(config.fetch.top_recent_limit, 15)
        self.assertEqual(config.fetch.top_recent_window, "day")
        self.assertFalse(config.thumbnails.prefer_preview)
        self.assertEqual(config.postgres.database_url, "sqlite:///from-yaml.db")
        self.assertEqual(config.validate(), [])

    def test_database_url_env_wins(self):
        os.environ["DATABASE_URL"] = "postgresql://env/db"

        config = Config.from_files(self.config_path, self.env_path)

        self.assertEqual(config.postgres.database_url, "postgresql://env/db")

    def test_defaults_without_yaml(self):
        config = Config.from_files(os.path.join(self.temp_dir.name, "missing.yaml"), self.env_path)

        self.assertEqual(len(config.sources), 12)
        self.assertEqual(config.rate_limit.fetch_delay_sec, 1.2)
        self.assertEqual(config.rate_limit.source_delay_sec, 2.0)
        self.assertEqual(config.scheduler.interval_sec, 86400)
        self.assertEqual(config.scheduler.initial_delay_sec, 10)
        self.assertEqual(config.postgres.database_url, "postgresql://postgres:@localhost:5432/aivideos")

    def test_validate_reports_errors(self):
        config = Config()
        config.fetch.top_recent_window = "fortnight"
        config.thumbnails.size = "big"
        config.scheduler.interval_sec = 5

        errors = config.validate()

        self.assertIn("Missing REDDIT_CLIENT_ID in environment", errors)
        self.assertIn("Missing REDDIT_CLIENT_SECRET in environment", errors)
        self.assertTrue(any("top_recent_window" in error for error in errors))
        self.assertTrue(any("Invalid thumbnail size" in error for error in errors))
        self.assertTrue(any("interval_sec" in error for error in errors))

    def test_to_dict_hides_credentials(self):
        config = Config(client_id="id", client_secret="secret")

        summary = to_dict(config)

        self.assertNotIn("secret", str(summary))
        self.assertEqual(len(summary["sources"]), 12)


class TestHelpers(unittest.TestCase):

    def test_parse_size(self):
        self.assertEqual(parse_size("640x360"), (640, 360))
        self.assertEqual(parse_size("1280X720"), (1280, 720))
        for bad in ("640", "0x360", "axb", None):
            with self.assertRaises(ValueError):
                parse_size(bad)

    def test_postgres_url_from_parts(self):
        config = PostgresConfig(host="db", port=5433, database="videos", user="u", password="p")
        self.assertEqual(config.database_url, "postgresql://u:p@db:5433/videos")


if __name__ == "__main__":
    unittest.main()
