"""Tests for post classification."""

import pytest

from aivideo_scraper.processing.classifier import (
    REASON_EXCLUDED_TERM,
    REASON_LOW_SCORE,
    REASON_NO_PRIMARY_TERM,
    REASON_NO_SECONDARY_TERM,
    Classifier,
)
from aivideo_scraper.sources import SourceConfig
from tests.factories import make_post


class TestClassifier:
    """Test cases for the Classifier."""

    @pytest.fixture
    def classifier(self):
        return Classifier()

    def test_score_below_threshold_is_rejected(self, classifier, exempt_source):
        post = make_post(score=9)
        config = SourceConfig("aivideo", min_relevance_score=10, exempt_from_term_filter=True)

        for _ in range(3):
            assert classifier.accept(post, config) is False
        assert classifier.classify(post, config).reason == REASON_LOW_SCORE

    def test_score_at_threshold_is_accepted(self, classifier, exempt_source):
        assert classifier.accept(make_post(score=10, title="sunset"), exempt_source) is True

    def test_exempt_source_skips_term_filter(self, classifier, exempt_source):
        assert classifier.accept(make_post(title="Just a cat"), exempt_source) is True

    def test_primary_without_secondary_is_rejected(self, classifier, filtered_source):
        post = make_post(title="Fully generated city skyline")

        result = classifier.classify(post, filtered_source)

        assert result.accepted is False
        assert result.reason == REASON_NO_SECONDARY_TERM

    def test_secondary_without_primary_is_rejected(self, classifier, filtered_source):
        post = make_post(title="Amazing video of a waterfall")

        assert classifier.classify(post, filtered_source).reason == REASON_NO_PRIMARY_TERM

    def test_primary_and_secondary_is_accepted(self, classifier, filtered_source):
        assert classifier.accept(make_post(title="My AI render of Tokyo"), filtered_source) is True

    def test_terms_can_come_from_body_and_flair(self, classifier, filtered_source):
        post = make_post(title="Tokyo at night", body_text="made it in a weekend", flair_text="AI")

        assert classifier.accept(post, filtered_source) is True

    def test_ai_does_not_match_inside_words(self, classifier, filtered_source):
        post = make_post(title="Rain painting video")

        assert classifier.classify(post, filtered_source).reason == REASON_NO_PRIMARY_TERM

    def test_excluded_term_is_rejected_case_insensitively(self, classifier, filtered_source):
        post = make_post(title="AI video MEME compilation")

        assert classifier.classify(post, filtered_source).reason == REASON_EXCLUDED_TERM

    def test_excluded_term_applies_to_exempt_sources(self, classifier):
        config = SourceConfig("aivideo", 1, frozenset({"nsfl"}), exempt_from_term_filter=True)

        assert classifier.accept(make_post(body_text="warning: nsfl"), config) is False

    def test_excluded_term_ignores_flair(self, classifier):
        config = SourceConfig("aivideo", 1, frozenset({"meme"}), exempt_from_term_filter=True)

        assert classifier.accept(make_post(title="Clip", flair_text="meme"), config) is True

    def test_lenient_mode_needs_a_single_ai_term(self, classifier, filtered_source):
        post = make_post(title="Fully AI-generated skyline")

        assert classifier.accept(post, filtered_source) is False
        assert classifier.classify(post, filtered_source, lenient=True).accepted is True
        assert classifier.classify(make_post(title="Skyline"), filtered_source, lenient=True).accepted is False
