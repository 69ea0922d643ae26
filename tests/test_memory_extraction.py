"""
Unit tests for memory metadata extraction: importance, topic, entities and keywords.
"""

from services.memory.extraction import (
    calculate_importance,
    clamp_importance,
    extract_entities,
    extract_keywords,
    extract_topic,
)


class TestCalculateImportance:
    """Tests for calculate_importance()."""

    def test_base_score(self) -> None:
        assert calculate_importance("what is the weather", "sunny") == 5

    def test_salience_keyword_bonus(self) -> None:
        assert calculate_importance("Please remember my birthday", "ok") == 7

    def test_long_response_bonus(self) -> None:
        assert calculate_importance("tell me a story", "x" * 501) == 6

    def test_both_bonuses(self) -> None:
        assert calculate_importance("I always prefer tea", "y" * 600) == 8

    def test_clamped(self) -> None:
        assert clamp_importance(42) == 10
        assert clamp_importance(-3) == 1


class TestExtractTopic:
    """Tests for extract_topic()."""

    def test_vocabulary_topic(self) -> None:
        assert extract_topic("Tell me about the History of Rome") == "history"

    def test_vocabulary_is_substring_match(self) -> None:
        assert extract_topic("latest healthcare reforms") == "health"

    def test_first_three_words_otherwise(self) -> None:
        assert extract_topic("Best pizza places nearby tonight") == "best pizza places"


class TestExtractEntities:
    """Tests for extract_entities()."""

    def test_capitalized_tokens(self) -> None:
        assert extract_entities("What did Alice tell Bob about Paris and Paris") == ["Alice", "Paris"]

    def test_exclusions(self) -> None:
        assert extract_entities("This That When Where London") == ["London"]


class TestExtractKeywords:
    """Tests for extract_keywords()."""

    def test_stopwords_and_short_words_removed(self) -> None:
        assert extract_keywords("What is the capital of France, and why?") == ["capital", "france"]

    def test_deduped_and_capped(self) -> None:
        text = " ".join(f"keyword{i} keyword{i}" for i in range(20))
        keywords = extract_keywords(text)
        assert len(keywords) == 10
        assert keywords[0] == "keyword0"
        assert len(set(keywords)) == 10
