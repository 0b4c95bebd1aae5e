"""Keyword Extractor 단위 테스트."""

from feedlens.services.ingest.keywords import KeywordExtractor


class TestKeywordExtractor:
    def test_frequency_order(self):
        text = "Apple earnings beat. Apple shares rally as earnings grow; Apple wins."
        result = KeywordExtractor().extract(text)
        assert result[0] == ("apple", 3)
        assert result[1] == ("earnings", 2)

    def test_ties_keep_first_seen_order(self):
        result = KeywordExtractor().extract("mango zebra apple zebra mango apple")
        assert result == [("mango", 2), ("zebra", 2), ("apple", 2)]

    def test_short_tokens_dropped(self):
        result = KeywordExtractor().extract("the cat sat on a big mat today")
        assert result == [("today", 1)]

    def test_stop_words_dropped(self):
        result = KeywordExtractor().extract("these those would could should market")
        assert result == [("market", 1)]

    def test_punctuation_stripped(self):
        result = KeywordExtractor().extract("Market! market, MARKET? (market)")
        assert result == [("market", 4)]

    def test_limit(self):
        text = " ".join(f"word{i:02d}" for i in range(20))
        assert len(KeywordExtractor().extract(text)) == 10
        assert len(KeywordExtractor(limit=3).extract(text)) == 3

    def test_deterministic(self):
        text = "alpha beta gamma delta alpha gamma"
        assert KeywordExtractor().extract(text) == KeywordExtractor().extract(text)

    def test_empty(self):
        assert KeywordExtractor().extract("") == []

    def test_overlong_tokens_dropped(self):
        result = KeywordExtractor().extract("a" * 150 + " market market")
        assert result == [("market", 2)]
        assert all(len(word) <= 100 for word, _ in result)

    def test_max_length_boundary(self):
        word = "b" * 100
        assert KeywordExtractor().extract(word) == [(word, 1)]
        assert KeywordExtractor(max_length=99).extract(word) == []
