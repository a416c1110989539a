"""Tests for the word list parser."""
from __future__ import annotations

from cloze_trainer.parsers.word_list_parser import parse_word_list


class TestParseWordList:
    def test_newline_separated(self):
        assert parse_word_list("abandon\nbrisk\ncandid") == ["abandon", "brisk", "candid"]

    def test_mixed_separators(self):
        text = "abandon, brisk，candid  diligent\t\neager"
        assert parse_word_list(text) == ["abandon", "brisk", "candid", "diligent", "eager"]

    def test_full_width_comma_only(self):
        assert parse_word_list("甲，乙，丙") == ["甲", "乙", "丙"]

    def test_duplicates_and_order_kept(self):
        assert parse_word_list("brisk, abandon, brisk") == ["brisk", "abandon", "brisk"]

    def test_case_preserved(self):
        assert parse_word_list("Paris, NASA, iPhone") == ["Paris", "NASA", "iPhone"]

    def test_leading_and_trailing_separators(self):
        assert parse_word_list(",,\n  abandon ,\n") == ["abandon"]

    def test_empty(self):
        assert parse_word_list("") == []

    def test_whitespace_only(self):
        assert parse_word_list("   \n\t ") == []

    def test_separators_only(self):
        assert parse_word_list(", ，\n,") == []

    def test_idempotent_on_normalized_list(self):
        words = parse_word_list("abandon, brisk，candid brisk")
        assert parse_word_list("\n".join(words)) == words
