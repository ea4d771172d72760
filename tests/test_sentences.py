import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from character_forge.services.sentences import (
    ensure_terminal_punctuation,
    normalize_sentence_entry,
    split_adjectives,
    split_into_sentences,
)


@pytest.mark.parametrize("text", ["", "   \n\t", None, 42])
def test_split_into_sentences_blank_or_invalid_input(text):
    assert split_into_sentences(text) == []


def test_split_into_sentences_appends_period():
    assert split_into_sentences("Hello world") == ["Hello world."]


def test_split_into_sentences_normalises_terminal_punctuation():
    assert split_into_sentences("Hi! Bye?") == ["Hi.", "Bye."]
    assert split_into_sentences("Wait... what?!") == ["Wait.", "what."]


def test_split_into_sentences_splits_abbreviations():
    assert split_into_sentences("Dr. Smith arrived.") == ["Dr.", "Smith arrived."]


@pytest.mark.parametrize(
    "text",
    [
        "One. Two! Three?",
        "...!!!???",
        "  spaced   out  .  words ",
        "Line one\nLine two. Line three",
    ],
)
def test_split_into_sentences_outputs_terminated_non_empty_strings(text):
    for sentence in split_into_sentences(text):
        assert sentence.endswith(".")
        assert sentence[:-1].strip()


def test_split_adjectives_lowercases_words():
    assert split_adjectives("Brave  CLEVER\nkind") == ["brave", "clever", "kind"]
    assert split_adjectives("") == []


def test_ensure_terminal_punctuation():
    assert ensure_terminal_punctuation("Knows the tides") == "Knows the tides."
    assert ensure_terminal_punctuation("Is it true?") == "Is it true?"
    assert ensure_terminal_punctuation(" Loud! ") == "Loud!"
    assert ensure_terminal_punctuation("   ") == ""


def test_normalize_sentence_entry():
    assert normalize_sentence_entry("Hello!") == "Hello."
    assert normalize_sentence_entry("Already done.") == "Already done."
    assert normalize_sentence_entry("  ") == ""
    assert normalize_sentence_entry(None) == ""
    assert normalize_sentence_entry(True) == ""
