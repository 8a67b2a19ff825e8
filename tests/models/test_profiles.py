from __future__ import annotations

import logging

import numpy as np
import pytest

from mc_langid.models.profiles import (
    DetectorFactory,
    LangProfile,
    add_profile,
    create_detector_factory,
    omit_less_freq,
    validate_lang_profile,
)


def _en() -> LangProfile:
    return LangProfile("en", {"a": 50, "b": 10, "th": 30, "he": 20, "the": 25}, [60, 50, 25])


def _de() -> LangProfile:
    return LangProfile("de", {"a": 20, "c": 40, "ch": 30, "ei": 20, "sch": 15}, [60, 50, 15])


def test_validate_fills_missing_word_counts() -> None:
    profile = validate_lang_profile(LangProfile("xx", {"a": 3}, []))
    assert profile.n_words == [0, 0, 0]


def test_validate_does_not_alias_input() -> None:
    original = _en()
    profile = validate_lang_profile(original)
    profile.freq.pop("a")
    assert "a" in original.freq


def test_omit_less_freq_drops_rare_and_roman_ngrams() -> None:
    profile = LangProfile(
        "ru",
        {"а": 100, "б": 1, "a": 5, "ab": 4, "аб": 50},
        [106, 54, 0],
    )
    omit_less_freq(profile)
    assert profile.freq == {"а": 100, "аб": 50}
    assert profile.n_words == [100, 50, 0]


def test_omit_less_freq_keeps_roman_profile() -> None:
    profile = _en()
    omit_less_freq(profile)
    assert profile.freq == _en().freq


def test_omit_less_freq_ignores_nameless_profile() -> None:
    profile = LangProfile("", {"a": 1}, [1, 0, 0])
    omit_less_freq(profile)
    assert profile.freq == {"a": 1}


def test_add_profile_fills_language_column() -> None:
    factory = DetectorFactory()
    add_profile(factory, _en(), 0, 2)
    add_profile(factory, _de(), 1, 2)

    table = factory.word_lang_prob_map
    assert factory.lang_list == ["en", "de"]
    assert table["a"] == pytest.approx([50 / 60, 20 / 60])
    assert table["the"] == pytest.approx([1.0, 0.0])
    assert table["sch"] == pytest.approx([0.0, 1.0])


def test_add_profile_rejects_duplicates() -> None:
    factory = DetectorFactory()
    add_profile(factory, _en(), 0, 2)
    with pytest.raises(ValueError):
        add_profile(factory, _en(), 1, 2)


def test_add_profile_skips_lengths_without_counts() -> None:
    factory = DetectorFactory()
    add_profile(factory, LangProfile("xx", {"ab": 4, "abcd": 2}, [0, 0, 0]), 0, 1)
    assert factory.word_lang_prob_map["ab"].tolist() == [0.0]
    assert factory.word_lang_prob_map["abcd"].tolist() == [0.0]


def test_create_detector_factory_accepts_single_profile() -> None:
    factory = create_detector_factory(_en(), seed=3)
    assert factory.lang_list == ["en"]
    assert factory.seed == 3
    assert isinstance(factory.word_lang_prob_map["th"], np.ndarray)


def test_create_detector_factory_warns_when_empty(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        factory = create_detector_factory([])
    assert factory.lang_list == []
    assert "No language profiles provided." in caplog.text


def test_factory_builds_rows_from_unpruned_counts() -> None:
    profile = LangProfile("en", {"a": 40, "b": 1, "th": 6, "zz": 2}, [41, 8, 0])
    factory = create_detector_factory([profile])

    table = factory.word_lang_prob_map
    assert table["b"].tolist() == pytest.approx([1 / 41])
    assert table["zz"].tolist() == pytest.approx([2 / 8])
    assert table["th"].tolist() == pytest.approx([6 / 8])
    assert profile.freq == {"a": 40, "b": 1, "th": 6, "zz": 2}


def test_pruning_before_factory_removes_rare_rows() -> None:
    profile = LangProfile("en", {"a": 40, "b": 1, "th": 6, "zz": 2}, [41, 8, 0])
    omit_less_freq(profile)
    factory = create_detector_factory([profile])

    table = factory.word_lang_prob_map
    assert set(table) == {"a", "th"}
    assert table["a"].tolist() == pytest.approx([1.0])
    assert table["th"].tolist() == pytest.approx([1.0])


def test_omit_less_freq_drops_empty_key_without_touching_counts() -> None:
    profile = LangProfile("en", {"": 1, "a": 30}, [30, 0, 7])
    omit_less_freq(profile)
    assert profile.freq == {"a": 30}
    assert profile.n_words == [30, 0, 7]


def test_add_profile_tolerates_short_word_counts() -> None:
    factory = DetectorFactory()
    add_profile(factory, LangProfile("xx", {"a": 2, "ab": 3}, [4]), 0, 1)
    assert factory.word_lang_prob_map["a"].tolist() == [0.5]
    assert factory.word_lang_prob_map["ab"].tolist() == [0.0]
