import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

MINIMUM_FREQ = 2
LESS_FREQ_RATIO = 100000
ROMAN_CHAR_RE = re.compile(r"^[A-Za-z]$")
ROMAN_SUBSTR_RE = re.compile(r"[A-Za-z]")


@dataclass
class LangProfile:
    name: str
    freq: Dict[str, int]
    n_words: List[int] = field(default_factory=list)


@dataclass
class DetectorFactory:
    lang_list: List[str] = field(default_factory=list)
    word_lang_prob_map: Dict[str, np.ndarray] = field(default_factory=dict)
    seed: Optional[int] = None


def validate_lang_profile(profile: LangProfile) -> LangProfile:
    n_words = list(profile.n_words) if profile.n_words else [0, 0, 0]
    return LangProfile(name=profile.name, freq=dict(profile.freq), n_words=n_words)


def _discount(profile, key, count):
    if 1 <= len(key) <= len(profile.n_words):
        profile.n_words[len(key) - 1] -= count
    del profile.freq[key]


def omit_less_freq(profile: LangProfile) -> None:
    """Drop rare n-grams, and Roman-letter n-grams from non-Roman profiles."""
    if not profile.name:
        return

    threshold = max(profile.n_words[0] // LESS_FREQ_RATIO, MINIMUM_FREQ)
    roman = 0
    for key, count in list(profile.freq.items()):
        if count <= threshold:
            _discount(profile, key, count)
        elif ROMAN_CHAR_RE.match(key):
            roman += count

    if roman < profile.n_words[0] // 3:
        for key, count in list(profile.freq.items()):
            if ROMAN_SUBSTR_RE.search(key):
                _discount(profile, key, count)


def add_profile(factory: DetectorFactory, profile: LangProfile, index: int, lang_size: int) -> None:
    """Register one language and fill its column of the n-gram table."""
    if profile.name in factory.lang_list:
        raise ValueError(f"Duplicate language profile: {profile.name}")
    factory.lang_list.append(profile.name)

    table = factory.word_lang_prob_map
    for word, count in profile.freq.items():
        if word not in table:
            table[word] = np.zeros(lang_size, dtype=float)
        length = len(word)
        if 1 <= length <= min(3, len(profile.n_words)) and profile.n_words[length - 1] > 0:
            table[word][index] = count / profile.n_words[length - 1]


def create_detector_factory(profiles, seed: Optional[int] = None) -> DetectorFactory:
    """Build the n-gram table from the profiles' raw counts.

    Pruning is not applied here; run ``omit_less_freq`` on the profiles first
    to drop rare n-grams.
    """
    if isinstance(profiles, LangProfile):
        profiles = [profiles]
    profiles = list(profiles)
    factory = DetectorFactory(seed=seed)
    if not profiles:
        logger.warning("No language profiles provided.")

    for index, profile in enumerate(profiles):
        profile = validate_lang_profile(profile)
        add_profile(factory, profile, index, len(profiles))
    logger.info(
        "built detector factory: %d languages, %d n-grams",
        len(factory.lang_list), len(factory.word_lang_prob_map),
    )
    return factory
