import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from mc_langid.models.detect_block import detect_block
from mc_langid.models.profiles import DetectorFactory, create_detector_factory

logger = logging.getLogger(__name__)

ALPHA_DEFAULT = 0.5
N_TRIAL = 7
PROB_THRESHOLD = 0.1
UNKNOWN_LANG = "unknown"


class NoFeaturesError(ValueError):
    """None of the document's n-grams appear in any language profile."""


@dataclass
class Language:
    lang: str
    prob: float


class Detector:
    def __init__(self, factory: DetectorFactory, alpha: float = ALPHA_DEFAULT,
                 n_trial: int = N_TRIAL, rng=None):
        if not factory.lang_list:
            raise ValueError("Detector needs at least one language profile.")
        self.factory = factory
        self.alpha = alpha
        self.n_trial = n_trial
        self.prior_map: Optional[np.ndarray] = None
        self.rng = np.random.default_rng(factory.seed if rng is None else rng)

    def set_alpha(self, alpha: float) -> None:
        self.alpha = alpha

    def set_prior_map(self, prior: Dict[str, float]) -> None:
        """Prior over the factory's languages; unlisted languages get 0."""
        prior_map = np.zeros(len(self.factory.lang_list), dtype=float)
        for i, lang in enumerate(self.factory.lang_list):
            if lang in prior:
                p = prior[lang]
                if p < 0:
                    raise ValueError("Prior probability must be non-negative.")
                prior_map[i] = p
        total = prior_map.sum()
        if total <= 0:
            raise ValueError("More than one prior probability must be non-zero.")
        self.prior_map = prior_map / total

    def known_ngrams(self, ngrams: Iterable[str]) -> List[str]:
        table = self.factory.word_lang_prob_map
        return [g for g in ngrams if g and g != " " and g in table]

    def probabilities(self, ngrams: Iterable[str]) -> np.ndarray:
        """Raw posterior vector in factory language order."""
        known = self.known_ngrams(ngrams)
        if not known:
            raise NoFeaturesError("No features in text.")
        table = np.stack([self.factory.word_lang_prob_map[g] for g in known])
        lang_prob = np.zeros(len(self.factory.lang_list), dtype=float)
        detect_block(lang_prob, table, self.n_trial, self.alpha,
                     prior_map=self.prior_map, rng=self.rng)
        logger.debug("scored %d known n-grams", len(known))
        return lang_prob

    def get_probabilities(self, ngrams: Iterable[str]) -> List[Language]:
        lang_prob = self.probabilities(ngrams)
        return sort_probability(lang_prob, self.factory.lang_list)

    def detect(self, ngrams: Iterable[str]) -> str:
        ranked = self.get_probabilities(ngrams)
        if ranked:
            return ranked[0].lang
        return UNKNOWN_LANG


def sort_probability(lang_prob, lang_list, threshold: float = PROB_THRESHOLD) -> List[Language]:
    ranked = [Language(lang=lang, prob=float(p)) for lang, p in zip(lang_list, lang_prob)
              if p > threshold]
    return sorted(ranked, key=lambda item: item.prob, reverse=True)


def detect_language(ngrams, profiles, seed: Optional[int] = None) -> str:
    factory = create_detector_factory(profiles, seed=seed)
    return Detector(factory).detect(ngrams)
