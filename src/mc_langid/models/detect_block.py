import logging

import numpy as np

logger = logging.getLogger(__name__)

ITERATION_LIMIT = 1000
CONV_THRESHOLD = 0.99999
ALPHA_WIDTH = 0.05
BASE_FREQ = 10000
CHECK_INTERVAL = 5
TINY = np.finfo(float).tiny


class ProbabilityCollapseError(ArithmeticError):
    """Raised when a probability vector can no longer be normalized."""


def init_probability(lang_list_length: int, prior_map=None) -> np.ndarray:
    """Starting vector for one trial: a copy of the prior, or uniform."""
    if lang_list_length <= 0:
        raise ValueError(f"lang_list_length must be positive, got {lang_list_length}")
    if prior_map is not None:
        prior = np.asarray(prior_map, dtype=float)
        if prior.shape != (lang_list_length,):
            raise ValueError(
                f"prior_map has shape {prior.shape}, expected ({lang_list_length},)"
            )
        return prior.copy()
    return np.full(lang_list_length, 1.0 / lang_list_length, dtype=float)


def update_lang_prob(prob: np.ndarray, lang_prob_map: np.ndarray, alpha: float) -> None:
    weight = alpha / BASE_FREQ
    prob *= weight + lang_prob_map


def normalize_prob(prob: np.ndarray) -> float:
    """Rescale prob in place to sum to 1 and return its largest component."""
    total = prob.sum()
    if not np.isfinite(total) or total <= 0.0:
        raise ProbabilityCollapseError(
            f"cannot normalize probability vector with sum {total!r}"
        )
    prob /= total
    return float(prob.max())


def _check_inputs(lang_prob, word_lang_prob_map, n_trial, alpha, prior_map):
    if n_trial <= 0:
        raise ValueError(f"n_trial must be positive, got {n_trial}")
    if not np.isfinite(alpha) or alpha < 0:
        raise ValueError(f"alpha must be finite and non-negative, got {alpha}")
    if word_lang_prob_map.ndim != 2:
        raise ValueError(
            f"word_lang_prob_map must be 2-D (ngrams x languages), got {word_lang_prob_map.ndim}-D"
        )
    ngram_length, lang_list_length = word_lang_prob_map.shape
    if ngram_length <= 0:
        raise ValueError("word_lang_prob_map has no n-gram rows")
    if lang_list_length <= 0:
        raise ValueError("word_lang_prob_map has no language columns")
    if lang_prob.shape != (lang_list_length,):
        raise ValueError(
            f"lang_prob has shape {lang_prob.shape}, expected ({lang_list_length},)"
        )
    if not np.all(np.isfinite(word_lang_prob_map)) or np.any(word_lang_prob_map < 0):
        raise ValueError("word_lang_prob_map must hold finite, non-negative values")
    if prior_map is not None:
        prior = np.asarray(prior_map, dtype=float)
        if prior.shape != (lang_list_length,):
            raise ValueError(
                f"prior_map has shape {prior.shape}, expected ({lang_list_length},)"
            )
        if not np.all(np.isfinite(prior)) or np.any(prior < 0):
            raise ValueError("prior_map must hold finite, non-negative values")


def _run_trial(word_lang_prob_map, alpha, prior_map, rng):
    ngram_length, lang_list_length = word_lang_prob_map.shape
    prob = init_probability(lang_list_length, prior_map)
    # languages with prior mass never underflow to exactly zero
    alive = prob > 0
    trial_alpha = alpha + rng.random() * ALPHA_WIDTH

    i = 0
    while True:
        row = word_lang_prob_map[rng.integers(ngram_length)]
        update_lang_prob(prob, row, trial_alpha)
        if i % CHECK_INTERVAL == 0:
            maxp = normalize_prob(prob)
            np.maximum(prob, TINY, out=prob, where=alive)
            if maxp > CONV_THRESHOLD or i >= ITERATION_LIMIT:
                break
        i += 1

    logger.debug(
        "trial finished after %d iterations (max=%.6f, capped=%s)",
        i + 1, maxp, maxp <= CONV_THRESHOLD,
    )
    return prob


def detect_block(lang_prob, word_lang_prob_map, n_trial: int, alpha: float,
                 prior_map=None, rng=None):
    """Monte Carlo naive Bayes estimate of the language posterior.

    Runs ``n_trial`` randomized trials. Each trial starts from the prior (or a
    uniform vector), repeatedly multiplies in the row of a randomly drawn
    n-gram and stops once one language exceeds ``CONV_THRESHOLD`` or the
    iteration cap is reached. The normalized trial vectors are averaged and
    added into ``lang_prob``.

    lang_prob: float array (L,), caller-allocated and accumulated into.
    word_lang_prob_map: array (N, L), row k = per-language likelihood of n-gram k.
    rng: numpy Generator, int seed or None.
    """
    if not isinstance(lang_prob, np.ndarray) or not np.issubdtype(lang_prob.dtype, np.floating):
        raise ValueError("lang_prob must be a floating point numpy array")
    table = np.asarray(word_lang_prob_map, dtype=float)
    _check_inputs(lang_prob, table, n_trial, alpha, prior_map)
    rng = np.random.default_rng(rng)

    # trials accumulate here so a collapse leaves the caller's vector untouched
    acc = np.zeros(lang_prob.shape, dtype=float)
    for _ in range(n_trial):
        prob = _run_trial(table, alpha, prior_map, rng)
        acc += prob / n_trial

    lang_prob += acc
    return lang_prob


def classify(output, ngram_likelihoods, ngram_length: int, n_trial: int, alpha: float,
             prior, lang_list_length: int, rng=None):
    """Flat-buffer entry point: ``ngram_likelihoods`` is row-major (N * L)."""
    if lang_list_length <= 0:
        raise ValueError(f"lang_list_length must be positive, got {lang_list_length}")
    if ngram_length <= 0:
        raise ValueError(f"ngram_length must be positive, got {ngram_length}")
    flat = np.asarray(ngram_likelihoods, dtype=float).ravel()
    if flat.size != ngram_length * lang_list_length:
        raise ValueError(
            f"ngram_likelihoods holds {flat.size} values, expected "
            f"{ngram_length} x {lang_list_length}"
        )
    table = flat.reshape(ngram_length, lang_list_length)
    return detect_block(output, table, n_trial, alpha, prior_map=prior, rng=rng)
