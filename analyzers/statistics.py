from itertools import combinations
from typing import Callable, Dict, Sequence

import numpy as np
from scipy.special import logsumexp
from scipy.stats import entropy

def symmetric_kl(p: np.ndarray, q: np.ndarray) -> float:
    """
    Symmetric Kullback-Leibler divergence D(p||q) + D(q||p).

    Both vectors are used as given (no renormalization), which is what the
    Arun and Deveaud measures expect.
    """
    p = np.asarray(p, dtype=float)
    q = np.asarray(q, dtype=float)
    return float(np.sum(p * np.log(p / q)) + np.sum(q * np.log(q / p)))

def cao_juan_2009(topic_term: np.ndarray) -> float:
    """
    Average cosine similarity between every pair of topics (lower is better).

    Args:
        topic_term: Topics x terms probability matrix.
    """
    k = topic_term.shape[0]
    if k < 2:
        raise ValueError("cao_juan_2009 needs at least two topics")

    norms = np.linalg.norm(topic_term, axis=1)
    similarities = [
        float(topic_term[i] @ topic_term[j] / (norms[i] * norms[j]))
        for i, j in combinations(range(k), 2)
    ]
    return float(np.sum(similarities) / (k * (k - 1) / 2))

def arun_2010(topic_term: np.ndarray, doc_topic: np.ndarray, doc_lengths: np.ndarray) -> float:
    """
    Symmetric KL divergence between the singular values of the topic-term
    matrix and the document-length weighted topic distribution (lower is better).

    Args:
        topic_term: Topics x terms probability matrix.
        doc_topic: Documents x topics probability matrix.
        doc_lengths: Token count of every document.
    """
    k = topic_term.shape[0]
    if topic_term.shape[1] < k:
        raise ValueError(
            f"arun_2010 needs at least as many terms as topics ({topic_term.shape[1]} < {k})"
        )

    singular_values = np.linalg.svd(topic_term, compute_uv=False)
    doc_lengths = np.asarray(doc_lengths, dtype=float)
    topic_mass = doc_lengths @ doc_topic
    topic_mass = topic_mass / np.max(np.abs(doc_lengths))
    return symmetric_kl(singular_values, topic_mass)

def deveaud_2014(topic_term: np.ndarray) -> float:
    """
    Average Jensen-Shannon style divergence between every pair of topics
    (higher is better).

    Zero probabilities are lifted to the smallest positive float so the
    logarithms stay finite.
    """
    k = topic_term.shape[0]
    if k < 2:
        raise ValueError("deveaud_2014 needs at least two topics")

    probs = np.asarray(topic_term, dtype=float)
    if np.any(probs == 0):
        probs = probs + np.finfo(float).tiny

    total = 0.0
    for i, j in combinations(range(k), 2):
        x, y = probs[i], probs[j]
        total += 0.5 * float(np.sum(x * np.log(x / y))) + 0.5 * float(np.sum(y * np.log(y / x)))
    return total / (k * (k - 1))

def griffiths_2004(log_likelihoods: Sequence[float]) -> float:
    """
    Harmonic mean estimate of log p(w | k) from sampled log-likelihoods
    (higher is better).

    Computed in log space: log(n) - logsumexp(-ll).
    """
    values = np.asarray(log_likelihoods, dtype=float)
    if values.size == 0:
        raise ValueError("griffiths_2004 needs at least one log-likelihood value")
    return float(np.log(values.size) - logsumexp(-values))

def topic_entropy(doc_topic: np.ndarray) -> float:
    """Mean per-document topic entropy in bits; a spread indicator for reports."""
    if len(doc_topic) == 0:
        return 0.0
    return float(np.mean([entropy(row, base=2) for row in doc_topic]))

class StatisticalAnalyzer:
    """
    Computes the topic-count heuristics from a fitted topic model.

    Each metric reads what it needs from a TopicModelResult and the
    document-term matrix it was fitted on.
    """

    def __init__(self):
        self.metrics: Dict[str, Callable] = {
            'griffiths_2004': self._griffiths,
            'cao_juan_2009': self._cao_juan,
            'arun_2010': self._arun,
            'deveaud_2014': self._deveaud
        }

    @staticmethod
    def _griffiths(result, matrix) -> float:
        trace = list(result.log_likelihood_trace)
        if not trace:
            if result.log_likelihood is None:
                raise ValueError(f"{result.procedure} model reports no log-likelihood")
            trace = [result.log_likelihood]
        return griffiths_2004(trace)

    @staticmethod
    def _cao_juan(result, matrix) -> float:
        return cao_juan_2009(result.topic_term)

    @staticmethod
    def _arun(result, matrix) -> float:
        return arun_2010(result.topic_term, result.doc_topic, matrix.doc_lengths())

    @staticmethod
    def _deveaud(result, matrix) -> float:
        return deveaud_2014(result.topic_term)

    def compute(self, metric: str, result, matrix) -> float:
        try:
            func = self.metrics[metric]
        except KeyError:
            raise ValueError(f"Unknown metric: {metric}") from None

        score = func(result, matrix)
        if not np.isfinite(score):
            raise ValueError(f"{metric} is not finite for k={result.topic_count}")
        return score
