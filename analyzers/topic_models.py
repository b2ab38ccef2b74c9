import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.special import gammaln
from tqdm import tqdm
from gensim.models import CoherenceModel, LdaModel
from gensim.models.ldamulticore import LdaMulticore

from analyzers.weighting import DocumentTermMatrix
from configs.models import ModelConfig
from configs.topic_config import TOPIC_CONFIG

@dataclass(frozen=True, eq=False)
class TopicModelResult:
    """
    Output of one fit: document-topic and topic-term distributions plus
    optional diagnostics. Arrays are read-only once constructed.
    """
    procedure: str
    topic_count: int
    seed: Optional[int]
    doc_ids: Tuple[Any, ...]
    terms: Tuple[str, ...]
    doc_topic: np.ndarray
    topic_term: np.ndarray
    coherence: Optional[float] = None
    log_likelihood: Optional[float] = None
    log_likelihood_trace: Tuple[float, ...] = ()

    def __post_init__(self):
        self.doc_topic.setflags(write=False)
        self.topic_term.setflags(write=False)

    def top_terms(self, n: int = 10) -> Dict[int, List[str]]:
        order = np.argsort(-self.topic_term, axis=1, kind='stable')[:, :n]
        return {topic: [self.terms[i] for i in row] for topic, row in enumerate(order)}

    def top_terms_frame(self, n: int = 10) -> pd.DataFrame:
        rows = []
        order = np.argsort(-self.topic_term, axis=1, kind='stable')[:, :n]
        for topic, row in enumerate(order):
            for rank, term_id in enumerate(row, 1):
                rows.append({
                    'topic': topic,
                    'rank': rank,
                    'term': self.terms[term_id],
                    'weight': float(self.topic_term[topic, term_id])
                })
        return pd.DataFrame(rows, columns=['topic', 'rank', 'term', 'weight'])

    def dominant_topics(self) -> np.ndarray:
        return np.argmax(self.doc_topic, axis=1)

    def doc_topic_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(self.doc_topic, columns=list(range(self.topic_count)))
        frame.insert(0, 'doc_id', list(self.doc_ids))
        frame['dominant_topic'] = self.dominant_topics()
        return frame

def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Scale every row to sum to one; all-zero rows become uniform."""
    matrix = np.asarray(matrix, dtype=float)
    sums = matrix.sum(axis=1, keepdims=True)
    uniform = np.full_like(matrix, 1.0 / matrix.shape[1])
    with np.errstate(invalid='ignore', divide='ignore'):
        scaled = matrix / sums
    return np.where(sums > 0, scaled, uniform)

def coherence_quality(value: Optional[float]) -> str:
    """Label a coherence score with the first threshold it reaches."""
    if value is None:
        return 'unknown'
    thresholds = TOPIC_CONFIG['coherence_thresholds']
    for label, threshold in sorted(thresholds.items(), key=lambda item: -item[1]):
        if value >= threshold:
            return label
    return 'poor'

def check_fit_input(matrix: DocumentTermMatrix, k: int) -> None:
    if matrix.is_empty:
        raise ValueError("document-term matrix is empty (no terms survived the tf-idf cutoff)")
    if k < 2:
        raise ValueError(f"topic count must be at least 2, got {k}")

class TopicModelAdapter:
    """
    Common interface of the estimation procedures:
    ``fit(matrix, k, seed) -> TopicModelResult``.
    """
    name = 'base'

    def __init__(self, top_n: int = 10, coherence: str = TOPIC_CONFIG['coherence_measure']):
        self.top_n = top_n
        self.coherence = coherence

    def fit(self, matrix: DocumentTermMatrix, k: int, seed: Optional[int] = None) -> TopicModelResult:
        raise NotImplementedError

    def _coherence(self, matrix: DocumentTermMatrix, topics: List[List[str]] = None, model=None) -> Optional[float]:
        """
        gensim coherence of the fitted topics. Failures are logged and give
        None; coherence is a diagnostic only.
        """
        try:
            coherence_model = CoherenceModel(
                model=model,
                topics=topics,
                corpus=matrix.to_corpus(),
                dictionary=matrix.to_dictionary(),
                coherence=self.coherence,
                topn=self.top_n
            )
            return float(coherence_model.get_coherence())
        except Exception as e:
            logging.error(f"Error calculating {self.coherence} coherence for {self.name}: {str(e)}")
            return None

class VariationalLDA(TopicModelAdapter):
    """
    Variational Bayes LDA backed by gensim.

    Args:
        passes: Passes over the corpus.
        iterations: Maximum inference iterations per document.
        workers: Number of worker processes; above 1 LdaMulticore is tried
            first and LdaModel is the fallback. Only workers=1 is
            reproducible under a fixed seed.
    """
    name = 'vem'

    def __init__(self, passes: int = 10, iterations: int = 100, workers: int = 1,
                 alpha='symmetric', eta=None, top_n: int = 10,
                 coherence: str = TOPIC_CONFIG['coherence_measure']):
        super().__init__(top_n=top_n, coherence=coherence)
        self.passes = passes
        self.iterations = iterations
        self.workers = workers
        self.alpha = alpha
        self.eta = eta

    def fit(self, matrix: DocumentTermMatrix, k: int, seed: Optional[int] = None) -> TopicModelResult:
        check_fit_input(matrix, k)
        corpus = matrix.to_corpus()
        dictionary = matrix.to_dictionary()

        lda_params = {
            'num_topics': k,
            'passes': self.passes,
            'iterations': self.iterations,
            'random_state': seed,
            'alpha': self.alpha,
            'eta': self.eta,
            'eval_every': None,
            'minimum_probability': 0.0,
            'dtype': np.float64
        }

        if self.workers > 1:
            try:
                model = LdaMulticore(corpus=corpus, id2word=dictionary, workers=self.workers, **lda_params)
            except Exception as e:
                logging.warning(f"Multicore LDA failed: {e}. Falling back to single-core LdaModel.")
                model = LdaModel(corpus=corpus, id2word=dictionary, **lda_params)
        else:
            model = LdaModel(corpus=corpus, id2word=dictionary, **lda_params)

        doc_topic = np.zeros((len(corpus), k), dtype=float)
        for row, bow in enumerate(corpus):
            for topic_id, prob in model.get_document_topics(bow, minimum_probability=0.0):
                doc_topic[row, topic_id] = prob

        return TopicModelResult(
            procedure=self.name,
            topic_count=k,
            seed=seed,
            doc_ids=matrix.doc_ids,
            terms=matrix.terms,
            doc_topic=normalize_rows(doc_topic),
            topic_term=normalize_rows(model.get_topics()),
            coherence=self._coherence(matrix, model=model),
            log_likelihood=float(model.bound(corpus))
        )

class GibbsLDA(TopicModelAdapter):
    """
    Collapsed Gibbs sampling LDA.

    Topic assignments start uniformly at random from RandomState(seed) and
    are resampled token by token. After ``burn_in`` sweeps the
    log-likelihood log p(w | z) is recorded every ``thin`` sweeps; the final
    state gives the distributions.

    Args:
        burn_in: Sweeps before the trace starts.
        iterations: Sweeps after burn-in.
        thin: Record the log-likelihood every n-th sweep.
        alpha: Document-topic prior; defaults to 50 / k.
        beta: Topic-term prior.
    """
    name = 'gibbs'

    def __init__(self, burn_in: int = 200, iterations: int = 300, thin: int = 10,
                 alpha: Optional[float] = None, beta: float = 0.1, top_n: int = 10,
                 coherence: str = TOPIC_CONFIG['coherence_measure'], progress: bool = False):
        super().__init__(top_n=top_n, coherence=coherence)
        self.burn_in = burn_in
        self.iterations = iterations
        self.thin = thin
        self.alpha = alpha
        self.beta = beta
        self.progress = progress

    @staticmethod
    def log_likelihood(topic_word: np.ndarray, topic_totals: np.ndarray, beta: float) -> float:
        """log p(w | z) for topic-word counts of shape (terms, topics)."""
        n_terms, k = topic_word.shape
        return float(
            k * (gammaln(n_terms * beta) - n_terms * gammaln(beta))
            + np.sum(gammaln(topic_word + beta))
            - np.sum(gammaln(topic_totals + n_terms * beta))
        )

    def fit(self, matrix: DocumentTermMatrix, k: int, seed: Optional[int] = None) -> TopicModelResult:
        check_fit_input(matrix, k)
        doc_term = matrix.doc_term().tocoo()
        n_docs, n_terms = doc_term.shape
        counts = doc_term.data.astype(np.int64)
        word_ids = np.repeat(doc_term.col, counts)
        doc_ids = np.repeat(doc_term.row, counts)
        n_tokens = word_ids.size

        alpha = self.alpha if self.alpha is not None else 50.0 / k
        beta = self.beta
        rng = np.random.RandomState(seed)

        z = rng.randint(k, size=n_tokens)
        C_wt = np.zeros((n_terms, k), dtype=np.int64)
        C_dt = np.zeros((n_docs, k), dtype=np.int64)
        np.add.at(C_wt, (word_ids, z), 1)
        np.add.at(C_dt, (doc_ids, z), 1)
        n_t = C_wt.sum(axis=0)

        trace = []
        total_sweeps = self.burn_in + self.iterations
        for sweep in tqdm(range(total_sweeps), desc=f"Gibbs k={k}", disable=not self.progress):
            draws = rng.random_sample(n_tokens)
            for i in range(n_tokens):
                w, d, t_old = word_ids[i], doc_ids[i], z[i]
                C_wt[w, t_old] -= 1
                C_dt[d, t_old] -= 1
                n_t[t_old] -= 1

                # p(t) ∝ (C_wt[w,t] + β) / (n_t + Vβ) * (C_dt[d,t] + α)
                p = (C_wt[w] + beta) / (n_t + n_terms * beta) * (C_dt[d] + alpha)
                cumulative = np.cumsum(p)
                t_new = min(int(np.searchsorted(cumulative, draws[i] * cumulative[-1], side='right')), k - 1)

                z[i] = t_new
                C_wt[w, t_new] += 1
                C_dt[d, t_new] += 1
                n_t[t_new] += 1

            if sweep >= self.burn_in and (sweep - self.burn_in + 1) % self.thin == 0:
                trace.append(self.log_likelihood(C_wt, n_t, beta))

        final_ll = self.log_likelihood(C_wt, n_t, beta)
        if not trace:
            trace.append(final_ll)

        theta = (C_dt + alpha) / (C_dt.sum(axis=1, keepdims=True) + k * alpha)
        phi = (C_wt.T + beta) / (n_t[:, None] + n_terms * beta)

        result = TopicModelResult(
            procedure=self.name,
            topic_count=k,
            seed=seed,
            doc_ids=matrix.doc_ids,
            terms=matrix.terms,
            doc_topic=normalize_rows(theta),
            topic_term=normalize_rows(phi),
            log_likelihood=final_ll,
            log_likelihood_trace=tuple(trace)
        )
        topics = [result.top_terms(self.top_n)[topic] for topic in range(k)]
        return replace(result, coherence=self._coherence(matrix, topics=topics))

def build_topic_model(key: str, **params) -> TopicModelAdapter:
    """Instantiate a registered procedure ('vem' or 'gibbs')."""
    if key not in ModelConfig.SUPPORTED_MODELS:
        raise ValueError(
            f"Unsupported topic model '{key}'. Choose from: {', '.join(ModelConfig.SUPPORTED_MODELS)}"
        )
    adapters = {VariationalLDA.name: VariationalLDA, GibbsLDA.name: GibbsLDA}
    return adapters[key](**params)

def compare_top_terms(first: TopicModelResult, second: TopicModelResult, n: int = 10) -> pd.DataFrame:
    """
    Pair every topic of ``first`` with the topic of ``second`` whose top-n
    term set overlaps most (Jaccard). An informal cross-check of the two
    procedures, not an agreement statistic.
    """
    first_terms = first.top_terms(n)
    second_terms = second.top_terms(n)
    rows = []
    for topic, terms in first_terms.items():
        terms = set(terms)
        best_topic, best_overlap, best_shared = None, -1.0, set()
        for other_topic, other_terms in second_terms.items():
            other_terms = set(other_terms)
            union = terms | other_terms
            overlap = len(terms & other_terms) / len(union) if union else 0.0
            if overlap > best_overlap:
                best_topic, best_overlap, best_shared = other_topic, overlap, terms & other_terms
        rows.append({
            'topic': topic,
            'matched_topic': best_topic,
            'jaccard': best_overlap,
            'shared_terms': ' '.join(sorted(best_shared))
        })
    return pd.DataFrame(rows)
