import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from gensim.corpora import Dictionary

WEIGHT_COLUMNS = ['doc_id', 'term', 'n', 'tf', 'idf', 'tf_idf']

@dataclass(frozen=True)
class DocumentTermMatrix:
    """
    Raw term counts for the retained (document, term) entries.

    ``counts`` is a sparse matrix with one row per term and one column per
    document, in the order of ``terms`` and ``doc_ids``.
    """
    counts: sparse.csr_matrix
    terms: Tuple[str, ...]
    doc_ids: Tuple[Any, ...]

    @property
    def n_terms(self) -> int:
        return len(self.terms)

    @property
    def n_docs(self) -> int:
        return len(self.doc_ids)

    @property
    def is_empty(self) -> bool:
        return self.n_terms == 0 or self.n_docs == 0

    def doc_term(self) -> sparse.csr_matrix:
        """Documents x terms view, the orientation topic models expect."""
        return self.counts.T.tocsr()

    def doc_lengths(self) -> np.ndarray:
        return np.asarray(self.counts.sum(axis=0)).ravel()

    def to_frame(self) -> pd.DataFrame:
        """Dense term-indexed table (terms x documents)."""
        return pd.DataFrame(
            self.counts.toarray(),
            index=pd.Index(self.terms, name='term'),
            columns=list(self.doc_ids)
        )

    def to_corpus(self) -> List[List[Tuple[int, int]]]:
        """gensim bag-of-words corpus, one list of (term_id, count) per document."""
        doc_term = self.doc_term()
        corpus = []
        for row in range(doc_term.shape[0]):
            start, end = doc_term.indptr[row], doc_term.indptr[row + 1]
            corpus.append([
                (int(term_id), int(count))
                for term_id, count in zip(doc_term.indices[start:end], doc_term.data[start:end])
            ])
        return corpus

    def to_dictionary(self) -> Dictionary:
        return Dictionary.from_corpus(self.to_corpus(), id2word=dict(enumerate(self.terms)))

def count_terms(tokens: Iterable[Tuple[Any, str]]) -> pd.DataFrame:
    """Raw count of every distinct term in every document."""
    frame = pd.DataFrame(list(tokens), columns=['doc_id', 'term'])
    if frame.empty:
        return pd.DataFrame({'doc_id': [], 'term': [], 'n': []}).astype({'n': int})
    return (
        frame.groupby(['doc_id', 'term'], sort=True)
        .size()
        .reset_index(name='n')
    )

def bind_tf_idf(counts: pd.DataFrame) -> pd.DataFrame:
    """
    Add tf, idf and tf_idf columns to a (doc_id, term, n) count table.

    tf(d, t) = n(d, t) / sum_t n(d, t)
    idf(t) = ln(number of documents / number of documents containing t)

    idf is only evaluated for observed terms, so the document frequency is
    always at least one.
    """
    if counts.empty:
        return pd.DataFrame(columns=WEIGHT_COLUMNS)

    weights = counts.copy()
    doc_totals = weights.groupby('doc_id')['n'].transform('sum')
    weights['tf'] = weights['n'] / doc_totals

    n_docs = weights['doc_id'].nunique()
    doc_freq = weights.groupby('term')['doc_id'].transform('nunique')
    weights['idf'] = np.log(n_docs / doc_freq)
    weights['tf_idf'] = weights['tf'] * weights['idf']
    return weights[WEIGHT_COLUMNS].reset_index(drop=True)

def filter_weights(weights: pd.DataFrame, quantile: float = 0.5) -> pd.DataFrame:
    """
    Keep entries whose tf_idf is strictly greater than the given quantile of
    all tf_idf values (quantile=0.5 is the median cutoff rule).
    """
    if weights.empty:
        return weights.copy()
    threshold = float(weights['tf_idf'].quantile(quantile))
    kept = weights[weights['tf_idf'] > threshold]
    logging.info(
        f"tf-idf cutoff at quantile {quantile} ({threshold:.6f}): "
        f"kept {len(kept)} of {len(weights)} entries"
    )
    return kept.reset_index(drop=True)

def build_matrix(weights: pd.DataFrame) -> DocumentTermMatrix:
    """Sparse term x document count matrix of the given entries."""
    if weights.empty:
        return DocumentTermMatrix(sparse.csr_matrix((0, 0), dtype=np.int64), (), ())

    terms = sorted(weights['term'].unique())
    doc_ids = list(pd.unique(weights['doc_id']))
    term_index = {term: i for i, term in enumerate(terms)}
    doc_index = {doc_id: j for j, doc_id in enumerate(doc_ids)}

    rows = weights['term'].map(term_index).to_numpy()
    cols = weights['doc_id'].map(doc_index).to_numpy()
    counts = sparse.csr_matrix(
        (weights['n'].to_numpy(dtype=np.int64), (rows, cols)),
        shape=(len(terms), len(doc_ids))
    )
    return DocumentTermMatrix(counts, tuple(terms), tuple(doc_ids))

class TermWeightingEngine:
    """
    Counts terms, weights them with tf-idf and applies the quantile cutoff.

    Args:
        cutoff_quantile: Entries at or below this tf-idf quantile are dropped
            before the matrix is built (0.5 = median cutoff rule).
    """

    def __init__(self, cutoff_quantile: float = 0.5):
        if not 0 <= cutoff_quantile < 1:
            raise ValueError("cutoff_quantile must be in [0, 1)")
        self.cutoff_quantile = cutoff_quantile

    def weigh(self, tokens: Iterable[Tuple[Any, str]]) -> pd.DataFrame:
        weights = bind_tf_idf(count_terms(tokens))
        if not weights.empty:
            logging.info(
                f"Weighted {len(weights)} entries: {weights['doc_id'].nunique()} documents, "
                f"{weights['term'].nunique()} terms, median tf-idf {weights['tf_idf'].median():.6f}"
            )
        return weights

    def run(self, tokens: Iterable[Tuple[Any, str]]) -> Tuple[pd.DataFrame, pd.DataFrame, DocumentTermMatrix]:
        """
        Returns:
            (all weights, retained weights, document-term matrix of retained entries)
        """
        weights = self.weigh(tokens)
        retained = filter_weights(weights, self.cutoff_quantile)
        matrix = build_matrix(retained)
        if matrix.is_empty:
            logging.warning("No terms survived the tf-idf cutoff; the document-term matrix is empty")
        return weights, retained, matrix
