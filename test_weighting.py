import numpy as np
import pandas as pd
import pytest

from analyzers.weighting import (
    TermWeightingEngine,
    bind_tf_idf,
    build_matrix,
    count_terms,
    filter_weights,
)
from utils.text_processing import normalize_documents

def weights_for(documents, stop_words):
    return bind_tf_idf(count_terms(normalize_documents(documents, stop_words)))

def test_labour_example(stop_words):
    weights = weights_for([
        ('A', "Economic growth in labour economics"),
        ('B', "Labour market economics policy"),
    ], stop_words)
    labour = weights[weights['term'] == 'labour']
    growth = weights[weights['term'] == 'growth']

    assert set(labour['doc_id']) == {'A', 'B'}
    assert (labour['tf'] > 0).all()
    assert labour['idf'].iloc[0] < growth['idf'].iloc[0]
    assert growth['idf'].iloc[0] == pytest.approx(np.log(2))
    assert labour.loc[labour['doc_id'] == 'A', 'tf'].iloc[0] == pytest.approx(0.25)

def test_tf_sums_to_one_per_document(documents, stop_words):
    weights = weights_for(documents, stop_words)
    sums = weights.groupby('doc_id')['tf'].sum()
    assert np.allclose(sums.to_numpy(), 1.0)

def test_tf_idf_is_zero_exactly_where_term_is_absent(documents, stop_words):
    weights = weights_for(documents, stop_words)
    assert (weights['tf_idf'] >= 0).all()

    dense = weights.pivot(index='doc_id', columns='term', values='tf_idf').fillna(0.0)
    present = weights.pivot(index='doc_id', columns='term', values='n').notna()
    # no term of this corpus occurs in every document, so idf > 0 for all
    assert (weights['idf'] > 0).all()
    assert ((dense > 0) == present).all().all()

def test_missing_markers_never_reach_the_weight_table(stop_words):
    weights = weights_for([('a', 'NA labour na'), ('b', 'nan wages NA')], stop_words)
    assert not set(weights['term']) & {'na', 'nan', ''}

def test_median_cutoff_keeps_only_entries_above_the_median():
    weights = pd.DataFrame({
        'doc_id': ['a', 'a', 'b', 'b'],
        'term': ['x', 'y', 'x', 'z'],
        'n': [1, 1, 1, 3],
        'tf': [0.5, 0.5, 0.25, 0.75],
        'idf': [0.2, 0.2, 0.4, 0.4],
        'tf_idf': [0.1, 0.1, 0.1, 0.3],
    })
    kept = filter_weights(weights)
    assert list(kept['term']) == ['z']
    assert len(kept) < len(weights)

def test_cutoff_never_keeps_entries_at_or_below_the_threshold(documents, stop_words):
    weights = weights_for(documents, stop_words)
    median = weights['tf_idf'].median()
    kept = filter_weights(weights, 0.5)
    assert (kept['tf_idf'] > median).all()
    assert len(kept) == int((weights['tf_idf'] > median).sum())

def test_cutoff_quantile_is_configurable(documents, stop_words):
    weights = weights_for(documents, stop_words)
    assert len(filter_weights(weights, 0.0)) >= len(filter_weights(weights, 0.5))

def test_build_matrix_counts_terms_by_documents():
    weights = pd.DataFrame({
        'doc_id': ['d1', 'd1', 'd2'],
        'term': ['river', 'labour', 'river'],
        'n': [2, 1, 3],
        'tf': [0.0, 0.0, 0.0],
        'idf': [0.0, 0.0, 0.0],
        'tf_idf': [0.0, 0.0, 0.0],
    })
    matrix = build_matrix(weights)
    assert matrix.terms == ('labour', 'river')
    assert matrix.doc_ids == ('d1', 'd2')
    assert matrix.counts.shape == (2, 2)

    frame = matrix.to_frame()
    assert frame.loc['river', 'd1'] == 2
    assert frame.loc['river', 'd2'] == 3
    assert frame.loc['labour', 'd2'] == 0

    assert matrix.doc_term().shape == (2, 2)
    assert list(matrix.doc_lengths()) == [3, 3]
    assert matrix.to_corpus() == [[(0, 1), (1, 2)], [(1, 3)]]
    assert len(matrix.to_dictionary()) == 2

def test_empty_input_gives_empty_matrix():
    weights = bind_tf_idf(count_terms([]))
    assert weights.empty
    assert filter_weights(weights).empty
    assert build_matrix(weights).is_empty

def test_engine_runs_all_steps(tokens):
    weights, retained, matrix = TermWeightingEngine(cutoff_quantile=0.5).run(tokens)
    assert len(retained) < len(weights)
    assert matrix.n_terms == retained['term'].nunique()
    assert matrix.n_docs == retained['doc_id'].nunique()
    assert int(matrix.counts.sum()) == int(retained['n'].sum())

def test_engine_rejects_invalid_quantile():
    with pytest.raises(ValueError):
        TermWeightingEngine(cutoff_quantile=1.0)
