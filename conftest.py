import numpy as np
import pandas as pd
import pytest

from analyzers.topic_models import TopicModelResult
from analyzers.weighting import bind_tf_idf, build_matrix, count_terms
from utils.text_processing import normalize_documents

STOP_WORDS = {'a', 'an', 'and', 'for', 'in', 'is', 'of', 'on', 'the', 'to', 'with'}

ABSTRACTS = [
    ('p1', "Economic growth and labour markets in transition economies"),
    ('p2', "Labour market policy for unemployment and wages"),
    ('p3', "Wages, unemployment and labour productivity in firms"),
    ('p4', "Soil erosion and river sediment in alpine catchments"),
    ('p5', "River flooding, sediment transport and catchment hydrology"),
    ('p6', "Alpine glacier melt changes river hydrology"),
]

@pytest.fixture
def stop_words():
    return set(STOP_WORDS)

@pytest.fixture
def documents():
    return list(ABSTRACTS)

@pytest.fixture
def tokens(documents, stop_words):
    return normalize_documents(documents, stop_words)

@pytest.fixture
def matrix(tokens):
    """Unfiltered document-term matrix of the two-theme corpus."""
    return build_matrix(bind_tf_idf(count_terms(tokens)))

@pytest.fixture
def publications_raw():
    """Spreadsheet-shaped records, named the way the export names them."""
    return pd.DataFrame({
        'ID': ['1', '2', '3', '4', '4', '5', '6', '7'],
        'Title': ['Labour markets', 'Wage policy', 'Glaciers', 'River sediment', 'River sediment',
                  'Soil erosion', 'Labour markets', 'Conference notes'],
        'Keywords': ['labour; wages', np.nan, 'ice', 'rivers', 'rivers', 'soil', 'labour; wages', 'misc'],
        'Keywords (English)': [np.nan] * 8,
        'Abstract': ['Labour market study.', np.nan, 'Glacier melt.', 'Sediment transport.',
                     'Sediment transport.', np.nan, 'Labour market study.', 'Proceedings.'],
        'Abstract (English)': [np.nan, 'Wage policy study.', np.nan, np.nan, np.nan, np.nan, np.nan, np.nan],
        'Journal': ['Econ J', 'Econ J', 'Geo J', 'Geo J', 'Geo J', 'Geo J', 'Econ J', 'Proc'],
        'Journal (English)': ['Econ J', 'Econ J', 'Geo J', 'Geo J', 'Geo J', 'Geo J', 'Econ J', 'Proc'],
        'Language': ['eng', 'eng', 'slv', 'eng', 'eng', 'eng', 'eng', 'eng'],
        'Publication type': ['1.01', '1.02', '1.01', '1.01', '1.01', '1.01', '1.01', '1.08'],
        'Authors': ['A', 'B', 'C', 'D', 'D', 'E', 'A', 'F'],
    })

def make_result(doc_topic, topic_term, procedure='fake', doc_ids=None, terms=None, **kwargs):
    doc_topic = np.asarray(doc_topic, dtype=float)
    topic_term = np.asarray(topic_term, dtype=float)
    return TopicModelResult(
        procedure=procedure,
        topic_count=doc_topic.shape[1],
        seed=kwargs.pop('seed', None),
        doc_ids=tuple(doc_ids or [f'd{i}' for i in range(doc_topic.shape[0])]),
        terms=tuple(terms or [f't{i}' for i in range(topic_term.shape[1])]),
        doc_topic=doc_topic,
        topic_term=topic_term,
        **kwargs
    )
