import numpy as np
import pytest

from utils.text_processing import (
    build_document_text,
    is_missing,
    longest_letter_run,
    normalize_documents,
    normalize_text,
    sanitize_text,
    stem_token,
    truncate_text,
)

def test_normalize_text_removes_stop_words_and_stems(stop_words):
    tokens = normalize_text("Economic growth in labour economics", stop_words)
    assert tokens == ['econom', 'growth', 'labour', 'econom']

def test_morphological_variants_share_a_stem():
    assert stem_token('economics') == stem_token('economic')
    assert stem_token('markets') == stem_token('market')

def test_stop_words_match_exactly(stop_words):
    # "another" contains "a" and "the" but is not itself a stop word
    assert normalize_text("the another", stop_words) == ['anoth']

def test_longest_letter_run():
    assert longest_letter_run('ab1cde') == 'cde'
    assert longest_letter_run("x1yy1zz") == 'yy'
    assert longest_letter_run('2019') == ''
    assert longest_letter_run("author's") == "author's"

def test_tokens_without_letters_are_dropped(stop_words):
    assert normalize_text("2019 1.5 growth", stop_words) == ['growth']

def test_missing_markers_never_become_tokens(stop_words):
    assert normalize_text("NA growth na NaN", stop_words) == ['growth']
    assert normalize_text(None, stop_words) == []
    assert normalize_text(np.nan, stop_words) == []

def test_normalization_is_idempotent(stop_words):
    text = "Labour market policies, economic studies and running generalizations in 2020"
    once = normalize_text(text, stop_words)
    twice = normalize_text(' '.join(once), stop_words)
    assert once
    assert twice == once

def test_stems_that_are_stop_words_are_dropped():
    assert normalize_text("ones", {'one'}) == []

def test_normalized_tokens_are_restartable(documents, stop_words):
    tokens = normalize_documents(documents, stop_words)
    first = list(tokens)
    second = list(tokens)
    assert first == second
    assert all(doc_id in {d for d, _ in documents} for doc_id, _ in first)

def test_by_document_keeps_empty_documents(stop_words):
    tokens = normalize_documents([('a', 'labour'), ('b', 'the of na')], stop_words)
    assert tokens.by_document() == {'a': ['labour'], 'b': []}
    assert len(tokens) == 2

@pytest.mark.parametrize('value, expected', [
    (None, True),
    (np.nan, True),
    ('NA', True),
    (' nan ', True),
    ('', True),
    ('labour', False),
    (0, False),
])
def test_is_missing(value, expected):
    assert is_missing(value) is expected

def test_build_document_text_skips_missing_and_repeated_fields():
    record = {
        'title': 'Labour markets',
        'keywords': np.nan,
        'abstract': 'Labour market  study.',
        'abstract_en': 'labour market study.',
    }
    text = build_document_text(record, ('title', 'keywords', 'abstract', 'abstract_en'))
    assert text == 'Labour markets Labour market study.'

def test_sanitize_and_truncate():
    assert sanitize_text('Économie') == 'Economie'
    assert truncate_text('one two three four', max_length=9) == 'one two...'
    assert truncate_text('short', max_length=10) == 'short'
