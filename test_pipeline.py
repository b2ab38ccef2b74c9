import pandas as pd
import pytest

import config
import publication_analysis
from analyzers.som import MAPPING_COLUMNS
from conftest import ABSTRACTS, STOP_WORDS

@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """A small publication export plus a fast configuration, run from tmp_path."""
    monkeypatch.chdir(tmp_path)
    records = pd.DataFrame({
        'ID': [doc_id for doc_id, _ in ABSTRACTS],
        'Title': [text.split(' and ')[0] for _, text in ABSTRACTS],
        'Keywords': [''] * len(ABSTRACTS),
        'Keywords (English)': [''] * len(ABSTRACTS),
        'Abstract': [text for _, text in ABSTRACTS],
        'Abstract (English)': [''] * len(ABSTRACTS),
        'Journal': ['J'] * len(ABSTRACTS),
        'Journal (English)': ['J'] * len(ABSTRACTS),
        'Language': ['eng'] * len(ABSTRACTS),
        'Publication type': ['1.01'] * len(ABSTRACTS),
        'Authors': ['X'] * len(ABSTRACTS),
    })
    records.to_csv(tmp_path / 'publications.csv', index=False)

    settings = config.get_config()
    settings.update({
        'lda_passes': 3,
        'lda_iterations': 20,
        'gibbs_burn_in': 5,
        'gibbs_iterations': 10,
        'gibbs_thin': 5,
        'som_xdim': 3,
        'som_ydim': 3,
        'top_terms': 4,
    })
    monkeypatch.setattr(publication_analysis, 'get_config', lambda: settings)
    monkeypatch.setattr(publication_analysis, 'load_stop_words', lambda extra=None: set(STOP_WORDS))
    return tmp_path

def run(workspace, *extra):
    publication_analysis.main([
        '-i', str(workspace / 'publications.csv'),
        '-o', str(workspace / 'out'),
        '--min-topics', '2', '--max-topics', '3',
        '--topics', '2',
        '--som-passes', '5', '--som-budgets', '5', '10',
        '--cutoff-quantile', '0.25',
        *extra
    ])
    return workspace / 'out'

def test_pipeline_writes_every_table(workspace):
    out = run(workspace, '--no-report')

    for name in [
        'tfidf_weights.csv', 'document_term_matrix.csv',
        'topic_count_scores.csv', 'topic_count_failures.csv',
        'topics_vem_k2.csv', 'topics_gibbs_k2.csv',
        'doc_topics_vem_k2.csv', 'doc_topics_gibbs_k2.csv',
        'top_term_agreement_k2.csv', 'som_mapping_k2.csv', 'som_changes_k2.csv',
        'analysis.log',
    ]:
        assert (out / name).exists(), name
    assert not (out / 'analysis_report.pdf').exists()

    scores = pd.read_csv(out / 'topic_count_scores.csv')
    failures = pd.read_csv(out / 'topic_count_failures.csv')
    assert set(scores['topic_count']) | set(failures['topic_count']) == {2, 3}
    assert len(scores) + len(failures) == 8

    mapping = pd.read_csv(out / 'som_mapping_k2.csv', dtype={'doc_id': str})
    assert list(mapping.columns) == MAPPING_COLUMNS
    doc_topics = pd.read_csv(out / 'doc_topics_vem_k2.csv', dtype={'doc_id': str})
    assert list(mapping['doc_id']) == list(doc_topics['doc_id'])

    changes = pd.read_csv(out / 'som_changes_k2.csv')
    assert list(changes.columns) == ['pass', 'passes_5', 'passes_10']
    assert len(changes) == 10

def test_pipeline_is_reproducible(workspace):
    out = run(workspace, '--no-report', '--skip-sweep')
    first = pd.read_csv(out / 'som_mapping_k2.csv')
    out = run(workspace, '--no-report', '--skip-sweep')
    second = pd.read_csv(out / 'som_mapping_k2.csv')
    pd.testing.assert_frame_equal(first, second)

def test_pipeline_builds_the_report(workspace):
    out = run(workspace, '--skip-sweep')
    assert (out / 'analysis_report.pdf').stat().st_size > 0
    assert (out / 'som_training_progress_k2.png').exists()

def test_som_figures_are_kept_per_topic_count(workspace, monkeypatch):
    captured = {}

    def capture_report(output_path, summary, scores, topic_terms, figures):
        captured['figures'] = list(figures)

    monkeypatch.setattr(publication_analysis, 'generate_pdf_report', capture_report)
    out = run(workspace, '--skip-sweep', '--topics', '2', '3')

    figures = captured['figures']
    assert len(figures) == len(set(figures))
    for k in (2, 3):
        assert str(out / f'som_training_progress_k{k}.png') in figures
        assert str(out / f'som_mapping_k{k}.png') in figures
        assert (out / f'som_mapping_k{k}.png').exists()

def test_bad_som_settings_fail_before_any_output(workspace):
    with pytest.raises(SystemExit) as excinfo:
        run(workspace, '--no-report', '--som-passes', '0')
    assert excinfo.value.code == 2
    assert not (workspace / 'out' / 'topic_count_scores.csv').exists()

def test_default_gibbs_sweeps_and_runtime_note(workspace, capsys):
    assert config.GIBBS_BURN_IN + config.GIBBS_ITERATIONS == 300
    with pytest.raises(SystemExit):
        publication_analysis.parse_arguments(config.get_config(), ['--help'])
    assert 'minutes per k' in ' '.join(capsys.readouterr().out.split())

def test_missing_input_exits_with_error(workspace):
    with pytest.raises(SystemExit) as excinfo:
        publication_analysis.main(['-i', str(workspace / 'missing.csv'), '-o', str(workspace / 'out')])
    assert excinfo.value.code == 1

@pytest.mark.parametrize('argv', [
    ['--min-topics', '1'],
    ['--min-topics', '5', '--max-topics', '3'],
    ['--topics', '1'],
    ['--cutoff-quantile', '1.0'],
    ['--topic-step', '0'],
    ['--som-passes', '0'],
    ['--som-budgets', '500', '0'],
])
def test_invalid_arguments_are_rejected(workspace, argv):
    with pytest.raises(SystemExit) as excinfo:
        publication_analysis.main(argv)
    assert excinfo.value.code == 2

def test_list_models(workspace, capsys):
    publication_analysis.main(['--list-models'])
    output = capsys.readouterr().out
    assert 'vem' in output
    assert 'gibbs' in output
