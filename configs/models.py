from typing import Dict

class ModelConfig:
    """Configuration class for topic model estimation procedures"""
    SUPPORTED_MODELS = {
        'vem': {
            'name': 'VariationalLDA',
            'type': 'variational',
            'description': 'Online variational Bayes LDA (gensim LdaModel / LdaMulticore)'
        },
        'gibbs': {
            'name': 'GibbsLDA',
            'type': 'sampling',
            'description': 'Collapsed Gibbs sampling LDA with log-likelihood trace'
        }
    }

    @classmethod
    def list_available_models(cls) -> Dict[str, str]:
        return {key: spec['description'] for key, spec in cls.SUPPORTED_MODELS.items()}

class RecordFields:
    """Mapping from canonical publication fields to spreadsheet column names."""

    COLUMNS = {
        'doc_id': 'ID',
        'title': 'Title',
        'keywords': 'Keywords',
        'keywords_en': 'Keywords (English)',
        'abstract': 'Abstract',
        'abstract_en': 'Abstract (English)',
        'journal': 'Journal',
        'journal_en': 'Journal (English)',
        'language': 'Language',
        'publication_type': 'Publication type',
        'authors': 'Authors'
    }

    # Concatenated, in this order, into the text that gets normalized
    TEXT_FIELDS = ('title', 'keywords', 'keywords_en', 'abstract', 'abstract_en')

    ABSTRACT_FIELDS = ('abstract', 'abstract_en')

    @classmethod
    def required_columns(cls) -> Dict[str, str]:
        return dict(cls.COLUMNS)
