from .ingestion import load_publications, select_publications, document_texts
from .weighting import TermWeightingEngine, DocumentTermMatrix
from .topic_models import TopicModelResult, VariationalLDA, GibbsLDA, build_topic_model, compare_top_terms
from .topic_selection import TopicCountEvaluator, TopicCountSweep
from .som import SelfOrganizingMap, project_documents

__all__ = [
    'load_publications',
    'select_publications',
    'document_texts',
    'TermWeightingEngine',
    'DocumentTermMatrix',
    'TopicModelResult',
    'VariationalLDA',
    'GibbsLDA',
    'build_topic_model',
    'compare_top_terms',
    'TopicCountEvaluator',
    'TopicCountSweep',
    'SelfOrganizingMap',
    'project_documents'
]
