from .text_processing import sanitize_text, clean_text, truncate_text, normalize_text, normalize_documents

__all__ = [
    'sanitize_text',
    'clean_text',
    'truncate_text',
    'normalize_text',
    'normalize_documents'
]

# Note: report_generator and visualization are imported by clients directly to keep matplotlib out of plain imports
