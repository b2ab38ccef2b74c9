import logging
from pathlib import Path
from typing import Dict, Sequence, Union

import pandas as pd

from configs.models import RecordFields
from utils.text_processing import build_document_text, is_missing

def load_publications(path: Union[str, Path], columns: Dict[str, str] = None) -> pd.DataFrame:
    """
    Read a spreadsheet (.xlsx) or CSV export of publication records and
    rename its columns to the canonical field names.

    Args:
        path: File to read.
        columns: Mapping canonical field -> column name in the file.
            Defaults to RecordFields.COLUMNS.

    Returns:
        A DataFrame with one row per record and only the canonical columns.

    Raises:
        KeyError: If the file lacks any of the mapped columns.
        ValueError: For legacy .xls workbooks, which must be re-saved as .xlsx.
    """
    columns = columns or RecordFields.required_columns()
    path = Path(path)

    if path.suffix.lower() == '.xls':
        raise ValueError(f"Legacy .xls workbooks are not supported, re-save {path.name} as .xlsx")
    if path.suffix.lower() == '.xlsx':
        raw = pd.read_excel(path, dtype=str)
    else:
        raw = pd.read_csv(path, dtype=str)

    logging.info(f"Loaded {len(raw)} rows from {path}")
    return select_fields(raw, columns)

def select_fields(raw: pd.DataFrame, columns: Dict[str, str] = None) -> pd.DataFrame:
    """Pick and rename the mapped columns, failing loudly on missing ones."""
    columns = columns or RecordFields.required_columns()
    missing = [source for source in columns.values() if source not in raw.columns]
    if missing:
        raise KeyError(f"Input is missing required columns: {', '.join(missing)}")

    renamed = raw[list(columns.values())].rename(columns={v: k for k, v in columns.items()})
    return renamed.reset_index(drop=True)

def has_abstract(publications: pd.DataFrame,
                 abstract_fields: Sequence[str] = RecordFields.ABSTRACT_FIELDS) -> pd.Series:
    """Boolean mask: at least one abstract field holds real text."""
    present = [~publications[field].map(is_missing) for field in abstract_fields]
    mask = present[0]
    for other in present[1:]:
        mask = mask | other
    return mask

def select_publications(publications: pd.DataFrame, language: str,
                        article_types: Sequence[str]) -> pd.DataFrame:
    """
    Keep English journal articles that have an abstract, then deduplicate.

    Records without any abstract are filtered out, not treated as errors.
    Duplicates are dropped first on the identifier, then on identical
    title + abstract pairs (the same article registered twice).

    Returns:
        A new DataFrame; the input is left untouched.
    """
    language_mask = publications['language'].str.strip().str.lower() == language.lower()
    type_mask = publications['publication_type'].str.strip().isin(list(article_types))
    abstract_mask = has_abstract(publications)

    selected = publications[language_mask & type_mask & abstract_mask]
    logging.info(
        f"Selection: {int(language_mask.sum())} in '{language}', "
        f"{int(type_mask.sum())} journal articles, {int(abstract_mask.sum())} with abstract "
        f"-> {len(selected)} records"
    )

    before = len(selected)
    selected = selected.drop_duplicates(subset=['doc_id'])
    dedupe_key = selected[['title', 'abstract', 'abstract_en']].fillna('').apply(
        lambda column: column.str.strip().str.lower()
    )
    selected = selected[~dedupe_key.duplicated()]
    if len(selected) < before:
        logging.info(f"Removed {before - len(selected)} duplicate records")

    return selected.reset_index(drop=True)

def document_texts(publications: pd.DataFrame,
                   fields: Sequence[str] = RecordFields.TEXT_FIELDS) -> pd.DataFrame:
    """
    Build the concatenated text of every record.

    Returns:
        A new DataFrame with columns doc_id and text.
    """
    texts = [
        build_document_text(record, fields)
        for record in publications.to_dict(orient='records')
    ]
    return pd.DataFrame({'doc_id': publications['doc_id'].tolist(), 'text': texts})
