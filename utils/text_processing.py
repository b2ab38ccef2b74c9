import unicodedata
import re
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

import nltk
import pandas as pd
from nltk.stem.snowball import SnowballStemmer
from nltk.tokenize import RegexpTokenizer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

WORD_TOKENIZER = RegexpTokenizer(r"[\w']+")
LETTER_RUN = re.compile(r"[a-z']+")

# Upstream missing values that end up in text as literal strings
MISSING_TOKENS = frozenset({'', 'na', 'nan'})

# Snowball is not idempotent on every stem, so we stem to a fixed point
MAX_STEM_ROUNDS = 5

_default_stemmer = None

def get_stemmer() -> SnowballStemmer:
    """Return the shared English Snowball stemmer."""
    global _default_stemmer
    if _default_stemmer is None:
        _default_stemmer = SnowballStemmer('english')
    return _default_stemmer

def load_stop_words(extra: Iterable[str] = ()) -> Set[str]:
    """
    Build the English stop-word set: NLTK's corpus list merged with
    scikit-learn's ENGLISH_STOP_WORDS, plus any extra words.

    Downloads the NLTK stopwords corpus on first use.
    """
    try:
        nltk.data.find('corpora/stopwords')
    except LookupError:
        logging.info("Downloading NLTK stopwords corpus...")
        nltk.download('stopwords', quiet=True)

    from nltk.corpus import stopwords
    words = set(stopwords.words('english')) | set(ENGLISH_STOP_WORDS)
    words.update(w.lower() for w in extra)
    return words

def sanitize_text(text: str) -> str:
    """
    Sanitize text by removing non-ASCII characters and normalizing Unicode.

    Args:
        text (str): Input text to sanitize

    Returns:
        str: Sanitized text
    """
    # Normalize Unicode characters (e.g. "é" -> "e")
    normalized = unicodedata.normalize('NFKD', text)
    ascii_text = normalized.encode('ascii', 'ignore').decode('ascii')
    return ascii_text

def clean_text(text: str) -> str:
    """
    Clean text by removing extra whitespace and normalizing line endings.

    Args:
        text (str): Input text to clean

    Returns:
        str: Cleaned text
    """
    text = re.sub(r'\s+', ' ', text)
    return text.strip()

def truncate_text(text: str, max_length: int = 100, ellipsis: str = '...') -> str:
    """
    Truncate text to specified length while preserving word boundaries.

    Args:
        text (str): Input text to truncate
        max_length (int): Maximum length of output text
        ellipsis (str): String to append to truncated text

    Returns:
        str: Truncated text
    """
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(' ')
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + ellipsis

def is_missing(value: Any) -> bool:
    """True for None, pandas/numpy NA values and the literal missing markers."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in MISSING_TOKENS
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False

def longest_letter_run(token: str) -> str:
    """Longest run of lowercase letters/apostrophes in token ('' if none)."""
    runs = LETTER_RUN.findall(token)
    if not runs:
        return ''
    # max() keeps the first of equally long runs
    return max(runs, key=len)

def stem_token(token: str, stemmer=None) -> str:
    stemmer = stemmer or get_stemmer()
    stem = token
    for _ in range(MAX_STEM_ROUNDS):
        next_stem = stemmer.stem(stem)
        if next_stem == stem:
            break
        stem = next_stem
    return stem

def normalize_text(text: Optional[str], stop_words: Set[str], stemmer=None) -> List[str]:
    """
    Turn raw text into cleaned, stemmed tokens.

    Steps:
      1. Lowercase and split into word tokens.
      2. Drop exact stop-word matches.
      3. Keep only the longest [a-z']+ run of each token.
      4. Stem (English Snowball, repeated until stable).
      5. Drop empty tokens, "na" and other missing-value markers, and
         stems that are themselves stop words.

    Args:
        text: Raw text; missing values produce no tokens.
        stop_words: Set of lowercase words to remove.
        stemmer: Object with a ``stem(str) -> str`` method. Defaults to Snowball.

    Returns:
        The ordered list of stemmed tokens.
    """
    if is_missing(text):
        return []

    tokens = []
    for raw in WORD_TOKENIZER.tokenize(str(text).lower()):
        if raw in stop_words:
            continue
        run = longest_letter_run(raw)
        if is_missing(run):
            continue
        stem = stem_token(run, stemmer)
        if is_missing(stem) or not stem.strip("'"):
            continue
        # "ones" stems to "one"; drop it now or a second pass would
        if stem in stop_words:
            continue
        tokens.append(stem)
    return tokens

class NormalizedTokens:
    """
    Lazy, restartable sequence of (doc_id, token) pairs.

    Normalization runs again every time the object is iterated, so the
    sequence can be consumed any number of times.
    """

    def __init__(self, documents: Sequence[Tuple[Any, str]], stop_words: Set[str], stemmer=None):
        self.documents = list(documents)
        self.stop_words = stop_words
        self.stemmer = stemmer

    def __iter__(self) -> Iterator[Tuple[Any, str]]:
        for doc_id, text in self.documents:
            for token in normalize_text(text, self.stop_words, self.stemmer):
                yield doc_id, token

    def by_document(self) -> Dict[Any, List[str]]:
        """Group tokens per document, keeping documents without tokens."""
        grouped = {doc_id: [] for doc_id, _ in self.documents}
        for doc_id, token in self:
            grouped[doc_id].append(token)
        return grouped

    def __len__(self) -> int:
        return len(self.documents)

def normalize_documents(documents: Iterable[Tuple[Any, str]], stop_words: Set[str],
                        stemmer=None) -> NormalizedTokens:
    """Wrap (doc_id, text) pairs in a restartable token stream."""
    return NormalizedTokens(documents, stop_words, stemmer)

def build_document_text(record: Dict[str, Any], fields: Sequence[str]) -> str:
    """
    Concatenate the text fields of one publication record.

    Missing values are skipped, as is any field whose value repeats one
    already used (native and English abstracts are often identical).
    """
    parts = []
    seen = set()
    for field in fields:
        value = record.get(field)
        if is_missing(value):
            continue
        value = clean_text(sanitize_text(str(value)))
        if not value or value.lower() in seen:
            continue
        seen.add(value.lower())
        parts.append(value)
    return ' '.join(parts)
