"""
core/vectorstore.py - In-memory Term-Frequency Vector Store
============================================================

This module handles all vector store operations:
- Discovering and loading knowledge documents from disk
- Tokenizing text into lowercase word tokens
- Building a frequency-ranked vocabulary
- Embedding documents as term-frequency (TF) vectors
- Cosine-similarity retrieval of the top-k documents

Key Concepts:
- Vocabulary: the most frequent terms across all documents. Its order
  defines the axes of every vector built from it.
- TF vector: coordinate i counts vocabulary term i in a piece of text.
- Snapshot: one vocabulary plus the documents embedded against it. Every
  successful build replaces the snapshot wholesale; nothing is persisted.
"""

import logging
import re
import threading
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from config import (
    FALLBACK_KNOWLEDGE_FILE,
    KNOWLEDGE_DIR,
    KNOWLEDGE_EXTENSIONS,
    MAX_VOCABULARY,
    TOP_K_RESULTS,
)

logger = logging.getLogger(__name__)

# Guards against division by zero for all-zero vectors
COSINE_EPSILON = 1e-12

_NON_WORD = re.compile(r"\W+")


class IndexingError(Exception):
    """Raised when no documents are available to build the index from."""


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class Document:
    """
    A knowledge document.

    Attributes:
        id: Source filename, unique within one index build
        text: Full document text
    """
    id: str
    text: str


@dataclass(frozen=True)
class EmbeddedDocument:
    """A document together with its TF vector over a specific vocabulary."""
    document: Document
    embedding: np.ndarray = field(repr=False)

    @property
    def id(self) -> str:
        return self.document.id


@dataclass(frozen=True)
class IndexSnapshot:
    """One index generation: a vocabulary and documents embedded against it."""
    vocabulary: tuple = ()
    documents: tuple = ()


# =============================================================================
# TOKENIZATION AND EMBEDDING
# =============================================================================

def tokenize(text: Optional[str]) -> list[str]:
    """
    Split text into lowercase word tokens.

    Splits on any run of non-word characters and drops empty tokens.
    None is treated as an empty string.

    Example:
        >>> tokenize("I can't sleep, again!")
        ['i', 'can', 't', 'sleep', 'again']
    """
    return [token for token in _NON_WORD.split(str(text or "").lower()) if token]


def build_vocabulary(documents: list[Document], max_size: int = MAX_VOCABULARY) -> list[str]:
    """
    Select the most frequent terms across all documents.

    Terms are ordered by descending count; terms with equal counts keep the
    order in which they were first seen while counting.
    """
    frequencies = Counter()
    for document in documents:
        frequencies.update(tokenize(document.text))

    if max_size <= 0:
        return []

    # most_common() is a stable sort, so ties stay in first-seen order
    return [term for term, _ in frequencies.most_common(max_size)]


def embed(text: Optional[str], vocabulary) -> np.ndarray:
    """Compute the TF vector of text over the given vocabulary."""
    counts = Counter(tokenize(text))
    return np.array([counts.get(term, 0) for term in vocabulary], dtype=float)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity with a small epsilon in the denominator.

    Returns 0.0 when either vector is all zeros.
    """
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b) + COSINE_EPSILON))


# =============================================================================
# DOCUMENT DISCOVERY
# =============================================================================

def discover_documents(knowledge_dir: Path = KNOWLEDGE_DIR,
                       fallback_file: Path = FALLBACK_KNOWLEDGE_FILE) -> list[Document]:
    """
    Load knowledge documents from disk.

    Prefers every .txt/.md file in knowledge_dir (sorted by name). If there
    are none, falls back to the single fallback_file. Undecodable bytes are
    replaced rather than failing the whole build.

    Raises:
        IndexingError: If neither source provides a document
    """
    paths = []
    if knowledge_dir.is_dir():
        paths = sorted(
            path for path in knowledge_dir.iterdir()
            if path.is_file() and path.suffix.lower() in KNOWLEDGE_EXTENSIONS
        )

    if not paths and fallback_file.is_file():
        paths = [fallback_file]

    if not paths:
        raise IndexingError(
            "No knowledge files found. Add .txt/.md to ./knowledge or place my_data.txt"
        )

    logger.info("Found %d knowledge file(s)", len(paths))
    return [Document(id=path.name, text=path.read_text(encoding="utf-8", errors="replace"))
            for path in paths]


# =============================================================================
# VECTOR STORE
# =============================================================================

class VectorStore:
    """
    Holds the current index snapshot and answers similarity queries.

    Index builds swap the snapshot under a lock. Queries read the snapshot
    reference once, so a query never mixes two vocabulary generations.
    """

    def __init__(self, max_vocabulary: int = MAX_VOCABULARY):
        self.max_vocabulary = max_vocabulary
        self._snapshot = IndexSnapshot()
        self._lock = threading.Lock()

    @property
    def vocabulary(self) -> tuple:
        return self._snapshot.vocabulary

    @property
    def documents(self) -> tuple:
        return self._snapshot.documents

    def __len__(self) -> int:
        return len(self._snapshot.documents)

    def build_index(self, documents: list[Document], max_vocabulary: Optional[int] = None) -> int:
        """
        Build a new snapshot from documents and replace the current one.

        Args:
            documents: Documents to index
            max_vocabulary: Vocabulary cap (defaults to the store's cap)

        Returns:
            Number of indexed documents

        Raises:
            IndexingError: If documents is empty. The current snapshot is
                left untouched.
        """
        if not documents:
            raise IndexingError("No documents found")

        cap = self.max_vocabulary if max_vocabulary is None else max_vocabulary
        vocabulary = tuple(build_vocabulary(documents, cap))
        embedded = tuple(
            EmbeddedDocument(document=document, embedding=embed(document.text, vocabulary))
            for document in documents
        )

        with self._lock:
            self._snapshot = IndexSnapshot(vocabulary=vocabulary, documents=embedded)

        logger.info(
            "Index built: %d document(s), vocabulary size %d", len(embedded), len(vocabulary)
        )
        return len(embedded)

    def score(self, query: str) -> list[tuple[Document, float]]:
        """Return (document, similarity) pairs for every stored document, best first."""
        snapshot = self._snapshot
        if not snapshot.documents:
            return []

        query_vector = embed(query, snapshot.vocabulary)
        scores = np.array([
            cosine_similarity(query_vector, item.embedding) for item in snapshot.documents
        ])

        # Stable sort keeps storage order for equal scores
        order = np.argsort(-scores, kind="stable")
        return [(snapshot.documents[i].document, float(scores[i])) for i in order]

    def retrieve_top_k(self, query: str, k: int = TOP_K_RESULTS) -> list[Document]:
        """
        Find the k documents most similar to the query.

        Returns an empty list when nothing is indexed or k <= 0.
        """
        if k <= 0:
            return []
        return [document for document, _ in self.score(query)[:k]]
