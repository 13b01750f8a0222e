#!/usr/bin/env python3
"""
scripts/build_index.py - Inspect the Document Index
====================================================

Builds the same in-memory index the server builds on POST /api/index and
prints a summary. The index is not saved; use this to check which files
are picked up and how queries rank them before starting the server.

Usage:
    python scripts/build_index.py

    # Show the ranking for a sample query
    python scripts/build_index.py --query "I feel anxious before exams"

    # Use a different knowledge folder
    python scripts/build_index.py --knowledge-dir ./my_docs --top-vocab 20
"""

import argparse
import sys
from pathlib import Path

from config import FALLBACK_KNOWLEDGE_FILE, KNOWLEDGE_DIR, MAX_VOCABULARY
from core.vectorstore import IndexingError, VectorStore, discover_documents


def main():
    parser = argparse.ArgumentParser(description="Build and inspect the knowledge index")
    parser.add_argument(
        "--knowledge-dir",
        type=Path,
        default=KNOWLEDGE_DIR,
        help=f"Folder of .txt/.md files (default: {KNOWLEDGE_DIR})"
    )
    parser.add_argument(
        "--max-vocabulary",
        type=int,
        default=MAX_VOCABULARY,
        help=f"Vocabulary cap (default: {MAX_VOCABULARY})"
    )
    parser.add_argument(
        "--top-vocab",
        type=int,
        default=10,
        help="How many of the most frequent terms to print"
    )
    parser.add_argument(
        "--query",
        type=str,
        help="Print similarity scores for this query"
    )
    args = parser.parse_args()

    print("=" * 60)
    print("SHYAM - Building document index")
    print("=" * 60)
    print(f"Looking for documents in: {args.knowledge_dir}")

    try:
        documents = discover_documents(args.knowledge_dir, FALLBACK_KNOWLEDGE_FILE)
    except IndexingError as e:
        print(f"Error: {e}")
        sys.exit(1)

    store = VectorStore(max_vocabulary=args.max_vocabulary)
    store.build_index(documents)

    print(f"\nDocuments indexed: {len(store)}")
    for document in documents:
        print(f"   {document.id} ({len(document.text)} chars)")
    print(f"Vocabulary size: {len(store.vocabulary)}")
    print(f"Most frequent terms: {', '.join(store.vocabulary[:args.top_vocab])}")

    if args.query:
        print(f"\nRanking for: {args.query!r}")
        for document, score in store.score(args.query):
            print(f"   {score:.4f}  {document.id}")


if __name__ == "__main__":
    main()
