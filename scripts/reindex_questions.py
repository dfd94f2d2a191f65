"""
Reindex questions from a JSON export of the question store.

Usage:
    python scripts/reindex_questions.py questions.json
    python scripts/reindex_questions.py questions.json --course CSE-1111
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from question_indexer.config import settings
from question_indexer.api.dependencies import get_embedder, get_vector_index
from question_indexer.embeddings.indexer import QuestionIndexer


def load_questions(path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    # Accept either a bare list or {"questions": [...]}
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of question records")
    return data


async def main(argv=None):
    parser = argparse.ArgumentParser(description="Reindex question embeddings")
    parser.add_argument("path", help="JSON file with question records")
    parser.add_argument("--course", help="Only reindex questions of this course code")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    questions = load_questions(args.path)
    print(f"Loaded {len(questions)} questions from {args.path}")

    indexer = QuestionIndexer(
        embedder=get_embedder(),
        vector_index=get_vector_index(),
        concurrency=settings.index_concurrency,
    )
    report = await indexer.reindex_many(questions, course_code=args.course)

    summary = report.summary
    print(f"Total processed: {summary.total_processed}")
    print(f"Successful upserts: {summary.successful_upserts}")
    print(f"Failed upserts: {summary.failed_upserts}")
    for item in report.failed:
        print(f"  [{item.error_kind}] question {item.id} ({item.course_code}): {item.error}")

    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
