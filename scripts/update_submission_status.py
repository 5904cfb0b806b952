#!/usr/bin/env python3
"""Apply a judge result to a stored submission.

Usage:
    python scripts/update_submission_status.py <id> <status> [results.json]

results.json holds the ordered list of per-case results
({"time", "memory", "stdin", "stdout", "stderr", "log"}).
"""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from judgestore.core.config import get_settings
from judgestore.core.context import OperationContext
from judgestore.core.errors import SubmissionStoreError, error_payload
from judgestore.schemas import JudgeUpdate
from judgestore.services.submissions import SubmissionStore


def load_results(path):
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def main(argv, store=None, settings=None):
    if len(argv) < 3:
        print('Usage: python scripts/update_submission_status.py <id> <status> [results.json]')
        return 1

    settings = settings or get_settings()
    results = load_results(argv[3]) if len(argv) > 3 else []
    update = JudgeUpdate(id=argv[1], status=argv[2], results=results)

    owns_store = store is None
    try:
        if owns_store:
            store = SubmissionStore.open(settings)
        store.apply_judge_update(OperationContext.from_settings(settings), update)
    except SubmissionStoreError as e:
        print(error_payload(e).model_dump_json())
        return 1
    finally:
        if owns_store and store is not None:
            store.close()

    print(f'{update.id} -> {update.status} ({len(update.results)} result(s))')
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
