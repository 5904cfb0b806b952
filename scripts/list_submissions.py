#!/usr/bin/env python3
"""Print one page of submissions as JSON documents, newest first.

Usage:
    python scripts/list_submissions.py [cursor]
"""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from judgestore.core.config import get_settings
from judgestore.core.context import OperationContext
from judgestore.core.errors import SubmissionStoreError, error_payload
from judgestore.main import store_lifespan


def main(argv, settings=None):
    settings = settings or get_settings()
    cursor = argv[1] if len(argv) > 1 else None
    try:
        with store_lifespan(settings, configure_logging=False) as store:
            page = store.query(OperationContext.from_settings(settings), cursor)
    except SubmissionStoreError as e:
        print(error_payload(e).model_dump_json())
        return 1

    print(json.dumps([s.to_document() for s in page], indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
