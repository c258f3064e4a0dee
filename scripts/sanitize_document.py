from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import ESCAPE_MODES  # noqa: E402
from app.parsing.parse import parse_document  # noqa: E402
from app.sanitize import sanitize_scalar  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract text from a resume (.pdf, .docx, .txt) and print it JSON-safe."
    )
    parser.add_argument("path", help="Path to the document")
    parser.add_argument("--out", default=None, help="Write output to this file instead of stdout")
    parser.add_argument(
        "--mode",
        choices=ESCAPE_MODES,
        default=None,
        help="Backslash escape mode (defaults to SANITIZER_ESCAPE_MODE)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit a JSON object with document metadata and the sanitized text.",
    )
    args = parser.parse_args(argv)

    try:
        document = parse_document(args.path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    sanitized = sanitize_scalar(document.text, mode=args.mode)
    if args.json:
        output = json.dumps(
            {
                "doc_id": document.doc_id,
                "source_type": document.source_type,
                "pages": document.pages,
                "warnings": document.warnings,
                "text": sanitized,
            },
            ensure_ascii=False,
            indent=2,
        )
    else:
        output = sanitized

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output, encoding="utf-8")
        print(f"Wrote {len(output)} chars to {out_path}")
    else:
        sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
