from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vagas_ai.features.ats_keywords import extract_keywords
from vagas_ai.features.ats_scorer import score_breakdown
from vagas_ai.services.cv_templates import get_cv_template
from vagas_ai.services.job_parser import parse_job, parse_job_with_analysis
from vagas_ai.validation import validate


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse a job posting and score the base CV against it.")
    parser.add_argument("path", help="Job posting text, or structured job JSON with --structured")
    parser.add_argument(
        "--structured",
        action="store_true",
        help="Input is already structured job JSON; skip the model call.",
    )
    parser.add_argument("--language", default="pt", choices=["pt", "en"], help="Base CV language")
    parser.add_argument("--analysis", action="store_true", help="Also request a Markdown career analysis of the job.")
    args = parser.parse_args()

    raw = Path(args.path).read_text(encoding="utf-8")
    analysis = None
    if args.structured:
        job = validate(json.loads(raw))
    else:
        parsed = asyncio.run(parse_job_with_analysis(raw) if args.analysis else parse_job(raw))
        job = parsed.data
        analysis = parsed.analysis
        print(f"model={parsed.model} duration_ms={parsed.duration_ms} tokens={parsed.token_usage.total_tokens}")

    keywords = extract_keywords(job)
    ats = score_breakdown(get_cv_template(args.language), keywords, args.language)
    print(json.dumps(job.as_dict(), ensure_ascii=False, indent=2))
    print(json.dumps(keywords.model_dump(), ensure_ascii=False, indent=2))
    print(json.dumps(ats.model_dump(), ensure_ascii=False, indent=2))
    if analysis:
        print(analysis)


if __name__ == "__main__":
    main()
