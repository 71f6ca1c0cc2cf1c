from datetime import datetime, timezone

from fastapi import APIRouter, Request

from vagas_ai.ai.config import load_ai_config
from vagas_ai.core.quota import get_quota_tracker
from vagas_ai.core.rate_limit import client_key, rate_limit
from vagas_ai.schemas.job import ParseJobMetadata, ParseJobRequest, ParseJobResponse
from vagas_ai.services.job_parser import parse_job, parse_job_with_analysis

router = APIRouter()


@router.post("/ai/parse-job", response_model=ParseJobResponse)
@rate_limit()
async def parse_job_endpoint(request: Request, payload: ParseJobRequest):
    key = client_key(request)
    tracker = get_quota_tracker()
    tracker.check_and_consume_request(key)

    if payload.include_analysis:
        parsed = await parse_job_with_analysis(payload.job_description, payload.profile)
    else:
        parsed = await parse_job(payload.job_description)
    tracker.consume_tokens(key, parsed.token_usage.total_tokens)

    return ParseJobResponse(
        data=parsed.data.as_dict(),
        analise=parsed.analysis,
        metadata=ParseJobMetadata(
            duration_ms=parsed.duration_ms,
            model=parsed.model,
            token_usage=parsed.token_usage,
            timestamp=datetime.now(timezone.utc).isoformat(),
        ),
    )


@router.get("/ai/parse-job")
async def parse_job_health():
    return {"status": "ok", "service": "job-parser", "model": load_ai_config().primary_model}
