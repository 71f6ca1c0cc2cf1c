from fastapi import APIRouter, Request

from vagas_ai.core.quota import get_quota_tracker
from vagas_ai.core.rate_limit import client_key, rate_limit
from vagas_ai.schemas.resume import GenerateResumeRequest, TailoredResume
from vagas_ai.services.resume_generator import generate_tailored_resume

router = APIRouter()


@router.post("/ai/generate-resume", response_model=TailoredResume)
@rate_limit()
async def generate_resume_endpoint(request: Request, payload: GenerateResumeRequest):
    key = client_key(request)
    tracker = get_quota_tracker()
    tracker.check_and_consume_request(key)

    result = await generate_tailored_resume(
        payload.job,
        payload.language,
        skill_bank=payload.skill_bank,
        profile=payload.profile,
    )
    tracker.consume_tokens(key, result.token_usage.total_tokens)
    return result
