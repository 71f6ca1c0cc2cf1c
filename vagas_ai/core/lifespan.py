from contextlib import asynccontextmanager
import logging

from vagas_ai.ai.config import load_ai_config
from vagas_ai.core.config.ats import load_ats_lexicons
from vagas_ai.core.quota import get_quota_tracker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    load_ats_lexicons()
    tracker = get_quota_tracker()
    cfg = load_ai_config()
    logger.info(
        "startup provider=%s models=%s quota_rpm=%s quota_tpd=%s",
        cfg.provider,
        ",".join(cfg.models),
        tracker.max_requests_per_min,
        tracker.max_tokens_per_day,
    )
    yield
    logger.info("shutdown")
