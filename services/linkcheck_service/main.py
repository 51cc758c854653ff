import asyncio
from datetime import datetime, timezone
from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config.logging_config import get_logger, setup_logging
from services.linkcheck_service.config import settings
from services.linkcheck_service.crawler.page_audit import run_page_audit
from services.linkcheck_service.engine.models import LinkReference, ProbeConfig
from services.linkcheck_service.engine.pipeline import check_links
from services.linkcheck_service.schemas.linkcheck import LinkCheckRequest, LinkInput, LinkReportResponse, PageAuditRequest, PageAuditResponse

logger = get_logger(__name__)

app = FastAPI(title="Link Check Service", version="0.1.0")

# set on shutdown so running batches return partial reports
shutdown_event = asyncio.Event()


@app.on_event("startup")
async def _startup() -> None:
    shutdown_event.clear()
    logger.info("Link check service started")


@app.on_event("shutdown")
async def _shutdown() -> None:
    shutdown_event.set()


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "service": "linkcheck_service", "ts": datetime.now(timezone.utc).isoformat()}


@app.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post("/links/check", response_model=LinkReportResponse)
async def check_page_links(payload: LinkCheckRequest) -> dict:
    links = [
        LinkReference(raw_target=l.raw_target, anchor_text=l.anchor_text) if isinstance(l, LinkInput) else LinkReference(raw_target=l)
        for l in payload.links
    ]
    opts = payload.options
    config = ProbeConfig.from_settings(timeout_ms=opts.timeout_ms, max_redirects=opts.max_redirects, retry_fallback=opts.retry_fallback)
    report = await check_links(str(payload.base_url), links, config, opts.concurrency_limit, cancel_event=shutdown_event, block_private_targets=opts.block_private_targets)
    return report.to_dict()


@app.post("/audit/page", response_model=PageAuditResponse)
async def audit_page(payload: PageAuditRequest) -> dict:
    return await run_page_audit(str(payload.base_url), payload.options.model_dump(), cancel_event=shutdown_event)


@app.exception_handler(ValueError)
async def value_error_handler(_, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


if __name__ == "__main__":
    import uvicorn
    setup_logging(service_name="linkcheck_service")
    uvicorn.run("services.linkcheck_service.main:app", host="0.0.0.0", port=settings.port, reload=False)
