from reviewers_court import settings  # load .env
from fastapi import FastAPI, Request, Header, HTTPException, Response
from contextlib import asynccontextmanager

import httpx

from reviewers_court.courts.labels import LabelRegistry
from reviewers_court.errors import CourtError, PayloadDecodeError
from reviewers_court.github import api
from reviewers_court.github.api import GitHubAPIError
from reviewers_court.github.auth import init_signing_key
from reviewers_court.github.events import decode_payload, handle_event
from reviewers_court.logger import get_logger
from reviewers_court.security.webhook_verify import verify_signature
from reviewers_court.settings import validate_github_settings


logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start without a usable app identity and key
    validate_github_settings()
    init_signing_key()

    app.state.registry = LabelRegistry()
    logger.info("Reviewer's court agent started")

    yield


app = FastAPI(lifespan=lifespan)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/webhook")
async def github_webhook(
    request: Request,
    x_hub_signature_256: str | None = Header(None),
    x_github_event: str | None = Header(None),
):
    body = await request.body()

    if settings.GITHUB_WEBHOOK_SECRET:
        if not x_hub_signature_256:
            raise HTTPException(status_code=401, detail="Missing signature header")

        if not verify_signature(body, x_hub_signature_256, settings.GITHUB_WEBHOOK_SECRET):
            raise HTTPException(status_code=401, detail="Invalid signature")

    if not x_github_event:
        raise HTTPException(status_code=400, detail="Missing GitHub event header")

    try:
        payload = decode_payload(body)
    except PayloadDecodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    logger.info("Received GitHub event: %s", x_github_event)

    try:
        async with api.new_http_client() as http:
            await handle_event(
                x_github_event,
                payload,
                registry=request.app.state.registry,
                http=http,
            )
    except PayloadDecodeError as exc:
        logger.warning("Malformed %s event: %s", x_github_event, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except (CourtError, GitHubAPIError, httpx.HTTPError) as exc:
        logger.exception("Error handling %s event", x_github_event)
        raise HTTPException(status_code=500, detail=str(exc))

    return Response(status_code=200)


# This makes `python -m reviewers_court.main` work
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reviewers_court.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )
