import json
from typing import Any, Dict, Optional

import httpx

from reviewers_court.courts.applier import apply_court
from reviewers_court.courts.labels import LabelRegistry
from reviewers_court.courts.models import (
    CourtEvent,
    EventKind,
    Label,
    PullRequest,
)
from reviewers_court.courts.resolver import resolve_court
from reviewers_court.errors import PayloadDecodeError
from reviewers_court.github.auth import resolve_installation_client
from reviewers_court.logger import get_logger


logger = get_logger("reviewers_court.github.events")

REVIEWER_REQUEST_ACTIONS = ("opened", "reopened", "review_requested")
# A deleted comment can no longer carry a directive
REVIEW_COMMENT_ACTIONS = ("created", "edited")


def decode_payload(body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise PayloadDecodeError(f"Unable to decode JSON - {exc}") from exc

    if not isinstance(payload, dict):
        raise PayloadDecodeError("Unable to decode JSON - expected an object")

    return payload


def _pull_request_from_payload(payload: Dict[str, Any]) -> Optional[PullRequest]:
    pr = payload.get("pull_request") or {}
    repository = payload.get("repository") or {}

    owner = (repository.get("owner") or {}).get("login")
    repo = repository.get("name")
    number = pr.get("number")

    if not owner or not repo or number is None:
        return None

    return PullRequest(
        owner=owner,
        repo=repo,
        number=number,
        author_id=(pr.get("user") or {}).get("id"),
        labels=_labels_from_payload(pr.get("labels") or []),
    )


def _labels_from_payload(labels: list) -> list[Label]:
    try:
        return [Label.from_payload(l) for l in labels]
    except (KeyError, TypeError) as exc:
        raise PayloadDecodeError(f"Malformed pull request label - {exc!r}") from exc


def _reviewer_requested(payload: Dict[str, Any]) -> bool:
    pr = payload.get("pull_request") or {}
    return bool(
        payload.get("requested_reviewer")
        or payload.get("requested_team")
        or pr.get("requested_reviewers")
        or pr.get("requested_teams")
    )


def classify_event(event_type: str, payload: Dict[str, Any]) -> Optional[CourtEvent]:
    """
    Map a webhook delivery onto the court events we act on, or None.
    """
    action = payload.get("action")

    if event_type == "pull_request":
        if action in REVIEWER_REQUEST_ACTIONS:
            kind = EventKind.OPENED
        elif action == "unlabeled":
            kind = EventKind.UNLABELED
        else:
            return None

    elif event_type == "pull_request_review":
        # Edits and dismissals do not hand the pull request back to anyone
        if action != "submitted":
            return None
        kind = EventKind.REVIEW_SUBMITTED

    elif event_type == "pull_request_review_comment":
        if action not in REVIEW_COMMENT_ACTIONS:
            return None
        kind = EventKind.REVIEW_COMMENT

    else:
        return None

    pull_request = _pull_request_from_payload(payload)
    if pull_request is None:
        logger.warning("%s event without a pull request or repository", event_type)
        return None

    return CourtEvent(
        kind=kind,
        pull_request=pull_request,
        sender_id=(payload.get("sender") or {}).get("id"),
        reviewer_requested=_reviewer_requested(payload),
        comment_body=(payload.get("comment") or {}).get("body"),
    )


async def handle_event(
    event_type: str,
    payload: Dict[str, Any],
    registry: LabelRegistry,
    http: httpx.AsyncClient,
) -> bool:
    """
    Handle one webhook delivery end to end.

    Returns True when a court change was written. Failures propagate so
    the delivery is reported as failed.
    """
    event = classify_event(event_type, payload)
    if event is None:
        logger.info("No court action for %s/%s", event_type, payload.get("action"))
        return False

    installation_id = (payload.get("installation") or {}).get("id")
    if installation_id is None:
        logger.warning("Ignoring %s event without an installation", event_type)
        return False

    pr = event.pull_request

    client = await resolve_installation_client(installation_id, http)
    await registry.ensure_court_labels(pr.owner, pr.repo, client)

    decision = resolve_court(event, registry.court_label_ids(pr.full_name))
    if decision is None:
        logger.info("No court change for %s#%s", pr.full_name, pr.number)
        return False

    return await apply_court(decision.court, decision.pull_request, client, registry)
