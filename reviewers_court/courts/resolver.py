"""
Decides which court a pull request belongs in after an event.

Pure: works only from the event and the known court label ids, never
from live GitHub state.
"""
import re
from typing import AbstractSet, Optional

from reviewers_court.courts.models import (
    AUTHORS_COURT,
    COURT_NAMES,
    REVIEWERS_COURT,
    CourtDecision,
    CourtEvent,
    EventKind,
)
from reviewers_court.logger import get_logger


logger = get_logger("reviewers_court.courts.resolver")

# e.g. <!-- reviewers_court --> or <!-- authors_court -->
COURT_DIRECTIVE_RE = re.compile(r"<!-- ([\w_]+) -->")


def parse_court_directive(body: Optional[str]) -> Optional[str]:
    if not body:
        return None

    match = COURT_DIRECTIVE_RE.search(body)
    if not match:
        return None

    court = match.group(1)
    if court not in COURT_NAMES:
        logger.info("Ignoring unknown court directive: %s", court)
        return None

    return court


def _resolve_unlabeled(event: CourtEvent, court_label_ids: AbstractSet[int]) -> Optional[str]:
    pr = event.pull_request

    if any(label.id in court_label_ids for label in pr.labels):
        logger.info("PR %s#%s was manually labeled- no action taken", pr.full_name, pr.number)
        return None

    # The court label itself was removed; whoever removed it handed the ball over
    if event.sender_id is not None and event.sender_id == pr.author_id:
        return REVIEWERS_COURT
    return AUTHORS_COURT


def resolve_court(
    event: CourtEvent,
    court_label_ids: AbstractSet[int],
) -> Optional[CourtDecision]:
    """
    Return the court the pull request should be in, or None for no action.
    """
    court: Optional[str] = None

    if event.kind is EventKind.OPENED:
        if event.reviewer_requested:
            court = REVIEWERS_COURT

    elif event.kind is EventKind.UNLABELED:
        court = _resolve_unlabeled(event, court_label_ids)

    elif event.kind is EventKind.REVIEW_SUBMITTED:
        # Regardless of the review state
        court = REVIEWERS_COURT

    elif event.kind is EventKind.REVIEW_COMMENT:
        court = parse_court_directive(event.comment_body)

    if court is None:
        return None

    return CourtDecision(court=court, pull_request=event.pull_request)
