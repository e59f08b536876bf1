from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


REVIEWERS_COURT = "reviewers_court"
AUTHORS_COURT = "authors_court"

COURT_NAMES = (REVIEWERS_COURT, AUTHORS_COURT)


def other_court(court: str) -> str:
    return AUTHORS_COURT if court == REVIEWERS_COURT else REVIEWERS_COURT


@dataclass(frozen=True)
class Label:
    id: int
    name: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Label":
        return cls(id=data["id"], name=data["name"])


@dataclass
class PullRequest:
    """
    The pull request as the event saw it. `labels` is a snapshot and is
    only updated locally after a successful court change.
    """
    owner: str
    repo: str
    number: int
    author_id: Optional[int]
    labels: list[Label] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class EventKind(str, Enum):
    OPENED = "opened"
    UNLABELED = "unlabeled"
    REVIEW_SUBMITTED = "review_submitted"
    REVIEW_COMMENT = "review_comment"


@dataclass(frozen=True)
class CourtEvent:
    kind: EventKind
    pull_request: PullRequest
    sender_id: Optional[int] = None
    reviewer_requested: bool = False
    comment_body: Optional[str] = None


@dataclass(frozen=True)
class CourtDecision:
    court: str
    pull_request: PullRequest
