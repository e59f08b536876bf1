from typing import AbstractSet, Optional

import httpx

from reviewers_court.courts.labels import LabelRegistry
from reviewers_court.courts.models import Label, PullRequest, other_court
from reviewers_court.errors import ApplyError, LabelRegistryError
from reviewers_court.github.api import GitHubAPIError, GitHubClient, GitHubNotFound
from reviewers_court.logger import get_logger


logger = get_logger("reviewers_court.courts.applier")


def rewrite_labels(
    labels: list[Label],
    target: Label,
    court_label_ids: AbstractSet[int],
) -> Optional[list[Label]]:
    """
    Full label list with the target court in place of any court label.

    Returns None when the target court is already present. Non-court labels
    keep their order; the target is appended when no court label was there.
    """
    if any(label.id == target.id for label in labels):
        return None

    result: list[Label] = []
    placed = False

    for label in labels:
        if label.id not in court_label_ids:
            result.append(label)
        elif not placed:
            result.append(target)
            placed = True

    if not placed:
        result.append(target)

    return result


async def apply_court(
    court: str,
    pull_request: PullRequest,
    client: GitHubClient,
    registry: LabelRegistry,
) -> bool:
    """
    Move the pull request into `court`.

    Removes the other court label (a 404 means it was already gone), then
    adds the target. Returns False when the snapshot already satisfied the
    court and nothing was sent to GitHub.
    """
    full_name = pull_request.full_name
    target = registry.label(full_name, court)
    other = registry.label(full_name, other_court(court))

    if target is None or other is None:
        raise LabelRegistryError(f"Court labels are not loaded for {full_name}")

    court_ids = registry.court_label_ids(full_name)
    has_target = any(l.id == target.id for l in pull_request.labels)
    has_other = any(l.id == other.id for l in pull_request.labels)

    if has_target and not has_other:
        logger.info("PR %s#%s already has target label %s", full_name, pull_request.number, court)
        return False

    logger.info("Changing %s#%s's court to %s", full_name, pull_request.number, court)

    try:
        try:
            await client.remove_label(
                pull_request.owner,
                pull_request.repo,
                pull_request.number,
                other.name,
            )
        except GitHubNotFound:
            logger.info("Label %s was not on %s#%s", other.name, full_name, pull_request.number)

        if not has_target:
            await client.add_labels(
                pull_request.owner,
                pull_request.repo,
                pull_request.number,
                [target.name],
            )
    except (GitHubAPIError, httpx.HTTPError) as exc:
        raise ApplyError(
            f"Unable to move {full_name}#{pull_request.number} to {court}: {exc}"
        ) from exc

    if has_target:
        pull_request.labels = [l for l in pull_request.labels if l.id != other.id]
    else:
        pull_request.labels = rewrite_labels(pull_request.labels, target, court_ids)

    return True
