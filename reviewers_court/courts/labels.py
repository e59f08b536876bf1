import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from reviewers_court import settings
from reviewers_court.courts.models import AUTHORS_COURT, REVIEWERS_COURT, Label
from reviewers_court.errors import LabelRegistryError
from reviewers_court.github.api import (
    GitHubAPIError,
    GitHubClient,
    GitHubConflict,
    GitHubNotFound,
)
from reviewers_court.logger import get_logger


logger = get_logger("reviewers_court.courts.labels")


@dataclass(frozen=True)
class LabelSpec:
    name: str
    color: str
    description: str


COURT_LABEL_SPECS: tuple[LabelSpec, ...] = (
    LabelSpec(
        name=REVIEWERS_COURT,
        color=settings.REVIEWERS_COURT_COLOR,
        description=settings.REVIEWERS_COURT_DESCRIPTION,
    ),
    LabelSpec(
        name=AUTHORS_COURT,
        color=settings.AUTHORS_COURT_COLOR,
        description=settings.AUTHORS_COURT_DESCRIPTION,
    ),
)


class LabelRegistry:
    """
    Read-through cache of the court labels, keyed by repository.

    Entries are only stored once every court label of a repository is known,
    so a failed warm-up leaves nothing half-populated behind.
    """

    def __init__(self, specs: tuple[LabelSpec, ...] = COURT_LABEL_SPECS):
        self._specs = specs
        self._labels: dict[str, dict[str, Label]] = {}
        self._lock = asyncio.Lock()

    def is_warm(self, full_name: str) -> bool:
        cached = self._labels.get(full_name)
        return cached is not None and all(s.name in cached for s in self._specs)

    def label(self, full_name: str, name: str) -> Optional[Label]:
        return self._labels.get(full_name, {}).get(name)

    def court_label_ids(self, full_name: str) -> frozenset[int]:
        return frozenset(l.id for l in self._labels.get(full_name, {}).values())

    def invalidate(self, full_name: Optional[str] = None) -> None:
        if full_name is None:
            self._labels.clear()
        else:
            self._labels.pop(full_name, None)

    async def ensure_court_labels(self, owner: str, repo: str, client: GitHubClient) -> None:
        full_name = f"{owner}/{repo}"

        if self.is_warm(full_name):
            return

        async with self._lock:
            # Another event may have warmed it while we waited
            if self.is_warm(full_name):
                return

            resolved: dict[str, Label] = {}
            for spec in self._specs:
                resolved[spec.name] = await self._fetch_or_create(owner, repo, spec, client)

            self._labels[full_name] = resolved
            logger.info("Court labels ready for %s", full_name)

    async def _fetch_or_create(
        self,
        owner: str,
        repo: str,
        spec: LabelSpec,
        client: GitHubClient,
    ) -> Label:
        try:
            try:
                return Label.from_payload(await client.get_label(owner, repo, spec.name))
            except GitHubNotFound:
                logger.info("Creating label %s in %s/%s", spec.name, owner, repo)

            try:
                data = await client.create_label(
                    owner,
                    repo,
                    spec.name,
                    color=spec.color,
                    description=spec.description,
                )
            except GitHubConflict:
                # Created concurrently by someone else
                logger.warning("Label %s already exists in %s/%s", spec.name, owner, repo)
                data = await client.get_label(owner, repo, spec.name)

            return Label.from_payload(data)

        except (GitHubAPIError, httpx.HTTPError) as exc:
            raise LabelRegistryError(
                f"Unable to load label {spec.name} for {owner}/{repo}: {exc}"
            ) from exc
        except (KeyError, TypeError) as exc:
            raise LabelRegistryError(
                f"GitHub returned a malformed label {spec.name} for {owner}/{repo}: {exc!r}"
            ) from exc
