"""Tests for moving a pull request between courts."""

import asyncio

import pytest

from reviewers_court.courts.applier import apply_court, rewrite_labels
from reviewers_court.courts.labels import LabelRegistry
from reviewers_court.courts.models import AUTHORS_COURT, REVIEWERS_COURT, Label, PullRequest
from reviewers_court.errors import ApplyError
from reviewers_court.github.api import GitHubClient

REPO = "octo/widgets"
NUMBER = 5
REVIEWERS = Label(id=1, name=REVIEWERS_COURT)
AUTHORS = Label(id=2, name=AUTHORS_COURT)
BUG = Label(id=3, name="bug")
DOCS = Label(id=4, name="docs")
COURT_IDS = frozenset({1, 2})


class StaticToken:
    async def token(self):
        return "ghs_test"


@pytest.fixture
def registry(github):
    github.add_repo_label(REPO, REVIEWERS_COURT, label_id=REVIEWERS.id)
    github.add_repo_label(REPO, AUTHORS_COURT, label_id=AUTHORS.id)
    github.add_repo_label(REPO, "bug", label_id=BUG.id)
    github.add_repo_label(REPO, "docs", label_id=DOCS.id)
    registry = LabelRegistry()

    async def warm():
        async with github.client() as http:
            await registry.ensure_court_labels("octo", "widgets", GitHubClient(http, StaticToken()))

    asyncio.run(warm())
    github.calls.clear()
    return registry


def _pr(github, *labels):
    github.issue_labels[(REPO, NUMBER)] = [l.name for l in labels]
    return PullRequest(owner="octo", repo="widgets", number=NUMBER, author_id=7, labels=list(labels))


def _apply(github, registry, court, pr):
    async def scenario():
        async with github.client() as http:
            return await apply_court(court, pr, GitHubClient(http, StaticToken()), registry)

    return asyncio.run(scenario())


class TestRewriteLabels:
    def test_substitutes_court_label_in_place(self):
        assert rewrite_labels([BUG, AUTHORS, DOCS], REVIEWERS, COURT_IDS) == [BUG, REVIEWERS, DOCS]

    def test_appends_when_no_court_label(self):
        assert rewrite_labels([BUG, DOCS], REVIEWERS, COURT_IDS) == [BUG, DOCS, REVIEWERS]

    def test_already_satisfied_returns_none(self):
        assert rewrite_labels([BUG, REVIEWERS], REVIEWERS, COURT_IDS) is None


class TestApplyCourt:
    def test_swaps_court_label(self, github, registry):
        pr = _pr(github, BUG, AUTHORS, DOCS)

        assert _apply(github, registry, REVIEWERS_COURT, pr) is True

        assert github.issue_labels[(REPO, NUMBER)] == ["bug", "docs", REVIEWERS_COURT]
        assert pr.labels == [BUG, REVIEWERS, DOCS]
        assert github.mutations() == [
            ("DELETE", f"/repos/{REPO}/issues/{NUMBER}/labels/{AUTHORS_COURT}"),
            ("POST", f"/repos/{REPO}/issues/{NUMBER}/labels"),
        ]

    def test_already_in_court_makes_no_mutation(self, github, registry):
        pr = _pr(github, BUG, REVIEWERS)

        assert _apply(github, registry, REVIEWERS_COURT, pr) is False

        assert github.calls == []

    def test_second_apply_is_a_no_op(self, github, registry):
        pr = _pr(github, BUG)
        _apply(github, registry, AUTHORS_COURT, pr)
        github.calls.clear()

        assert _apply(github, registry, AUTHORS_COURT, pr) is False

        assert github.mutations() == []

    def test_missing_other_label_is_tolerated(self, github, registry):
        pr = _pr(github, BUG)

        _apply(github, registry, AUTHORS_COURT, pr)

        assert github.issue_labels[(REPO, NUMBER)] == ["bug", AUTHORS_COURT]
        assert pr.labels == [BUG, AUTHORS]

    def test_both_court_labels_drops_the_other_only(self, github, registry):
        pr = _pr(github, REVIEWERS, BUG, AUTHORS)

        _apply(github, registry, AUTHORS_COURT, pr)

        assert github.mutations() == [
            ("DELETE", f"/repos/{REPO}/issues/{NUMBER}/labels/{REVIEWERS_COURT}"),
        ]
        assert pr.labels == [BUG, AUTHORS]

    def test_add_failure_is_apply_error(self, github, registry):
        github.fail[("POST", f"/repos/{REPO}/issues/{NUMBER}/labels")] = 500
        pr = _pr(github, AUTHORS)

        with pytest.raises(ApplyError):
            _apply(github, registry, REVIEWERS_COURT, pr)

        assert pr.labels == [AUTHORS]

    def test_remove_failure_other_than_not_found_is_apply_error(self, github, registry):
        github.fail[("DELETE", f"/repos/{REPO}/issues/{NUMBER}/labels/{AUTHORS_COURT}")] = 403
        pr = _pr(github, AUTHORS)

        with pytest.raises(ApplyError):
            _apply(github, registry, REVIEWERS_COURT, pr)

        assert ("POST", f"/repos/{REPO}/issues/{NUMBER}/labels") not in github.calls
