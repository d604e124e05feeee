"""
GitHub code activity client.

Responsibilities:
1. Repository info (stars, forks, issues, license, visibility)
2. Commits of the last 30 days and the last commit date
3. Contributor count

Only the repository lookup is essential; commits and contributors degrade
to zero on their own failure.

NO business logic, NO scoring.
"""

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from tokenhealth.core.payloads import ActivityStatus, CodeActivity, CoinLinks
from tokenhealth.core.results import Ok, ProviderResult, logical_error
from tokenhealth.services.providers.base import ProviderClient, to_int

logger = logging.getLogger(__name__)

ACTIVITY_WINDOW_DAYS = 30
PAGE_SIZE = 100

ACTIVE_COMMIT_THRESHOLD = 10

REPO_URL_RE = re.compile(r"github\.com/([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)", re.IGNORECASE)
REPO_REF_RE = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")


def parse_repo(ref: str) -> tuple[str, str] | None:
    """
    Split a repository reference into (owner, name).

    Accepts 'owner/name' or any github.com URL pointing at a repository.

    >>> parse_repo("https://github.com/pendle-finance/pendle-core-v2-public.git")
    ('pendle-finance', 'pendle-core-v2-public')
    >>> parse_repo("https://github.com/pendle-finance") is None
    True
    """
    ref = ref.strip()
    if "github.com" in ref.lower():
        match = REPO_URL_RE.search(ref)
    else:
        match = REPO_REF_RE.match(ref)
    if not match:
        return None
    owner, name = match.group(1), match.group(2)
    if name.endswith(".git"):
        name = name[:-4]
    return owner, name


def extract_repo(links: CoinLinks) -> str | None:
    """First repository link that names an actual repository."""
    for url in links.repos_github:
        parsed = parse_repo(url)
        if parsed:
            return f"{parsed[0]}/{parsed[1]}"
    return None


def activity_status(commit_count: int) -> ActivityStatus:
    if commit_count > ACTIVE_COMMIT_THRESHOLD:
        return ActivityStatus.ACTIVE
    if commit_count > 0:
        return ActivityStatus.STALE
    return ActivityStatus.INACTIVE


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_last_commit(commits: list[dict[str, Any]]) -> datetime | None:
    if not commits:
        return None
    commit = commits[0].get("commit") or {}
    return _parse_date((commit.get("committer") or commit.get("author") or {}).get("date"))


class CodeActivityClient(ProviderClient):
    """GitHub REST v3 client. The token is optional (raises the rate limit)."""

    name = "code_activity"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    def _check_payload(self, data: Any) -> str | None:
        if isinstance(data, dict) and data.get("message") and "id" not in data:
            return f"provider error: {data['message']}"
        return None

    async def fetch(self, ref: str) -> ProviderResult[CodeActivity]:
        """
        Fetch activity of a repository.

        Args:
            ref: 'owner/name' or repository URL

        Returns:
            Ok(CodeActivity) or Err
        """
        parsed = parse_repo(ref)
        if parsed is None:
            return logical_error(self.name, f"not a repository reference: {ref!r}")

        owner, name = parsed
        repo_path = f"repos/{owner}/{name}"
        since = (datetime.now(timezone.utc) - timedelta(days=ACTIVITY_WINDOW_DAYS)).strftime("%Y-%m-%dT%H:%M:%SZ")

        logger.debug(f"GitHub repo: {owner}/{name}")
        repo_res, commits_res, contributors_res = await asyncio.gather(
            self._get_json(repo_path),
            self._get_json(f"{repo_path}/commits", params={"since": since, "per_page": PAGE_SIZE}),
            self._get_json(f"{repo_path}/contributors", params={"per_page": PAGE_SIZE, "anon": "1"}),
        )

        if not isinstance(repo_res, Ok):
            return repo_res

        commits = self._list_or_empty(commits_res, "commits")
        contributors = self._list_or_empty(contributors_res, "contributors")

        def build(repo: dict[str, Any]) -> CodeActivity:
            license_info = repo.get("license") or {}
            return CodeActivity(
                repo=repo.get("full_name") or f"{owner}/{name}",
                url=repo.get("html_url") or "",
                stars=to_int(repo.get("stargazers_count")) or 0,
                forks=to_int(repo.get("forks_count")) or 0,
                open_issues=to_int(repo.get("open_issues_count")) or 0,
                commit_count=len(commits),
                contributor_count=len(contributors),
                last_commit_at=parse_last_commit(commits) or _parse_date(repo.get("pushed_at")),
                is_open_source=not repo.get("private", False),
                status=activity_status(len(commits)),
                language=repo.get("language"),
                license=license_info.get("spdx_id") or license_info.get("name"),
            )

        return self._parse(repo_res, build)

    def _list_or_empty(self, result: ProviderResult[Any], what: str) -> list[Any]:
        if isinstance(result, Ok) and isinstance(result.payload, list):
            return result.payload
        if not isinstance(result, Ok):
            logger.debug(f"GitHub {what} unavailable: {result.detail}")
        return []
