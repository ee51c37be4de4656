"""
GitHub access (issues & pull requests of curriculum repos).

Only fetches raw JSON; all interpretation happens in issues.py / prs.py.
One repo per module, all under one organisation.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from traineetracker.config import GITHUB_API_URL, GITHUB_FETCH_WORKERS, GITHUB_PAGE_SIZE, HTTP_TIMEOUT_SECONDS
from traineetracker.errors import FatalError
from traineetracker.model import Course, Pr
from traineetracker.prs import pr_from_github
from traineetracker.schedule import CourseSchedule, build_course

logger = logging.getLogger(__name__)


class GithubClient:
    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            }
        )

    def _get_all(self, path: str, params: Dict[str, Any], what: str) -> List[Dict[str, Any]]:
        """
        GET every page of a list endpoint, following the "next" links.
        """
        url: Optional[str] = f"{self.api_url}{path}"
        query: Optional[Dict[str, Any]] = {**params, "per_page": GITHUB_PAGE_SIZE}
        items: List[Dict[str, Any]] = []
        while url:
            try:
                resp = self.session.get(url, params=query, timeout=self.timeout)
                resp.raise_for_status()
            except requests.RequestException as err:
                raise FatalError(f"Failed to fetch {what}: {err}") from err
            page = resp.json()
            if not isinstance(page, list):
                raise FatalError(f"Failed to fetch {what}: expected a list, got {type(page).__name__}")
            items.extend(page)
            # The next link already carries the query string.
            url = resp.links.get("next", {}).get("url")
            query = None
        logger.debug("Fetched %d %s", len(items), what)
        return items

    def list_issues(self, org: str, repo: str) -> List[Dict[str, Any]]:
        return self._get_all(f"/repos/{org}/{repo}/issues", {}, f"issues for {org}/{repo}")

    def list_pulls(self, org: str, repo: str, include_closed: bool = True) -> List[Dict[str, Any]]:
        params = {"state": "all" if include_closed else "open"}
        return self._get_all(f"/repos/{org}/{repo}/pulls", params, f"PRs for {org}/{repo}")


def fetch_module_prs(client: GithubClient, org: str, module_name: str, include_closed: bool = True) -> List[Pr]:
    """
    A module's PRs in GitHub's list order (the order matching relies on).
    """
    prs: List[Pr] = []
    for payload in client.list_pulls(org, module_name, include_closed=include_closed):
        pr = pr_from_github(payload, module_name)
        if pr is not None:
            prs.append(pr)
    return prs


def fetch_course(client: GithubClient, org: str, name: str, schedule: CourseSchedule) -> Course:
    """
    Fetch every module's issues concurrently and build the Course.

    Results are joined in schedule order, whatever order the fetches finish in.
    """
    module_names = schedule.module_names()
    with ThreadPoolExecutor(max_workers=GITHUB_FETCH_WORKERS) as executor:
        issue_lists = list(executor.map(lambda module: client.list_issues(org, module), module_names))
    return build_course(name, schedule, dict(zip(module_names, issue_lists)))
