"""GitHub REST hosting client."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import requests

from prflow.domain.errors import ExternalToolError, PreconditionError
from prflow.domain.pull_request import PullRequest, PullRequestDraft, PullRequestRecordError
from prflow.ports.hosting import HostingClient

_REMOTE_RE = re.compile(r"(?:[:/])(?P<owner>[^/:]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")

_READY_MUTATION = """
mutation($id: ID!) { markPullRequestReadyForReview(input: {pullRequestId: $id}) { clientMutationId } }
"""
_DRAFT_MUTATION = """
mutation($id: ID!) { convertPullRequestToDraft(input: {pullRequestId: $id}) { clientMutationId } }
"""


def parse_remote(url: str) -> tuple[str, str]:
    """Extract ``(owner, repo)`` from an ssh or https remote URL."""

    match = _REMOTE_RE.search(url.strip())
    if not match:
        raise PreconditionError(f"cannot determine GitHub repository from remote {url!r}")
    return match.group("owner"), match.group("repo")


@dataclass
class GitHubAuthConfig:
    token_env: str

    def resolve(self) -> str:
        token = os.environ.get(self.token_env)
        if not token:
            raise PreconditionError(
                f"GitHub token missing in environment variable '{self.token_env}'",
                hint=f"export {self.token_env}=<token>",
            )
        return token


class GitHubClient(HostingClient):
    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token_env: str = "GITHUB_TOKEN",
        api_url: str = "https://api.github.com",
        session: requests.Session | None = None,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._api_url = api_url.rstrip("/")
        self._auth_config = GitHubAuthConfig(token_env=token_env)
        self._session = session or requests.Session()
        self._login: str | None = None

    @property
    def repo_url(self) -> str:
        return f"{self._api_url}/repos/{self._owner}/{self._repo}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._auth_config.resolve()}",
        }

    def _request(self, method: str, url: str, *, params: Dict[str, Any] | None = None, json: Any = None) -> requests.Response:
        try:
            response = self._session.request(method, url, params=params, json=json, headers=self._headers(), timeout=30)
        except requests.RequestException as exc:
            raise ExternalToolError("GitHub API", str(exc)) from exc
        if response.status_code >= 400:
            raise ExternalToolError("GitHub API", f"{response.status_code} {_error_message(response)}")
        return response

    def _record(self, payload: Any) -> PullRequest:
        try:
            return PullRequest.from_github(payload)
        except PullRequestRecordError as exc:
            raise ExternalToolError("GitHub API", f"unexpected payload: {exc}") from exc

    def current_user(self) -> str:
        if self._login is None:
            payload = _payload(self._request("GET", f"{self._api_url}/user"))
            self._login = str(payload.get("login") or "") if isinstance(payload, dict) else ""
        return self._login

    def create_pull_request(self, draft: PullRequestDraft) -> PullRequest:
        body = {
            "title": draft.title,
            "head": draft.head,
            "base": draft.base,
            "body": draft.body,
            "draft": draft.draft,
        }
        created = self._record(_payload(self._request("POST", f"{self.repo_url}/pulls", json=body)))
        if draft.reviewers:
            self.request_reviewers(created.number, draft.reviewers)
        return created

    def list_pull_requests(self, *, state: str = "open", author: str | None = None) -> list[PullRequest]:
        return [pr for pr in self._paginate({"state": state, "per_page": 100}) if author is None or pr.author == author]

    def find_for_branch(self, head: str) -> PullRequest | None:
        matches = self._paginate({"state": "open", "head": f"{self._owner}:{head}"})
        return matches[0] if matches else None

    def _paginate(self, params: Dict[str, Any]) -> List[PullRequest]:
        url: str | None = f"{self.repo_url}/pulls"
        records: List[PullRequest] = []
        query: Dict[str, Any] | None = params
        while url:
            response = self._request("GET", url, params=query)
            query = None  # subsequent pages use link headers only
            page_items = _payload(response)
            if isinstance(page_items, list):
                records.extend(self._record(item) for item in page_items)
            url = _next_link(response.headers.get("Link"))
        return records

    def get_pull_request(self, number: int) -> PullRequest:
        return self._record(_payload(self._request("GET", f"{self.repo_url}/pulls/{number}")))

    def edit_pull_request(
        self,
        number: int,
        *,
        title: str | None = None,
        body: str | None = None,
        base: str | None = None,
        draft: bool | None = None,
    ) -> PullRequest:
        fields = {key: value for key, value in (("title", title), ("body", body), ("base", base)) if value is not None}
        if fields:
            current = self._record(_payload(self._request("PATCH", f"{self.repo_url}/pulls/{number}", json=fields)))
        else:
            current = self.get_pull_request(number)
        if draft is not None and draft != current.draft:
            # REST cannot toggle draft state; GraphQL needs the node id.
            mutation = _DRAFT_MUTATION if draft else _READY_MUTATION
            payload = _payload(
                self._request(
                    "POST",
                    f"{self._api_url}/graphql",
                    json={"query": mutation, "variables": {"id": current.raw.get("node_id")}},
                )
            )
            if isinstance(payload, dict) and payload.get("errors"):
                message = "; ".join(str(err.get("message", err)) for err in payload["errors"])
                raise ExternalToolError("GitHub API", message)
            current = self.get_pull_request(number)
        return current

    def request_reviewers(self, number: int, reviewers: Sequence[str]) -> None:
        self._request(
            "POST",
            f"{self.repo_url}/pulls/{number}/requested_reviewers",
            json={"reviewers": list(reviewers)},
        )


def _payload(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        snippet = response.text[:200].strip()
        raise ExternalToolError("GitHub API", f"invalid JSON in response: {snippet or exc}") from exc


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text


def _next_link(link_header: str | None) -> str | None:
    if not link_header:
        return None
    parts = [part.strip() for part in link_header.split(",")]
    for part in parts:
        if "rel=\"next\"" in part:
            url_part, _ = part.split(";", 1)
            return url_part.strip(" <>")
    return None
