"""
REST client for the remote object repository.

Wraps the remote's git data API to expose one method per primitive:
contents, blobs, refs, commits and trees. Each method performs a single
logical request and returns a tagged ``Result`` so the sync workflows can
chain stages without exception handling.

Every request carries a bearer credential and an API version header.
File contents travel as base64 and are decoded as strict UTF-8.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any
from urllib.parse import quote

import httpx

from kbsync.core.remote.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SyncError,
    TransportError,
)
from kbsync.core.remote.http import RetryConfig, send_with_retry
from kbsync.core.remote.models import Identity, RemoteFile, RepositoryInfo, TreeEntry
from kbsync.core.remote.result import Err, Ok, Result

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_WEB_URL = "https://github.com"
API_VERSION = "2022-11-28"
BLOB_MODE = "100644"


def classify_response(response: httpx.Response, *, what: str = "resource") -> SyncError:
    """
    Map a non-success response onto the error taxonomy.

    Args:
        response: The failed HTTP response
        what: Name of the object requested, used for NotFoundError

    Returns:
        The matching SyncError subclass instance
    """
    status = response.status_code
    detail = _error_detail(response)

    if status == 401:
        return AuthError(f"Credential rejected: {detail}", status_code=status)
    if status == 403:
        # Exhausted rate limits are reported as 403 but are transient
        if response.headers.get("x-ratelimit-remaining") == "0":
            return TransportError(f"Rate limit exceeded: {detail}", status_code=status)
        return PermissionDeniedError(f"Access denied: {detail}", status_code=status)
    if status == 404:
        return NotFoundError(what, f"Remote {what} not found: {detail}", status_code=status)
    # 409 is not always a ref race: git-data reads on an empty repository
    # answer 409 too. Ref writes turn it into ConflictError themselves.
    return TransportError(f"HTTP {status}: {detail}", status_code=status)


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


def decode_content(encoded: str) -> str:
    """
    Decode base64 file content into text.

    The remote wraps base64 at 60 columns; embedded newlines are ignored.

    Raises:
        ValueError: If the payload is not base64 or not valid UTF-8
    """
    try:
        raw = base64.b64decode(encoded.replace("\n", ""), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 content: {e}") from e
    return raw.decode("utf-8")


def encode_content(content: str) -> str:
    """Encode text as base64 of its UTF-8 bytes."""
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


class RemoteObjectClient:
    """
    Client for one repository on the remote object store.

    Stateless apart from the connection pool: no method touches local
    storage. Implements the ``RemoteObjects`` protocol.

    Example:
        >>> with RemoteObjectClient("ghp_xxx", "user", "notes") as client:
        ...     head = client.get_branch_head("main")
        ...     if head.ok:
        ...         print(head.value)
    """

    def __init__(
        self,
        credential: str,
        owner: str,
        repo: str,
        *,
        api_url: str = DEFAULT_API_URL,
        web_url: str = DEFAULT_WEB_URL,
        timeout: float = 30.0,
        retry: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            credential: Bearer token
            owner: Repository owner
            repo: Repository name
            api_url: Base URL of the REST API
            web_url: Base URL used to build commit links
            timeout: Per-request timeout in seconds
            retry: Retry configuration for transient failures
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.owner = owner
        self.repo = repo
        self.web_url = web_url.rstrip("/")
        self.retry = retry or RetryConfig()
        self._http = httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {credential}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
        )

    def __enter__(self) -> RemoteObjectClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._http.close()

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def commit_url(self, commit_hash: str) -> str:
        """Web link to a commit."""
        return f"{self.web_url}/{self.owner}/{self.repo}/commit/{commit_hash}"

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        what: str = "resource",
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry: bool = True,
    ) -> Result[httpx.Response]:
        """
        Send one request and classify the outcome.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            what: Object name for NotFoundError messages
            params: Query parameters
            json: JSON body
            retry: Whether transient failures may be retried

        Returns:
            Ok(response) for 2xx, otherwise Err with a classified error
        """
        request = self._http.build_request(method, path, params=params, json=json)
        logger.debug("%s %s", method, path)

        try:
            if retry:
                response = send_with_retry(self._http, request, self.retry)
            else:
                response = self._http.send(request)
        except httpx.TimeoutException as e:
            return Err(TransportError(f"Request timed out: {method} {path}", cause=str(e)))
        except httpx.HTTPError as e:
            return Err(TransportError(f"Network error: {e}", cause=str(e)))

        if response.is_success:
            return Ok(response)

        logger.debug("%s %s failed with HTTP %d", method, path, response.status_code)
        return Err(classify_response(response, what=what))

    @staticmethod
    def _payload(response: httpx.Response) -> Result[Any]:
        try:
            return Ok(response.json())
        except ValueError:
            return Err(
                TransportError("Malformed JSON in response", status_code=response.status_code)
            )

    def _get_json(
        self, path: str, *, what: str, params: dict[str, Any] | None = None
    ) -> Result[Any]:
        return self._request("GET", path, what=what, params=params).then(self._payload)

    def _post_json(
        self, path: str, body: dict[str, Any], *, what: str, retry: bool = True
    ) -> Result[Any]:
        return self._request("POST", path, what=what, json=body, retry=retry).then(self._payload)

    @staticmethod
    def _as_list(data: Any) -> Result[list[Any]]:
        if not isinstance(data, list):
            return Err(TransportError("Expected a JSON list in response"))
        return Ok(data)

    @staticmethod
    def _field(data: Any, *keys: str) -> Result[str]:
        """Dig a string out of nested JSON, failing as a transport error."""
        current = data
        for key in keys:
            if not isinstance(current, dict) or key not in current:
                return Err(TransportError(f"Response missing field: {'.'.join(keys)}"))
            current = current[key]
        if not isinstance(current, str):
            return Err(TransportError(f"Unexpected value for field: {'.'.join(keys)}"))
        return Ok(current)

    @staticmethod
    def _repository(data: Any) -> Result[RepositoryInfo]:
        try:
            return Ok(RepositoryInfo.from_api(data))
        except ValueError as e:
            return Err(TransportError(f"Unexpected repository payload: {e}"))

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------

    def get_file_content(self, path: str, ref: str) -> Result[RemoteFile]:
        """
        Read a file at a ref.

        Args:
            path: Repository-relative file path
            ref: Branch name or commit hash

        Returns:
            Ok(RemoteFile) or Err(NotFoundError) if the path does not exist
        """
        result = self._get_json(
            f"{self.repo_path}/contents/{quote(path)}", what="path", params={"ref": ref}
        )
        if not result.ok:
            return result

        data = result.value
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            return Err(NotFoundError("path", f"Not a file: {path}"))
        if data.get("encoding") != "base64":
            return Err(TransportError(f"Content not inline for {path} (file too large?)"))

        encoded = self._field(data, "content")
        if not encoded.ok:
            return encoded
        try:
            content = decode_content(encoded.value)
        except (ValueError, UnicodeDecodeError) as e:
            return Err(TransportError(f"Could not decode {path}: {e}"))

        return self._field(data, "sha").map(
            lambda sha: RemoteFile(path=path, hash=sha, content=content)
        )

    # ------------------------------------------------------------------
    # Git objects
    # ------------------------------------------------------------------

    def create_blob(self, content: str) -> Result[str]:
        """Store content as a blob. Safe to retry: blobs are content-addressed."""
        body = {"content": encode_content(content), "encoding": "base64"}
        return self._post_json(f"{self.repo_path}/git/blobs", body, what="repository").then(
            lambda data: self._field(data, "sha")
        )

    def get_branch_head(self, branch: str) -> Result[str]:
        """Return the commit hash the branch points at."""
        return (
            self._get_json(f"{self.repo_path}/git/ref/heads/{quote(branch)}", what="branch")
            .map_error(
                lambda e: NotFoundError("branch", f"Branch '{branch}' not found")
                if isinstance(e, NotFoundError)
                else e
            )
            .then(lambda data: self._field(data, "object", "sha"))
        )

    def get_commit_tree(self, commit_hash: str) -> Result[str]:
        """Return the tree hash of a commit."""
        return self._get_json(f"{self.repo_path}/git/commits/{commit_hash}", what="commit").then(
            lambda data: self._field(data, "tree", "sha")
        )

    def list_tree_entries(self, tree_hash: str, prefix: str = "") -> Result[list[TreeEntry]]:
        """
        List blobs in a tree recursively.

        Args:
            tree_hash: Tree to list
            prefix: Only include blobs below this directory; it is stripped
                from the returned paths

        Returns:
            Ok(list of TreeEntry) in the order the remote returns them
        """
        result = self._get_json(
            f"{self.repo_path}/git/trees/{tree_hash}", what="tree", params={"recursive": "1"}
        )
        if not result.ok:
            return result

        data = result.value
        if not isinstance(data, dict) or not isinstance(data.get("tree"), list):
            return Err(TransportError("Response missing field: tree"))
        if data.get("truncated"):
            logger.warning("Tree listing for %s was truncated by the remote", tree_hash[:8])

        directory = prefix.strip("/")
        lead = f"{directory}/" if directory else ""
        entries = []
        for item in data["tree"]:
            if not isinstance(item, dict):
                return Err(TransportError("Unexpected tree entry in response"))
            if item.get("type") != "blob":
                continue
            path = self._field(item, "path")
            if not path.ok:
                return path
            blob_hash = self._field(item, "sha")
            if not blob_hash.ok:
                return blob_hash
            if path.value.startswith(lead):
                entries.append(TreeEntry(path=path.value[len(lead):], blob_hash=blob_hash.value))
        return Ok(entries)

    def create_tree(self, base_tree_hash: str | None, entries: dict[str, str]) -> Result[str]:
        """
        Create a tree.

        Only the given paths are specified; every other path is inherited
        from the base tree by the remote.

        Args:
            base_tree_hash: Tree to start from, or None for a fresh tree
            entries: ``{path: blob_hash}`` to add or replace
        """
        body: dict[str, Any] = {
            "tree": [
                {"path": path, "mode": BLOB_MODE, "type": "blob", "sha": blob_hash}
                for path, blob_hash in entries.items()
            ]
        }
        if base_tree_hash:
            body["base_tree"] = base_tree_hash
        return self._post_json(f"{self.repo_path}/git/trees", body, what="tree").then(
            lambda data: self._field(data, "sha")
        )

    def create_commit(self, message: str, tree_hash: str, parent_hash: str | None) -> Result[str]:
        """Create a commit referencing ``tree_hash`` with a single parent."""
        body = {
            "message": message,
            "tree": tree_hash,
            "parents": [parent_hash] if parent_hash else [],
        }
        return self._post_json(
            f"{self.repo_path}/git/commits", body, what="commit", retry=False
        ).then(lambda data: self._field(data, "sha"))

    def update_branch_ref(self, branch: str, commit_hash: str) -> Result[None]:
        """
        Fast-forward a branch to a new commit.

        Never forced and never retried. The remote rejects the update if
        the new commit does not descend from the current head, which is
        reported as ConflictError.
        """
        result = self._request(
            "PATCH",
            f"{self.repo_path}/git/refs/heads/{quote(branch)}",
            what="branch",
            json={"sha": commit_hash, "force": False},
            retry=False,
        )
        if result.ok:
            return Ok(None)

        error = result.error
        if isinstance(error, TransportError) and error.status_code in (409, 422):
            return Err(
                ConflictError(
                    f"Branch '{branch}' moved since it was read; pull and retry",
                    branch=branch,
                )
            )
        return result

    def create_branch_ref(self, branch: str, commit_hash: str) -> Result[None]:
        """Create ``refs/heads/<branch>`` pointing at a commit."""
        result = self._request(
            "POST",
            f"{self.repo_path}/git/refs",
            what="repository",
            json={"ref": f"refs/heads/{branch}", "sha": commit_hash},
            retry=False,
        )
        if result.ok:
            return Ok(None)
        if result.error.context.get("status_code") == 422:
            return Err(ConflictError(f"Branch '{branch}' already exists", branch=branch))
        return result

    # ------------------------------------------------------------------
    # Identity and repository
    # ------------------------------------------------------------------

    def validate_credential(self) -> Result[Identity]:
        """
        Look up the identity behind the credential.

        Any rejection here means the credential itself is bad, so 401 and
        403 both become AuthError.
        """
        result = self._get_json("/user", what="user")
        if not result.ok:
            if isinstance(result.error, (AuthError, PermissionDeniedError)):
                return Err(AuthError("Invalid or expired credential"))
            return result
        data = result.value
        return self._field(data, "login").map(
            lambda login: Identity(login=login, name=data.get("name"))
        )

    def check_write_permission(self, repo_id: str) -> Result[RepositoryInfo]:
        """
        Confirm the credential may push to a repository.

        Args:
            repo_id: ``repo`` (same owner) or ``owner/repo``
        """
        full_name = repo_id if "/" in repo_id else f"{self.owner}/{repo_id}"
        result = self._get_json(f"/repos/{full_name}", what="repository")
        if not result.ok:
            if isinstance(result.error, (PermissionDeniedError, NotFoundError)):
                return Err(
                    PermissionDeniedError(
                        f"Repository '{full_name}' not found or not accessible "
                        "with this credential",
                        repo=full_name,
                    )
                )
            return result

        info = self._repository(result.value)
        if info.ok and not info.value.can_push:
            return Err(
                PermissionDeniedError(f"No write access to '{full_name}'", repo=full_name)
            )
        return info

    def get_repository(self) -> Result[RepositoryInfo]:
        """Read metadata for the configured repository."""
        return self._get_json(self.repo_path, what="repository").then(self._repository)

    def list_branches(self) -> Result[list[str]]:
        """List branch names (first page of 100)."""
        result = self._get_json(
            f"{self.repo_path}/branches", what="repository", params={"per_page": 100}
        ).then(self._as_list)
        if not result.ok:
            return result

        names = []
        for item in result.value:
            name = self._field(item, "name")
            if not name.ok:
                return name
            names.append(name.value)
        return Ok(names)

    def list_repositories(self) -> Result[list[RepositoryInfo]]:
        """List repositories visible to the credential (first page of 100)."""
        result = self._get_json(
            "/user/repos", what="user", params={"per_page": 100, "sort": "updated"}
        ).then(self._as_list)
        if not result.ok:
            return result

        repositories = []
        for item in result.value:
            info = self._repository(item)
            if not info.ok:
                return info
            repositories.append(info.value)
        return Ok(repositories)


__all__ = [
    "API_VERSION",
    "DEFAULT_API_URL",
    "RemoteObjectClient",
    "classify_response",
    "decode_content",
    "encode_content",
]
