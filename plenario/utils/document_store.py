"""
HTTP client for the remote document cache (GitHub contents API)
"""

import base64
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx

from plenario.core.timeouts import TIMEOUTS

logger = logging.getLogger(__name__)


class RemoteCacheError(Exception):
    """Non-404 failure while reading a remote document"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteDocumentStore:
    """Per-entity JSON documents stored as files in a git repository.

    A missing file is a valid empty document. Writes are best effort and
    use the file's blob sha as the revision token, so a concurrent update
    makes the write fail instead of overwriting it.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        branch: Optional[str] = None,
        base_path: str = "data",
        api_url: str = "https://api.github.com",
        timeout: float = TIMEOUTS.remote_cache,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.token = token
        self.branch = branch
        self.base_path = base_path.strip("/")
        self.api_url = api_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.info(f"Remote document store initialized: {owner}/{repo}/{self.base_path}")

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(
            owner=settings.github_owner,
            repo=settings.github_repo,
            token=settings.github_token,
            branch=settings.github_branch,
            base_path=settings.remote_base_path,
            api_url=settings.github_api_url,
            transport=transport,
        )

    @property
    def can_write(self) -> bool:
        return bool(self.token)

    async def close(self):
        await self.client.aclose()

    def document_path(self, doc_type: str, doc_id: Any) -> str:
        return f"{self.base_path}/{doc_type}s/{doc_id}.json"

    def _url(self, doc_type: str, doc_id: Any) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{self.document_path(doc_type, doc_id)}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(self, doc_type: str, doc_id: Any) -> Tuple[Dict, Optional[str]]:
        """Return (document, sha); ({}, None) when the file does not exist"""
        params = {"ref": self.branch} if self.branch else None
        try:
            response = await self.client.get(
                self._url(doc_type, doc_id), headers=self._headers(), params=params
            )
        except httpx.HTTPError as e:
            raise RemoteCacheError(f"Remote read failed for {doc_type}/{doc_id}: {e!r}") from e

        if response.status_code == 404:
            return {}, None
        if not response.is_success:
            raise RemoteCacheError(
                f"Remote read failed for {doc_type}/{doc_id}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
            raw = payload.get("content") or ""
            content = base64.b64decode(raw).decode("utf-8") if raw else "{}"
            document = json.loads(content or "{}")
        except ValueError as e:
            raise RemoteCacheError(f"Remote document {doc_type}/{doc_id} is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            document = {}
        return document, payload.get("sha")

    async def read_document(self, doc_type: str, doc_id: Any) -> Dict:
        """Read a document; an absent document is returned as {}"""
        document, _sha = await self._get(doc_type, doc_id)
        if document:
            logger.debug(f"Remote cache hit: {doc_type}/{doc_id}")
        else:
            logger.debug(f"Remote cache miss: {doc_type}/{doc_id}")
        return document

    async def write_document(self, doc_type: str, doc_id: Any, document: Dict) -> bool:
        """
        Create or update a document.

        Returns:
            True if the store accepted the write. Missing credentials,
            conflicts and transport errors all return False.
        """
        if not self.can_write:
            logger.debug(f"No remote cache token, skipping write of {doc_type}/{doc_id}")
            return False

        payload = dict(document)
        payload["updatedAt"] = datetime.now(timezone.utc).isoformat()

        try:
            # Revision token must be read right before the PUT
            _existing, sha = await self._get(doc_type, doc_id)

            body = {
                "message": f"cache: update {doc_type} {doc_id}",
                "content": base64.b64encode(
                    json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
                ).decode("ascii"),
            }
            if sha:
                body["sha"] = sha
            if self.branch:
                body["branch"] = self.branch

            response = await self.client.put(
                self._url(doc_type, doc_id), headers=self._headers(), json=body
            )
        except (RemoteCacheError, httpx.HTTPError, TypeError, ValueError) as e:
            logger.warning(f"Remote cache write failed for {doc_type}/{doc_id}: {e}")
            return False

        if response.status_code in (409, 422):
            logger.warning(f"Remote cache write conflict for {doc_type}/{doc_id} (HTTP {response.status_code})")
            return False
        if not response.is_success:
            logger.warning(f"Remote cache write failed for {doc_type}/{doc_id}: HTTP {response.status_code}")
            return False

        logger.debug(f"Remote cache stored: {doc_type}/{doc_id}")
        return True
