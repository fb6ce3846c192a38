"""
Transport Client - Shared HTTP session for all Codepecker endpoints.

Every request is a POST carrying the opaque ``auth`` credential, and every
response is a JSON object with an integer ``status`` field. This module
only moves bytes and decodes JSON; interpreting ``status`` is left to the
callers.

TLS certificate verification is disabled: Codepecker deployments are
usually served with self-signed certificates.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog
from yarl import URL

from .errors import (
    ClientBuildError,
    ConnectError,
    HttpStatusError,
    ProxyBuildError,
    ResponseParseError,
)


API_PREFIX = "cp4/webInterface/"


class Endpoint:
    """Endpoint names, relative to ``<base URL>/cp4/webInterface/``"""
    UPLOAD = "postSourceCode.action"
    UPLOAD_SCM = "postSourceCodeBySvnGit.action"
    TASK_STATUS = "queryTaskStatus.action"
    STATISTICS = "queryStatistics.action"
    TASK_RESULT = "getTaskResult.action"
    SOLUTION = "queryWikiByLanguageErrorid.action"
    FILE = "getFile.action"


def is_success(payload: Dict[str, Any]) -> bool:
    """Return True if a decoded response reports ``status == 0``"""
    status = payload.get("status")
    return isinstance(status, int) and not isinstance(status, bool) and status == 0


class PeckerClient:
    """
    Configured HTTP client for the Codepecker web interface.

    Example:
        >>> async with PeckerClient("https://pecker.local:8081", auth="key") as client:
        ...     payload = await client.post_form(Endpoint.TASK_STATUS, {"taskId": "42"})
    """

    def __init__(
        self,
        base_url: str,
        auth: str,
        proxy: Optional[str] = None,
        timeout: float = 60.0,
        logger: Optional[Any] = None,
    ):
        """
        Initialize the client. No connection is made until the first request.

        Args:
            base_url: Codepecker root URL, e.g. http://127.0.0.1:8081
            auth: API key sent as the ``auth`` field on every call
            proxy: Optional outbound proxy URL (http or https)
            timeout: Total timeout for a single request in seconds

        Raises:
            ClientBuildError: If the base URL is unusable
            ProxyBuildError: If the proxy URL is unusable
        """
        self.base_url = self._build_base_url(base_url)
        self.proxy = self._build_proxy(proxy) if proxy else None
        self.auth = auth
        self.timeout = timeout
        self.logger = logger or structlog.get_logger(__name__)
        self._session: Optional[aiohttp.ClientSession] = None

        if self.proxy is not None:
            self.logger.debug("proxy_configured", proxy=str(self.proxy))

    @staticmethod
    def _build_base_url(base_url: str) -> URL:
        try:
            url = URL(str(base_url))
        except (TypeError, ValueError) as e:
            raise ClientBuildError(f"Invalid base URL {base_url!r}: {e}") from e

        if url.scheme not in ("http", "https") or not url.host:
            raise ClientBuildError(f"Invalid base URL {base_url!r}: expected http(s)://host")

        # Endpoint paths are appended to the base, so keep exactly one trailing slash
        path = url.path if url.path.endswith("/") else f"{url.path}/"
        return url.with_path(path)

    @staticmethod
    def _build_proxy(proxy: str) -> URL:
        try:
            url = URL(str(proxy))
        except (TypeError, ValueError) as e:
            raise ProxyBuildError(str(proxy), str(e)) from e

        if url.scheme not in ("http", "https") or not url.host:
            raise ProxyBuildError(str(proxy), "expected http(s)://host:port")
        return url

    def url_for(self, endpoint: str) -> str:
        """Build the absolute URL of an endpoint"""
        return f"{self.base_url}{API_PREFIX}{endpoint}"

    async def open(self):
        """Create the underlying aiohttp session"""
        if self._session is not None:
            return

        try:
            connector = aiohttp.TCPConnector(ssl=False)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        except (aiohttp.ClientError, ValueError, TypeError) as e:
            raise ClientBuildError(f"Unable to create HTTP client: {e}") from e

        self.logger.debug("client_opened", base_url=str(self.base_url))

    async def close(self):
        """Close the session (safe to call twice)"""
        if self._session is not None:
            await self._session.close()
            self._session = None
            self.logger.debug("client_closed")

    async def __aenter__(self) -> "PeckerClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def post_form(self, endpoint: str, data: Dict[str, str]) -> Dict[str, Any]:
        """
        POST a form-encoded body.

        Args:
            endpoint: Endpoint name (see ``Endpoint``)
            data: Form fields, ``auth`` is added automatically

        Returns:
            Decoded JSON object
        """
        form = {"auth": self.auth}
        form.update(data)
        return await self._post(endpoint, data=form)

    async def post_multipart(
        self,
        endpoint: str,
        fields: Dict[str, str],
        file_field: str,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> Dict[str, Any]:
        """
        POST a multipart body with text fields and one file part.

        Args:
            endpoint: Endpoint name (see ``Endpoint``)
            fields: Text fields, ``auth`` is added automatically
            file_field: Name of the file part
            file_name: File name reported to the backend
            content: File bytes
            content_type: MIME type of the file part

        Returns:
            Decoded JSON object
        """
        form = aiohttp.FormData()
        form.add_field("auth", self.auth)
        for name, value in fields.items():
            form.add_field(name, value)
        form.add_field(
            file_field,
            content,
            filename=file_name,
            content_type=content_type,
        )
        return await self._post(endpoint, data=form)

    async def _post(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        if self._session is None:
            await self.open()

        url = self.url_for(endpoint)
        self.logger.debug("request_sent", url=url)

        try:
            async with self._session.post(url, proxy=self.proxy, **kwargs) as response:
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    self.logger.error(
                        "request_rejected",
                        url=url,
                        status=response.status,
                        body=body[:500],
                    )
                    raise HttpStatusError(url, response.status)

                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    self.logger.error("response_not_json", url=url, error=str(e))
                    raise ResponseParseError(url) from e

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error("request_failed", url=url, error=str(e) or type(e).__name__)
            raise ConnectError(url, str(e) or type(e).__name__) from e

        if not isinstance(payload, dict):
            self.logger.error("response_not_object", url=url, kind=type(payload).__name__)
            raise ResponseParseError(url)

        return payload

    def __repr__(self) -> str:
        """String representation (the key is never shown)"""
        return (
            f"PeckerClient("
            f"base_url={self.base_url}, "
            f"proxy={self.proxy}, "
            f"timeout={self.timeout})"
        )
