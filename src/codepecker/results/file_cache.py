"""
FileContentCache - Per-run cache of source file bytes.

Many findings and trace steps point at the same file. The cache makes sure
each distinct path is fetched from ``getFile.action`` at most once per
aggregation run, even when enrichment runs concurrently: the first caller
for a path fetches while later callers for that path wait on its lock.

Empty-entry policy: a fetch that fails, or whose response carries no
``byteArrayOfFiles`` list, is cached as an empty list and never retried
within the run.
"""

import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional

import structlog

from ..core.errors import PeckerError
from ..core.transport import Endpoint, PeckerClient


class FileContentCache:
    """
    Lazily populated mapping of file path to byte values.

    Example:
        >>> cache = FileContentCache(client)
        >>> content = await cache.get("src/Main.java")
    """

    def __init__(self, client: PeckerClient, logger: Optional[Any] = None):
        self.client = client
        self.logger = logger or structlog.get_logger(__name__)

        self._contents: Dict[str, List[int]] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        # Statistics
        self.hits = 0
        self.fetches = 0

    def __contains__(self, path: str) -> bool:
        return path in self._contents

    def __len__(self) -> int:
        return len(self._contents)

    async def get(self, path: str) -> List[int]:
        """
        Return the bytes of ``path``, fetching them on the first request.

        Returns:
            A new list of byte values (callers may attach it freely)
        """
        async with self._locks[path]:
            if path in self._contents:
                self.hits += 1
                self.logger.debug("file_cache_hit", path=path)
            else:
                self._contents[path] = await self._fetch(path)

        return list(self._contents[path])

    async def _fetch(self, path: str) -> List[int]:
        self.fetches += 1
        self.logger.debug("fetching_file_content", path=path)

        try:
            response = await self.client.post_form(Endpoint.FILE, {"path": path})
        except PeckerError as e:
            self.logger.warning("file_content_unavailable", path=path, error=str(e))
            return []

        content = response.get("byteArrayOfFiles")
        if not isinstance(content, list):
            self.logger.warning("file_content_missing", path=path)
            return []

        return content

    def get_statistics(self) -> Dict[str, int]:
        return {
            "paths": len(self._contents),
            "fetches": self.fetches,
            "hits": self.hits,
        }
