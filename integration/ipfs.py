"""
Integration — IPFS Upload
===========================

Multipart upload to an IPFS pinning endpoint. Any failure comes back as
``IPFSUploadResult(uploaded=False)``; callers decide the fallback.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from integration.models import IPFSUploadResult

logger = logging.getLogger("integration.ipfs")

UPLOAD_TIMEOUT = 30.0
HASH_KEYS = ("Hash", "hash", "ipfsHash")


class IPFSClient:
    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint or None
        self.api_key = api_key
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    async def upload(self, data: str) -> IPFSUploadResult:
        if not self.endpoint:
            return IPFSUploadResult()

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=UPLOAD_TIMEOUT, transport=self._transport) as client:
                resp = await client.post(
                    self.endpoint,
                    headers=headers,
                    files={"file": ("data.json", data.encode("utf-8"), "application/json")},
                )
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("IPFS upload failed: %s", e)
            return IPFSUploadResult()

        ipfs_hash = next((body[k] for k in HASH_KEYS if isinstance(body, dict) and body.get(k)), None)
        if not ipfs_hash:
            logger.warning("IPFS upload failed: no hash returned")
            return IPFSUploadResult()

        return IPFSUploadResult(
            hash=ipfs_hash,
            url=f"ipfs://{ipfs_hash}",
            size=len(data),
            uploaded=True,
        )
