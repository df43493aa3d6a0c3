"""
Law Nation Editorial - Document Service Client
=============================================
HTTP client for the external extraction / conversion API. Transport and 5xx
errors are retried; anything left over becomes ``ExtractionFailure`` or
``ConversionFailure`` so background jobs can record a typed outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from lawnation.core.config import get_settings
from lawnation.core.exceptions import ConversionFailure, ExtractionFailure
from lawnation.core.logging import get_logger
from lawnation.models import DocumentFormat

logger = get_logger("services.document_service")
settings = get_settings()


class _RetryableStatus(Exception):
    pass


@dataclass(slots=True)
class ExtractedDocument:
    text: str
    html: str | None = None
    images: list[str] = field(default_factory=list)


class DocumentServiceClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.document_service_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.document_service_api_key
        self.timeout = timeout or settings.document_service_timeout_seconds
        self.attempts = max(1, attempts or settings.document_service_retries)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    async def _post(self, path: str, payload: dict) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._headers(),
            transport=self._transport,
        ) as client:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.attempts),
                wait=wait_exponential(multiplier=1, min=1, max=8),
                retry=retry_if_exception_type((httpx.TransportError, _RetryableStatus)),
                reraise=True,
            ):
                with attempt:
                    response = await client.post(path, json=payload)
                    if response.status_code >= 500:
                        raise _RetryableStatus(f"status_{response.status_code}")
                    response.raise_for_status()
                    return response.json()
        return {}

    async def extract(self, file_url: str) -> ExtractedDocument:
        try:
            data = await self._post("/extract", {"file_url": file_url})
        except (httpx.HTTPError, _RetryableStatus, ValueError) as exc:
            logger.warning("document_extract_failed", file_url=file_url, error=str(exc))
            raise ExtractionFailure(f"Text extraction failed for {file_url}", details={"error": str(exc)}) from exc
        return ExtractedDocument(
            text=str(data.get("text") or ""),
            html=data.get("html"),
            images=list(data.get("images") or []),
        )

    async def convert(self, file_url: str, target_format: DocumentFormat) -> str:
        target = DocumentFormat(target_format)
        try:
            data = await self._post("/convert", {"file_url": file_url, "target_format": target.value.lower()})
        except (httpx.HTTPError, _RetryableStatus, ValueError) as exc:
            logger.warning("document_convert_failed", file_url=file_url, target=target.value, error=str(exc))
            raise ConversionFailure(
                f"Conversion to {target.value} failed for {file_url}",
                details={"error": str(exc)},
            ) from exc
        new_url = str(data.get("url") or "")
        if not new_url:
            raise ConversionFailure(f"Conversion to {target.value} returned no file", details={"file_url": file_url})
        return new_url


document_service_client = DocumentServiceClient()
