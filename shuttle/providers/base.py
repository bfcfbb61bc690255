"""Base inference provider: error normalization and opt-in retry."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from dataclasses import dataclass

from ..errors import InferenceError
from ..types import InferenceEvent, InferenceRequest, InferenceResponse, StreamError

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    max_retries: int = 0
    base_delay: float = 1.0
    max_delay: float = 30.0


class BaseProvider:
    """Subclass and implement ``_do_complete`` / ``_do_stream``.

    ``complete`` raises ``InferenceError`` for any backend failure.
    ``stream`` never raises for backend failures: it yields a terminal
    ``StreamError`` event instead.
    """

    name = "base"

    def __init__(self, retry: RetryConfig | None = None) -> None:
        self._retry = retry or RetryConfig()

    async def complete(self, request: InferenceRequest) -> InferenceResponse:
        last_err: Exception | None = None
        for attempt in range(self._retry.max_retries + 1):
            try:
                return await self._do_complete(request)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_err = e
                if attempt < self._retry.max_retries:
                    delay = min(
                        self._retry.base_delay * (2 ** attempt) + random.random() * 0.1,
                        self._retry.max_delay,
                    )
                    logger.warning("%s call failed (%s), retrying in %.1fs", self.name, e, delay)
                    await asyncio.sleep(delay)
        raise self._wrap(last_err)

    async def stream(self, request: InferenceRequest) -> AsyncIterator[InferenceEvent]:
        try:
            async for event in self._do_stream(request):
                yield event
        except asyncio.CancelledError:
            raise
        except Exception as e:
            yield StreamError(error=self._wrap(e))

    # -- Override these --

    async def _do_complete(self, request: InferenceRequest) -> InferenceResponse:
        raise NotImplementedError

    async def _do_stream(self, request: InferenceRequest) -> AsyncIterator[InferenceEvent]:
        raise NotImplementedError
        yield  # pragma: no cover

    def _wrap(self, err: Exception | None) -> InferenceError:
        if isinstance(err, InferenceError):
            return err
        return InferenceError(
            self.name,
            f"Inference call failed: {err}",
            status_code=getattr(err, "status_code", None),
            cause=err,
        )

