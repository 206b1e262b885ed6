"""
Lazily loaded, explicitly owned model handle.

The first get() starts the load in a worker thread; callers arriving while
it is in flight await the same task. A failed load clears the pending task
so a later get() can retry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, Optional, TypeVar

from .backend import InferenceUnavailable

T = TypeVar("T")


class ModelHandle(Generic[T]):
    def __init__(self, factory: Callable[[], T], name: str = "model"):
        self._factory = factory
        self.name = name
        self._model: Optional[T] = None
        self._pending: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self._model is not None

    @property
    def is_loading(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def get(self) -> T:
        """Return the loaded model, loading it once if needed."""
        if self._model is not None:
            return self._model
        if self._pending is None:
            logging.info(f"Loading {self.name}...")
            self._pending = asyncio.ensure_future(self._load())
        # shield: a cancelled waiter must not cancel the shared load
        return await asyncio.shield(self._pending)

    async def _load(self) -> T:
        try:
            model = await asyncio.to_thread(self._factory)
        except Exception as e:
            self._pending = None
            self.last_error = str(e)
            logging.error(f"Failed to load {self.name}: {e}")
            raise InferenceUnavailable(f"{self.name} is not available: {e}") from e
        self._model = model
        self._pending = None
        self.last_error = None
        logging.info(f"{self.name} loaded successfully")
        return model

    def close(self) -> None:
        """Release the loaded model, if any."""
        model, self._model = self._model, None
        close = getattr(model, "close", None)
        if callable(close):
            close()
