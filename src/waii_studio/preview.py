from __future__ import annotations

import base64
import logging
from typing import Dict, Optional, Union

from .types import LocalFile, StockUrl


logger = logging.getLogger(__name__)


class PreviewHandle:
    """A displayable reference to a model or product image.

    Uploaded files are exposed as data URIs built on acquisition; stock
    models are shown straight from their URL. A released handle has no URL.
    """

    def __init__(self, source: Union[LocalFile, StockUrl]):
        self.source = source
        if isinstance(source, LocalFile):
            data = base64.b64encode(source.content).decode("ascii")
            self._url: Optional[str] = f"data:{source.mime_type};base64,{data}"
        else:
            self._url = source.url

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def released(self) -> bool:
        return self._url is None

    def release(self) -> None:
        self._url = None

    def __enter__(self) -> "PreviewHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class PreviewSlot:
    """Owns at most one handle per slot and releases it when replaced or cleared."""

    def __init__(self):
        self._handles: Dict[str, PreviewHandle] = {}

    def acquire(self, slot: str, source: Union[LocalFile, StockUrl]) -> PreviewHandle:
        self.release(slot)
        handle = PreviewHandle(source)
        self._handles[slot] = handle
        return handle

    def get(self, slot: str) -> Optional[PreviewHandle]:
        return self._handles.get(slot)

    def url(self, slot: str) -> Optional[str]:
        handle = self._handles.get(slot)
        return handle.url if handle else None

    def release(self, slot: str) -> None:
        handle = self._handles.pop(slot, None)
        if handle is not None:
            handle.release()
            logger.debug("released %s preview", slot)

    def close(self) -> None:
        for slot in list(self._handles):
            self.release(slot)

    def __enter__(self) -> "PreviewSlot":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
