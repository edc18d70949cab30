"""
source.py — Step Source Adapter
================================
Wraps an algorithm's lazy step sequence behind two operations:

    pull()     → PullResult                       (plain iterators / generators)
    pull()     → Awaitable[PullResult]            (async iterators / async generators)
    dispose()  → idempotent, safe while a pull is in flight

A pull never raises.  Whatever the algorithm raises comes back as
PullResult(error=…) and the controller turns that into a FAILED run.

Finality
--------
A value that says so itself (`value.is_final` or `value["is_final"]`) is
final and the source is never pulled again.  Otherwise the adapter reads
one value ahead: a value is final when the iterator stops right after it.
If that look-ahead raises, the error is held back and handed out by the
*next* pull, so the value that preceded it is still delivered.

Reading ahead resumes the algorithm before anyone has drawn the current
value.  A source that yields one mutable object and keeps changing it
(`yield arr`) would be drawn a step late; yield snapshots instead, or
construct the adapter with lookahead=False.  Without look-ahead only a
self-declared value is final, and a source that just stops completes the
run with no final step.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pull result
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PullResult:
    value:     Any                      = None
    is_final:  bool                     = False
    error:     Optional[BaseException]  = None
    exhausted: bool                     = False

    @property
    def has_value(self) -> bool:
        return self.error is None and not self.exhausted


_EXHAUSTED = PullResult(exhausted=True)

# look-ahead slot entries: (kind, payload)
_VALUE = "value"
_END   = "end"
_ERROR = "error"

Head = Tuple[str, Any]


def declares_final(value: Any) -> bool:
    """True if the yielded value marks itself as the last step.

    Only a real ``True`` counts, for attributes and mapping keys alike.
    """
    if isinstance(value, Mapping):
        return value.get("is_final", False) is True
    return getattr(value, "is_final", False) is True


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------
class StepSourceAdapter:
    """
    Attributes:
        is_async  : True when pull() returns an awaitable.
        lookahead : Read one value ahead to detect the last one.
        pulled    : Number of values handed out so far.
        disposed  : True once dispose() has been called.
    """

    def __init__(self, source: Any, lookahead: bool = True):
        self.lookahead: bool = lookahead
        self.is_async:  bool = False
        self.pulled:    int  = 0
        self.disposed:  bool = False

        self._iter:      Any            = None
        self._buffered:  Optional[Head] = None
        self._done:      bool           = False
        self._in_flight: bool           = False

        try:
            self._attach(source)
        except Exception as exc:
            # surfaced on the first pull like any other source failure
            self._buffered = (_ERROR, exc)

    def _attach(self, source: Any) -> None:
        if callable(source) and not _is_iterable(source):
            source = source()
        if hasattr(source, "__aiter__"):
            self._iter = source.__aiter__()
            self.is_async = True
        elif _is_iterable(source):
            self._iter = iter(source)
        else:
            raise TypeError(
                f"step source must be iterable or async-iterable, got {type(source).__name__}"
            )

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------
    def pull(self) -> Union[PullResult, Awaitable[PullResult]]:
        if self.is_async:
            return self._pull_async()
        return self._pull_sync()

    def _pull_sync(self) -> PullResult:
        if self.disposed or self._done:
            return _EXHAUSTED
        head = self._take_buffered() or self._next_sync()
        if not self._wants_lookahead(head):
            return self._resolve(head, None)
        return self._resolve(head, self._next_sync())

    async def _pull_async(self) -> PullResult:
        if self.disposed or self._done:
            return _EXHAUSTED
        self._in_flight = True
        try:
            head = self._take_buffered() or await self._next_async()
            if not self._wants_lookahead(head):
                return self._resolve(head, None)
            return self._resolve(head, await self._next_async())
        finally:
            self._in_flight = False
            if self.disposed:
                await self._aclose()

    def _wants_lookahead(self, head: Head) -> bool:
        return self.lookahead and head[0] == _VALUE and not declares_final(head[1])

    def _resolve(self, head: Head, lookahead: Optional[Head]) -> PullResult:
        kind, payload = head
        if kind == _END:
            self._done = True
            return _EXHAUSTED
        if kind == _ERROR:
            self._done = True
            return PullResult(error=payload)

        self.pulled += 1
        if lookahead is None:
            final = declares_final(payload)
        else:
            final = lookahead[0] == _END
        if final:
            self._done = True
        elif lookahead is not None:
            self._buffered = lookahead
        return PullResult(value=payload, is_final=final)

    def _take_buffered(self) -> Optional[Head]:
        head, self._buffered = self._buffered, None
        return head

    def _next_sync(self) -> Head:
        try:
            return (_VALUE, next(self._iter))
        except StopIteration:
            return (_END, None)
        except Exception as exc:
            return (_ERROR, exc)

    async def _next_async(self) -> Head:
        try:
            return (_VALUE, await self._iter.__anext__())
        except StopAsyncIteration:
            return (_END, None)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return (_ERROR, exc)

    # ------------------------------------------------------------------
    # Dispose
    # ------------------------------------------------------------------
    def dispose(self) -> None:
        """Abandon the source.  Cleanup is best effort."""
        if self.disposed:
            return
        self.disposed = True
        self._buffered = None

        if self.is_async:
            if self._in_flight:
                return      # the pull closes it when it settles
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("no running loop; async step source left for GC")
                return
            loop.create_task(self._aclose())
            return

        close = getattr(self._iter, "close", None)
        if callable(close):
            try:
                close()
            except Exception:
                logger.exception("step source raised while closing")

    async def _aclose(self) -> None:
        aclose = getattr(self._iter, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception:
            logger.exception("async step source raised while closing")


def _is_iterable(obj: Any) -> bool:
    if inspect.isgeneratorfunction(obj) or inspect.isasyncgenfunction(obj):
        return False
    try:
        iter(obj)
    except TypeError:
        return False
    return True


__all__ = [
    "PullResult",
    "StepSourceAdapter",
    "declares_final",
]
