"""
Summarization engine.

Wraps a summarizer backend behind a lazily created, shared session:

1. The session is created on first use; concurrent callers share the
   in-flight creation task
2. One-shot calls return the full Markdown summary
3. Streaming calls feed a bounded queue; partial bullet snapshots are
   throttled and a failed stream falls back to one-shot

A failing backend call discards the session so the next call starts fresh.
"""
import asyncio
import inspect
import time
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Protocol, Union

from core.exceptions import (
    PipelineError,
    SummarizerUnavailableError,
    SummarizationFailedError,
    to_error_message,
)
from logs.logging_config import get_logger
from .bullets import parse_bullets
from .config import (
    SUMMARIZATION_MAX_BULLETS,
    SUMMARIZATION_STREAM_THROTTLE_MS,
    SUMMARIZATION_STREAM_QUEUE_SIZE,
)
from .schemas import SessionOptions

logger = get_logger("summarizer")

PartialCallback = Callable[[List[str], str], Union[None, Awaitable[None]]]


class SummarizerSession(Protocol):
    supports_streaming: bool

    async def summarize(self, text: str, context: Optional[str] = None) -> str: ...

    def summarize_streaming(self, text: str, context: Optional[str] = None) -> AsyncIterator[str]: ...

    async def close(self) -> None: ...


class SummarizerBackend(Protocol):
    async def availability(self) -> str: ...

    async def create_session(
        self,
        options: SessionOptions,
        monitor: Optional[Callable[[float], None]] = None,
    ) -> SummarizerSession: ...

    async def close(self) -> None: ...


class _StreamEnd:
    pass


class _StreamFailure:
    def __init__(self, error: BaseException):
        self.error = error


_END = _StreamEnd()


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class SummarizationEngine:
    """
    Summaries over a pluggable backend.

    Example:
        engine = SummarizationEngine(LLMSummarizerBackend())
        markdown = await engine.summarize(page.text, context=page.title)
    """

    def __init__(
        self,
        backend: SummarizerBackend,
        options: Optional[SessionOptions] = None,
        max_bullets: int = SUMMARIZATION_MAX_BULLETS,
        throttle_ms: int = SUMMARIZATION_STREAM_THROTTLE_MS,
        queue_size: int = SUMMARIZATION_STREAM_QUEUE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.options = options or SessionOptions()
        self.max_bullets = max_bullets
        self.throttle_ms = throttle_ms
        self.queue_size = queue_size
        self._clock = clock
        self._session: Optional[SummarizerSession] = None
        self._session_task: Optional[asyncio.Task] = None
        self._last_progress = -1

    # =====================
    # Session lifecycle
    # =====================

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def _on_download_progress(self, fraction: float) -> None:
        percent = int(fraction * 100)
        if percent // 10 != self._last_progress // 10:
            self._last_progress = percent
            logger.info(f"[SUMMARIZER] Model download | progress={percent}%")

    async def _create_session(self) -> SummarizerSession:
        try:
            availability = await self.backend.availability()
        except Exception as e:
            logger.error(f"[SUMMARIZER] Availability check failed | error={e}")
            raise SummarizerUnavailableError(to_error_message(e)) from e

        logger.info(f"[SUMMARIZER] Availability | status={availability}")
        if availability == "unavailable":
            raise SummarizerUnavailableError()

        self._last_progress = -1
        try:
            session = await self.backend.create_session(self.options, monitor=self._on_download_progress)
        except PipelineError:
            raise
        except Exception as e:
            logger.error(f"[SUMMARIZER] Session creation failed | error={e}")
            raise SummarizerUnavailableError(to_error_message(e)) from e

        self._session = session
        return session

    async def ensure_session(self) -> SummarizerSession:
        """Return the session, creating it once if needed."""
        if self._session is not None:
            return self._session

        if self._session_task is None:
            self._session_task = asyncio.ensure_future(self._create_session())
        task = self._session_task

        try:
            return await asyncio.shield(task)
        finally:
            # A settled task is forgotten: success leaves self._session set,
            # failure lets the next caller retry creation.
            if task.done() and self._session_task is task:
                self._session_task = None

    async def supports_streaming(self) -> bool:
        session = await self.ensure_session()
        return bool(getattr(session, "supports_streaming", False))

    async def reset_session(self, session: Optional[SummarizerSession] = None) -> None:
        """
        Discard the current session.

        When session is given, only discard if it is still the current one,
        so a late failure does not throw away a newer session.
        """
        current = self._session
        if current is None or (session is not None and session is not current):
            return
        self._session = None
        try:
            await current.close()
        except Exception as e:
            logger.warning(f"[SUMMARIZER] Session close failed | error={e}")
        logger.info("[SUMMARIZER] Session discarded")

    async def close(self) -> None:
        """Close the session and the backend."""
        if self._session_task is not None and not self._session_task.done():
            self._session_task.cancel()
        self._session_task = None
        await self.reset_session()
        await self.backend.close()

    # =====================
    # One-shot
    # =====================

    async def summarize(self, text: str, context: Optional[str] = None) -> str:
        """
        Summarize text in one call.

        Raises:
            SummarizerUnavailableError: If no session can be created
            SummarizationFailedError: If the backend call fails
        """
        session = await self.ensure_session()
        start_time = time.time()
        try:
            result = await session.summarize(text, context)
        except Exception as e:
            logger.error(f"[SUMMARIZER] Summarize failed | error={e}")
            await self.reset_session(session)
            raise SummarizationFailedError(to_error_message(e)) from e

        logger.info(
            f"[SUMMARIZER] Summarize done | elapsed={time.time() - start_time:.2f}s | "
            f"input_chars={len(text)} | output_chars={len(result or '')}"
        )
        return (result or "").strip()

    # =====================
    # Streaming
    # =====================

    async def stream_chunks(self, text: str, context: Optional[str] = None) -> AsyncIterator[str]:
        """Yield summary deltas; a failure discards the session and propagates."""
        session = await self.ensure_session()
        try:
            async for chunk in session.summarize_streaming(text, context):
                yield chunk
        except Exception:
            await self.reset_session(session)
            raise

    async def _produce(self, queue: asyncio.Queue, text: str, context: Optional[str]) -> None:
        try:
            async for chunk in self.stream_chunks(text, context):
                if chunk:
                    await queue.put(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await queue.put(_StreamFailure(e))
            return
        await queue.put(_END)

    async def _notify(self, on_partial: Optional[PartialCallback], bullets: List[str], raw: str) -> None:
        if on_partial is None:
            return
        try:
            await _maybe_await(on_partial(bullets, raw))
        except Exception as e:
            logger.warning(f"[SUMMARIZER] Partial listener failed | error={e}")

    async def summarize_streaming(
        self,
        text: str,
        context: Optional[str] = None,
        on_partial: Optional[PartialCallback] = None,
    ) -> str:
        """
        Summarize text over the backend stream.

        on_partial(bullets, raw) is called when the bullet count grows, or
        when the throttle interval has passed since the last call. If the
        stream fails or produces nothing, the text is summarized one-shot.

        Returns:
            The full Markdown summary
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        producer = asyncio.ensure_future(self._produce(queue, text, context))

        buffer: List[str] = []
        emitted_count = 0
        last_emit = self._clock()
        failure: Optional[BaseException] = None

        try:
            while True:
                item = await queue.get()
                if item is _END:
                    break
                if isinstance(item, _StreamFailure):
                    failure = item.error
                    break

                buffer.append(item)
                raw = "".join(buffer)
                bullets = parse_bullets(raw, self.max_bullets)
                now = self._clock()
                if bullets and (
                    len(bullets) > emitted_count
                    or (now - last_emit) * 1000 >= self.throttle_ms
                ):
                    emitted_count = len(bullets)
                    last_emit = now
                    await self._notify(on_partial, bullets, raw)
        finally:
            if not producer.done():
                producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)

        if isinstance(failure, SummarizerUnavailableError):
            raise failure

        raw = "".join(buffer).strip()
        if failure is not None or not raw:
            reason = to_error_message(failure) if failure is not None else "empty stream"
            logger.warning(f"[SUMMARIZER] Stream failed, falling back to one-shot | reason={reason}")
            return await self.summarize(text, context)

        logger.info(f"[SUMMARIZER] Stream done | chunks={len(buffer)} | output_chars={len(raw)}")
        return raw
