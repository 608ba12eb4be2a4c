"""Process lifecycle: signal handling, orderly shutdown and exit codes."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable, Sequence

from mcp_starter.errors import install_global_error_handlers
from mcp_starter.logger import get_logger

logger = get_logger("lifecycle")

Cleanup = Callable[[], Awaitable[None]]

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Lifecycle:
    """Run the transport until it finishes or a termination signal arrives.

    ``run`` returns the process exit code: 0 after a clean close, 1 when the
    transport fails, shutdown fails or times out, or an unobserved asynchronous
    failure is reported while ``exit_on_unhandled`` is set.
    """

    def __init__(
        self,
        shutdown_timeout: float = 5.0,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        self.shutdown_timeout = shutdown_timeout
        self.signals = tuple(signals)
        self.exit_code = 0
        self._cleanups: list[Cleanup] = []
        self._transport: asyncio.Task[None] | None = None
        self._shutdown: asyncio.Task[None] | None = None
        self._finished = asyncio.Event()
        self._fatal = False
        self._previous: dict[signal.Signals, object] = {}

    def add_cleanup(self, cleanup: Cleanup) -> None:
        """Register a coroutine function awaited once the transport has closed."""
        self._cleanups.append(cleanup)

    @property
    def stopping(self) -> bool:
        return self._shutdown is not None

    async def run(
        self, serve: Callable[[], Awaitable[None]], *, exit_on_unhandled: bool = True
    ) -> int:
        """Run ``serve`` under signal supervision and return the exit code."""
        loop = asyncio.get_running_loop()
        previous_handler = loop.get_exception_handler()
        install_global_error_handlers(
            loop, self._on_fatal if exit_on_unhandled else None
        )
        self._install_signal_handlers(loop)
        self._transport = asyncio.ensure_future(serve())
        self._transport.add_done_callback(self._on_transport_done)
        try:
            await self._finished.wait()
            if self._shutdown is not None:
                await self._shutdown
            else:
                try:
                    await self._close_resources()
                except Exception as exc:
                    logger.error("Error while closing resources", exc_info=exc)
                    self.exit_code = 1
        finally:
            self._remove_signal_handlers(loop)
            loop.set_exception_handler(previous_handler)
        return self.exit_code

    def request_shutdown(self, signum: int | None = None) -> None:
        """Begin an orderly shutdown; repeated requests are ignored."""
        if self._shutdown is not None:
            return
        if signum is not None:
            logger.info("Received %s", signal.Signals(signum).name)
        self._shutdown = asyncio.ensure_future(self._shutdown_sequence())

    async def _shutdown_sequence(self) -> None:
        logger.info("Shutting down MCP server...")
        try:
            transport = self._transport
            if transport is not None and not transport.done():
                transport.cancel()
                done, _ = await asyncio.wait({transport}, timeout=self.shutdown_timeout)
                if not done:
                    raise TimeoutError(
                        f"Transport did not close within {self.shutdown_timeout} seconds"
                    )
            await self._close_resources()
        except Exception as exc:
            logger.error("Error during shutdown", exc_info=exc)
            self.exit_code = 1
        else:
            if not self._fatal:
                logger.info("MCP server shut down successfully")
        finally:
            self._finished.set()

    async def _close_resources(self) -> None:
        for cleanup in reversed(self._cleanups):
            await cleanup()
        self._cleanups.clear()

    def _on_transport_done(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled():
            error = task.exception()
            if error is not None:
                logger.error("MCP transport failed", exc_info=error)
                self.exit_code = 1
            else:
                logger.info("MCP transport closed")
        if self._shutdown is None:
            self._finished.set()

    def _on_fatal(self, _error: BaseException | None) -> None:
        self._fatal = True
        self.exit_code = 1
        self.request_shutdown()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except (NotImplementedError, RuntimeError):
                self._previous[sig] = signal.signal(
                    sig,
                    lambda signum, _frame: loop.call_soon_threadsafe(
                        self.request_shutdown, signum
                    ),
                )

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self.signals:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                if sig in self._previous:
                    signal.signal(sig, self._previous.pop(sig))
