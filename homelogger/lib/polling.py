"""Generic async polling service abstraction.

Provides a reusable base class for sensor polling services that follow
the prepare → poll → persist pattern with configurable intervals.
"""
import asyncio
import signal
from abc import ABC, abstractmethod
from contextlib import suppress
from typing import Generic, TypeVar

from homelogger.lib.config import get_settings
from homelogger.lib.exceptions import BootstrapError
from homelogger.logging import get_logger

logger = get_logger("lib.polling")

EXIT_OK = 0
EXIT_BOOTSTRAP_FAILED = 1

T = TypeVar("T")


class PollingService(ABC, Generic[T]):
    """Abstract base class for async sensor polling services.

    Implements the common polling loop pattern with:
    - Configurable polling frequency
    - Fatal bootstrap handling (non-zero exit status)
    - Graceful shutdown on SIGTERM/SIGINT
    - Per-cycle error recovery
    """

    def __init__(
        self,
        name: str,
        frequency_sec: int | None = None,
    ) -> None:
        """Initialize the polling service.

        Args:
            name: Service name for logging.
            frequency_sec: Polling frequency in seconds.
        """
        self.name = name
        polling_cfg = get_settings().polling
        self.frequency_sec = frequency_sec or polling_cfg.frequency_sec
        self._shutdown = asyncio.Event()
        self._logger = get_logger(f"polling.{name}")

    @abstractmethod
    async def initialize(self) -> None:
        """Acquire everything the loop needs before polling starts.

        Called once at the start of run().

        Raises:
            BootstrapError: If the service cannot run at all. No cycle is
                started and run() returns a non-zero exit status.
        """

    @abstractmethod
    async def cleanup(self) -> None:
        """Release resources before exit.

        Called once when the service exits, including after a failed
        initialize(). Must cope with partially acquired resources.
        """

    async def prepare(self) -> None:
        """Hook run at the start of each cycle, before poll()."""

    @abstractmethod
    async def poll(self) -> T | None:
        """Poll the sensor for a new reading.

        Returns:
            A reading object, or None if the reading should be skipped.
        """

    @abstractmethod
    async def persist(self, reading: T) -> None:
        """Persist the reading.

        Args:
            reading: The reading to persist.
        """

    def on_poll_error(self, error: Exception) -> None:
        """Handle an unexpected error that escaped a cycle.

        Override to customize error handling. Default logs the error.
        """
        self._logger.exception("%s poll error: %s", self.name, error)

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def request_shutdown(self) -> None:
        """Stop the loop after the current cycle."""
        self._logger.info("Shutdown requested, finishing current cycle...")
        self._shutdown.set()

    def _setup_signal_handlers(self) -> None:
        """Register signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_shutdown)

    async def _poll_cycle(self) -> None:
        """Execute a single prepare → poll → persist cycle."""
        await self.prepare()
        reading = await self.poll()
        if reading is not None:
            await self.persist(reading)

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early if shutdown is requested."""
        with suppress(TimeoutError):
            await asyncio.wait_for(self._shutdown.wait(), timeout=seconds)

    async def _run_loop(self) -> int:
        """Run the async polling loop with precise timing.

        Returns:
            The process exit status.
        """
        try:
            await self.initialize()
        except BootstrapError as e:
            self._logger.critical("%s failed to start: %s", self.name, e)
            await self.cleanup()
            return EXIT_BOOTSTRAP_FAILED

        self._logger.info(
            "%s polling service started (every %ds)",
            self.name,
            self.frequency_sec,
        )

        loop = asyncio.get_running_loop()

        try:
            while not self.shutdown_requested:
                cycle_start = loop.time()

                try:
                    await self._poll_cycle()
                except Exception as e:
                    self.on_poll_error(e)

                # Sleep only the remaining time to maintain consistent intervals
                elapsed = loop.time() - cycle_start
                sleep_time = max(0, self.frequency_sec - elapsed)
                if sleep_time > 0:
                    await self._sleep(sleep_time)
        finally:
            self._logger.info("Cleaning up resources...")
            await self.cleanup()
            self._logger.info("%s shutdown complete", self.name)

        return EXIT_OK

    async def _main(self) -> int:
        self._setup_signal_handlers()
        return await self._run_loop()

    def run(self) -> int:
        """Run the polling loop.

        This is the main entry point. It:
        1. Sets up signal handlers for graceful shutdown
        2. Calls initialize(), returning a non-zero status if it fails
        3. Enters the polling loop (prepare → poll → persist)
        4. Calls cleanup() on exit

        Returns:
            The process exit status.
        """
        return asyncio.run(self._main())
