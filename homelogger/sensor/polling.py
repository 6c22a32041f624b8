"""Poll the BME280 sensor for new data, and persist results in the store.

Bootstrap opens the store and the I2C bus once; if either fails the
operator is notified and the process exits with a non-zero status. Every
cycle afterwards runs the same steps, whatever failed before:

1. ping the store, notify and reconnect once if it does not answer
2. re-initialize and sample the sensor, notify and use zeros on failure
3. format the reading
4. insert it, notify on failure and drop it

A failed reconnect is only logged; the cycle goes on with the old pool and
the next cycle tries again.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing_extensions import override

from homelogger.lib.config import get_settings
from homelogger.lib.db import ConnectionPool, connect, insert_reading, ping
from homelogger.lib.exceptions import (
    BootstrapError,
    DatabaseError,
    SensorError,
    SensorOpenError,
    StoreConnectError,
    StoreInsertError,
)
from homelogger.lib.notifications import AbstractNotifier, get_notifier
from homelogger.lib.polling import PollingService
from homelogger.logging import configure, get_logger
from homelogger.sensor.models import Reading, Sample
from homelogger.sensor.reader import SensorReaderProtocol

logger = get_logger("sensor.polling")


@dataclass
class LoopState:
    """Mutable state carried from one cycle to the next."""

    pool: ConnectionPool | None = None
    sensor_open: bool = False
    cycles: int = 0


class BME280PollingService(PollingService[Reading]):
    """Polling service for the BME280 temperature/pressure/humidity sensor."""

    def __init__(
        self,
        reader: SensorReaderProtocol,
        notifier: AbstractNotifier,
        state: LoopState | None = None,
    ) -> None:
        super().__init__(name="BME280")
        settings = get_settings()
        self._reader = reader
        self._notifier = notifier
        self._dsn = settings.store.dsn
        self._device_name = settings.sensor.device_name
        self._sender = settings.notifications.sender
        self.state = state or LoopState()

    async def _notify(self, message: str) -> None:
        if await self._notifier.notify(self._sender, message):
            return
        if self._notifier.enabled:
            logger.warning("Notification not delivered: %s", message)

    @override
    async def initialize(self) -> None:
        """Connect to the store, then open the sensor bus."""
        try:
            self.state.pool = await connect(self._dsn)
        except StoreConnectError as e:
            logger.error("Database connection failed: %s", e)
            await self._notify(f"Database connection failed: {e}")
            raise BootstrapError(str(e)) from e

        try:
            await asyncio.to_thread(self._reader.open)
        except SensorOpenError as e:
            logger.error("Sensor open failed: %s", e)
            await self._notify(f"Sensor open failed: {e}")
            raise BootstrapError(str(e)) from e
        self.state.sensor_open = True

    @override
    async def cleanup(self) -> None:
        """Close the sensor bus and the store."""
        if self.state.sensor_open:
            self._reader.close()
            self.state.sensor_open = False
        if self.state.pool is not None:
            await self.state.pool.close()
            self.state.pool = None

    @override
    async def prepare(self) -> None:
        """Check the store is alive, reconnecting once if it is not."""
        self.state.cycles += 1
        logger.debug("Starting cycle %d", self.state.cycles)
        if self.state.pool is not None:
            try:
                await ping(self.state.pool)
                return
            except DatabaseError as e:
                logger.error("Database ping failed: %s", e)

        await self._notify("Database connection invalid, will reconnect.")
        try:
            pool = await connect(self._dsn)
        except StoreConnectError as e:
            logger.error("Reconnect failed, retrying next cycle: %s", e)
            return

        old, self.state.pool = self.state.pool, pool
        if old is not None:
            await old.close()
        logger.info("Reconnected to database")

    def _sample(self) -> Sample:
        self._reader.init()
        return self._reader.read()

    @override
    async def poll(self) -> Reading:
        """Sample the sensor, falling back to zeros if it fails."""
        try:
            sample = await asyncio.to_thread(self._sample)
        except SensorError as e:
            logger.error("Sensor read failed: %s", e)
            await self._notify(f"Error during sensor read: {e}")
            sample = Sample.empty()

        logger.debug("Read %s", sample)
        return Reading.from_sample(sample, self._device_name)

    @override
    async def persist(self, reading: Reading) -> None:
        """Insert the reading; a failed insert is reported and dropped."""
        try:
            if self.state.pool is None:
                raise StoreInsertError("No database connection")
            rows = await insert_reading(self.state.pool, reading)
        except StoreInsertError as e:
            logger.error("Insert failed: %s", e)
            await self._notify(f"Insert failed: {e}")
            return

        logger.info(
            "Stored temperature=%s humidity=%s pressure=%s (%d row)",
            reading.temperature,
            reading.humidity,
            reading.pressure,
            rows,
        )


def _create_reader() -> SensorReaderProtocol:
    """Create sensor reader based on configuration."""
    settings = get_settings()

    if settings.mock_sensors:
        from homelogger.lib.mock import MockBME280Reader

        logger.info("Using mock BME280 sensor")
        return MockBME280Reader()
    from homelogger.sensor.reader import BME280Reader

    return BME280Reader(settings.sensor.device_path, settings.sensor.address)


def main() -> None:
    """Main entry point for the polling service."""
    settings = get_settings()
    configure(logging.DEBUG if settings.debug_log else logging.INFO)
    service = BME280PollingService(_create_reader(), get_notifier())
    sys.exit(service.run())


if __name__ == "__main__":
    main()
