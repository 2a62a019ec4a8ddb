"""Populate the database with simulated power data.

Usage: python -m powerswitch.tasks.simulator [--interval 10] [--iterations N] [--seed S]

Every tick may flip the power status (5% chance), always records a
consumption reading (zero while the power is off) and a meter reading. The
current status is read back from the store on every tick.
"""

import argparse
import asyncio
import logging
import random
from datetime import datetime, timezone

from powerswitch.database import init_db
from powerswitch.schemas.power import PowerState
from powerswitch.services import status_tracker, workflows
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_store

logger = logging.getLogger(__name__)

FLIP_PROBABILITY = 0.05


def base_consumption(hour: int, rng: random.Random) -> float:
    """kWh for one reading, shaped by time of day."""
    if 6 <= hour <= 9:
        return 8 + rng.random() * 4  # morning peak
    if 18 <= hour <= 22:
        return 10 + rng.random() * 6  # evening peak
    if hour >= 23 or hour <= 5:
        return 3 + rng.random() * 2  # night
    return 5 + rng.random() * 3


def next_status(current: PowerState | None, rng: random.Random) -> PowerState | None:
    """New status to report this tick, or None to keep the current one."""
    if current is None:
        return PowerState.ON
    if rng.random() >= FLIP_PROBABILITY:
        return None
    return PowerState.OFF if current == PowerState.ON else PowerState.ON


async def simulate_tick(
    store: RecordStore,
    notifier: TelegramNotifier,
    rng: random.Random,
    now: datetime | None = None,
):
    now = now or datetime.now(timezone.utc)
    current = status_tracker.get_current_status(store)
    status = current.status if current else None

    new_status = next_status(status, rng)
    if new_status is not None:
        await workflows.report_power_status(store, notifier, new_status, now=now, notes="simulated")
        status = new_status

    powered = status == PowerState.ON
    units = round(base_consumption(now.hour, rng), 2) if powered else 0.0
    workflows.add_consumption_reading(
        store,
        units,
        round(0.12 + rng.random() * 0.08, 4),
        now=now,
    )

    await workflows.record_meter_reading(
        store, notifier,
        voltage=round(228 + rng.random() * 6, 1) if powered else 0.0,
        current=round(units / 2.3, 2),
        power=round(units * 100, 1),
        units=units,
        recorded_at=now,
    )
    logger.info("Tick: status=%s units=%.2f", status.value if status else "none", units)


async def run(interval: float, iterations: int | None, seed: int | None):
    init_db()
    store = get_store()
    notifier = get_notifier()
    rng = random.Random(seed)
    done = 0
    while iterations is None or done < iterations:
        try:
            await simulate_tick(store, notifier, rng)
        except Exception as e:
            logger.error("Simulation tick failed: %s", e)
        done += 1
        if iterations is None or done < iterations:
            await asyncio.sleep(interval)


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Populate PowerSwitch with simulated data")
    parser.add_argument("--interval", type=float, default=10.0, help="seconds between ticks")
    parser.add_argument("--iterations", type=int, default=None, help="stop after N ticks")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    try:
        asyncio.run(run(args.interval, args.iterations, args.seed))
    except KeyboardInterrupt:
        logger.info("Simulator stopped")


if __name__ == "__main__":
    main()
