from __future__ import annotations

import logging
from typing import Sequence

from fleet.config import FUEL_ANOMALY_MIN_HISTORY, FUEL_ANOMALY_THRESHOLD
from fleet.domain.entities import FuelEntry

logger = logging.getLogger(__name__)


def _chronological(entries: Sequence[FuelEntry]) -> list[FuelEntry]:
    return sorted(entries, key=lambda e: (e.date, e.odometer))


def pairwise_efficiencies(history: Sequence[FuelEntry]) -> list[float]:
    """Efficiency of each entry against its predecessor, skipping undefined ones."""
    ordered = _chronological(history)
    efficiencies = []
    for previous, current in zip(ordered, ordered[1:]):
        efficiency = current.efficiency_since(previous.odometer)
        if efficiency > 0:
            efficiencies.append(efficiency)
    return efficiencies


def average_efficiency(history: Sequence[FuelEntry]) -> float:
    efficiencies = pairwise_efficiencies(history)
    if not efficiencies:
        return 0.0
    return sum(efficiencies) / len(efficiencies)


def current_efficiency(entry: FuelEntry, history: Sequence[FuelEntry]) -> float:
    """Efficiency of ``entry`` against the closest earlier entry in ``history``."""
    key = (entry.date, entry.odometer)
    earlier = [e for e in history if e.id != entry.id and (e.date, e.odometer) < key]
    if not earlier:
        return 0.0
    return entry.efficiency_since(_chronological(earlier)[-1].odometer)


def detect_anomaly(
    entry: FuelEntry,
    history: Sequence[FuelEntry],
    threshold: float = FUEL_ANOMALY_THRESHOLD,
) -> bool:
    """
    Flag ``entry`` when its efficiency deviates from the trailing average
    by more than ``threshold`` (relative).

    ``history`` is the vehicle's recorded entries; ``entry`` itself is ignored
    if present. Too little history, an undefined average or an undefined
    current efficiency all mean "no anomaly".
    """
    past = [e for e in history if e.id != entry.id]
    if len(past) < FUEL_ANOMALY_MIN_HISTORY:
        return False

    average = average_efficiency(past)
    if average == 0:
        return False

    current = current_efficiency(entry, past)
    if current == 0:
        return False

    deviation = abs(current - average) / average
    logger.debug(
        "Vehicle %s efficiency %.2f vs average %.2f (deviation %.1f%%)",
        entry.vehicle_id,
        current,
        average,
        deviation * 100,
    )
    return deviation > threshold
