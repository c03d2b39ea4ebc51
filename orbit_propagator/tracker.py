"""
Multi-Satellite Tracker

Keeps one propagation session per catalog number and answers queries by
timestamp.

Features:
- Load satellites from TLE text or from ElementSet objects
- Propagate to arbitrary times, one at a time or in batches
- Per-satellite history of warnings and errors (last 100 entries)
- Export of the mean elements at epoch

Each session has its own lock. Queries for different satellites can run in
parallel threads; queries for the same satellite are serialized because a
deep-space session advances its integrator on every call.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from orbit_propagator.elements import ElementSet
from orbit_propagator.exceptions import PropagatorError
from orbit_propagator.propagator import Propagator
from orbit_propagator.tle import parse_tle

logger = logging.getLogger(__name__)

MAX_HISTORY = 100


class SatelliteTracker:
    """
    Registry of propagation sessions keyed by catalog number.

    Args:
        strict_kepler: Passed to every session created by this tracker
    """

    def __init__(self, strict_kepler: bool = False):
        self.strict_kepler = strict_kepler
        self.satellites: Dict[int, Dict[str, Any]] = {}
        self.error_history: Dict[int, List[Dict[str, Any]]] = {}
        self._registry_lock = threading.Lock()
        self._history_lock = threading.Lock()

    def load_satellite(self, line1: str, line2: str, name: Optional[str] = None) -> int:
        """Load a satellite from TLE lines; return its catalog number."""
        try:
            elements = parse_tle(line1, line2, name=name or "")
        except PropagatorError as e:
            logger.error(f"Failed to load satellite from TLE: {e}")
            raise
        return self.load_elements(elements, name=name, source={"line1": line1, "line2": line2})

    def load_elements(
        self, elements: ElementSet, name: Optional[str] = None, source: Optional[Dict[str, str]] = None
    ) -> int:
        """Register an element set, replacing any earlier session for the same catalog number."""
        norad_id = elements.satnum
        entry = {
            "session": Propagator(elements, strict_kepler=self.strict_kepler),
            "lock": threading.Lock(),
            "name": name or elements.name or f"SAT_{norad_id}",
            "loaded_at": datetime.now(timezone.utc),
        }
        if source:
            entry.update(source)

        with self._registry_lock:
            self.satellites[norad_id] = entry
        logger.info(f"Loaded satellite {norad_id} ({entry['name']})")
        return norad_id

    def _entry(self, norad_id: int) -> Dict[str, Any]:
        try:
            return self.satellites[norad_id]
        except KeyError:
            raise KeyError(f"Satellite {norad_id} not loaded") from None

    def propagate(self, norad_id: int, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Propagate a loaded satellite.

        Args:
            norad_id: NORAD catalog ID
            timestamp: Target time (default: now)

        Returns:
            Dictionary with position, velocity and solver diagnostics
        """
        entry = self._entry(norad_id)
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        session = entry["session"]
        with entry["lock"]:
            first_query = not session.initialized
            try:
                result = session.propagate_datetime(timestamp)
            except PropagatorError as e:
                self._log_error(norad_id, type(e).__name__, str(e), timestamp)
                logger.error(f"Propagation failed for satellite {norad_id}: {e}")
                raise

            if first_query and session.decayed:
                self._log_error(norad_id, "DecayedOrbit", "perigee at or below 98 km", timestamp)
            for message in result.diagnostics:
                self._log_error(norad_id, "ConvergenceFailure", message, timestamp)

        output = result.as_dict()
        output.update({
            "norad_id": norad_id,
            "name": entry["name"],
            "timestamp": timestamp.isoformat(),
        })
        return output

    def propagate_batch(self, norad_id: int, timestamps: Iterable[datetime]) -> List[Dict[str, Any]]:
        """Propagate to several timestamps; failures become error records in the list."""
        results = []
        for ts in timestamps:
            try:
                results.append(self.propagate(norad_id, ts))
            except PropagatorError as e:
                results.append({"error": str(e), "timestamp": ts.isoformat()})
        return results

    def get_orbital_elements(self, norad_id: int) -> Dict[str, Any]:
        """Mean elements at epoch, in catalog units."""
        entry = self._entry(norad_id)
        el = entry["session"].elements
        return {
            "norad_id": norad_id,
            "name": entry["name"],
            "epoch": el.epoch_datetime.isoformat(),
            "epoch_jd": el.epoch_jd,
            "mean_motion": el.mean_motion,
            "eccentricity": el.eccentricity,
            "inclination": el.inclination,
            "raan": el.raan,
            "arg_perigee": el.arg_perigee,
            "mean_anomaly": el.mean_anomaly,
            "bstar": el.bstar,
            "period_minutes": el.period_minutes,
        }

    def _log_error(self, norad_id: int, kind: str, message: str, timestamp: datetime):
        record = {
            "kind": kind,
            "message": message,
            "timestamp": timestamp.isoformat(),
        }
        # one lock for all histories; a reloaded satellite gets a new session lock
        with self._history_lock:
            history = self.error_history.setdefault(norad_id, [])
            history.append(record)
            if len(history) > MAX_HISTORY:
                del history[:-MAX_HISTORY]

    def get_error_history(self, norad_id: int) -> List[Dict[str, Any]]:
        with self._history_lock:
            return list(self.error_history.get(norad_id, []))
