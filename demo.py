"""
Orbit Propagation Demonstration

This script demonstrates the key capabilities of the orbit propagator:
- TLE parsing into validated element sets
- Model selection (SGP4 near-Earth, SDP4 deep-space)
- Comparison against the Spacetrack Report #3 reference vectors
- A time sweep around epoch, optionally plotted

Usage:
    python demo.py [--verbose] [--plot] [--step MINUTES]

Arguments:
    --verbose: Show the propagator's debug messages
    --plot: Plot the sweep trajectories (requires matplotlib)
    --step: Sweep step in minutes (default: 10)

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3.
"""

import argparse
import logging
from typing import Any, Dict, List, Tuple

import numpy as np

from config import (
    DEEP_SPACE_POSITION_TOLERANCE_KM,
    POSITION_TOLERANCE_KM,
    REFERENCE_SATELLITES,
    REFERENCE_TIMES_MIN,
    SWEEP_END_MIN,
    SWEEP_START_MIN,
    SWEEP_STEP_MIN,
    VELOCITY_TOLERANCE_KM_S,
)
from logging_config import configure_logging, get_logger
from orbit_propagator import Propagator

logger = get_logger(__name__)


def compare_with_reference(satellite: Dict[str, Any]) -> List[Tuple[float, float, float]]:
    """
    Propagate one reference satellite and compare with its published vectors.

    Parameters
    ----------
    satellite : dict
        Entry of ``config.REFERENCE_SATELLITES``

    Returns
    -------
    list of tuple
        (tsince, position error km, velocity error km/s) per reference time
    """
    prop = Propagator.from_tle(satellite["line1"], satellite["line2"], name=satellite["name"])
    logger.info(f"{satellite['name']} ({satellite['norad_id']}): model={prop.model}, "
                f"period={prop.derived.period_minutes:.2f} min")

    pos_tol = POSITION_TOLERANCE_KM if prop.model == "sgp4" else DEEP_SPACE_POSITION_TOLERANCE_KM
    errors = []
    for tsince, exp_r, exp_v in zip(
        REFERENCE_TIMES_MIN,
        satellite["expected_position_km"],
        satellite["expected_velocity_km_s"],
    ):
        result = prop.propagate(tsince)
        dr = float(np.linalg.norm(result.position_km - np.array(exp_r)))
        dv = float(np.linalg.norm(result.velocity_km_s - np.array(exp_v)))
        status = "OK" if dr < pos_tol and dv < VELOCITY_TOLERANCE_KM_S else "DIFF"
        r = result.position_km
        logger.info(
            f"t={tsince:6.0f}min: x={r[0]:12.3f}km y={r[1]:12.3f}km z={r[2]:12.3f}km "
            f"|dr|={dr:.4f}km |dv|={dv:.2e}km/s [{status}]"
        )
        errors.append((tsince, dr, dv))
    return errors


def sweep(satellite: Dict[str, Any], step: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Propagate a reference satellite over the sweep window around epoch.

    Returns
    -------
    times : ndarray
        Minutes from epoch
    positions : ndarray
        (N, 3) positions in km
    """
    times = np.arange(SWEEP_START_MIN, SWEEP_END_MIN + step / 2.0, step)
    prop = Propagator.from_tle(satellite["line1"], satellite["line2"], name=satellite["name"])
    results = prop.propagate_many(times)
    positions = np.array([res.position_km for res in results])
    radii = np.linalg.norm(positions, axis=1)
    logger.info(
        f"{satellite['name']}: {len(times)} points, "
        f"radius {radii.min():.1f}-{radii.max():.1f} km"
    )
    return times, positions


def plot_sweeps(sweeps: Dict[str, Tuple[np.ndarray, np.ndarray]]) -> None:
    """Plot the sweep trajectories in 3D and the radius over time."""
    import matplotlib.pyplot as plt

    fig = plt.figure(figsize=(16, 7))
    ax1 = fig.add_subplot(121, projection="3d")
    ax2 = fig.add_subplot(122)

    for name, (times, positions) in sweeps.items():
        ax1.plot(positions[:, 0], positions[:, 1], positions[:, 2], label=name, linewidth=1.5)
        ax2.plot(times, np.linalg.norm(positions, axis=1), label=name, linewidth=1.5)

    ax1.set_xlabel("X (km)")
    ax1.set_ylabel("Y (km)")
    ax1.set_zlabel("Z (km)")
    ax1.set_title("Trajectories around epoch")
    ax1.legend(loc="upper left")

    ax2.set_xlabel("Minutes from epoch")
    ax2.set_ylabel("Radius (km)")
    ax2.set_title("Orbital radius")
    ax2.legend(loc="upper left")
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    output_file = "reference_sweep.png"
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    logger.info(f"Saved sweep plot to {output_file}")
    plt.close()


def main() -> None:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(description="Orbit Propagation Demonstration")
    parser.add_argument("--verbose", action="store_true", help="Show the propagator's debug messages")
    parser.add_argument("--plot", action="store_true", help="Plot sweep trajectories")
    parser.add_argument(
        "--step", type=float, default=SWEEP_STEP_MIN, help="Sweep step in minutes"
    )
    args = parser.parse_args()

    configure_logging(
        level=logging.INFO,
        propagator_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    logger.info("Orbit Propagation Demonstration")
    logger.info("=" * 60)

    for satellite in REFERENCE_SATELLITES:
        compare_with_reference(satellite)
        logger.info("")

    sweeps = {}
    for satellite in REFERENCE_SATELLITES:
        sweeps[satellite["name"]] = sweep(satellite, args.step)

    if args.plot:
        plot_sweeps(sweeps)

    logger.info("=" * 60)
    logger.info("Demonstration complete")


if __name__ == "__main__":
    main()
