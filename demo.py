"""
Satellite Position Prediction Demonstration

This script demonstrates the key capabilities of the sat_predict package:
- TLE parsing, validation and re-formatting
- SGP4/SDP4 propagation to ECI and geodetic coordinates
- Visibility footprint generation
- Ground-station look angles and batch prediction
- Per-call error reporting for decayed orbits
- Optional ground-track plot

Usage:
    python demo.py [--verbose] [--json-logs] [--plot]

Arguments:
    --verbose: Enable debug logging
    --json-logs: Emit log records as JSON lines
    --plot: Save a ground-track and footprint plot (requires matplotlib)

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import argparse
import logging
from datetime import timedelta
from typing import List

import numpy as np

from sat_predict import (
    DecayError,
    FixedClock,
    GeodeticCoordinate,
    GroundStation,
    Prediction,
    Satellite,
    elements_to_lines,
    predict_batch,
)
from sat_predict.config import FALLBACK_ISS_TLE, PredictionConfig
from sat_predict.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

ISS_NAME = FALLBACK_ISS_TLE["name"]
ISS_LINE1 = FALLBACK_ISS_TLE["line1"]
ISS_LINE2 = FALLBACK_ISS_TLE["line2"]

# Highly eccentric deep-space orbit from the SGP4 verification set
DEEP_NAME = "MOLNIYA-TYPE 08195"
DEEP_LINE1 = "1 08195U 75081A   06176.33215444  .00000099  00000-0  11873-3 0   813"
DEEP_LINE2 = "2 08195  64.1586 279.0717 6877146 264.7651  20.2257  2.00491383225656"

# Low orbit with a large drag term that decays within days
DECAY_NAME = "DECAYING TEST OBJECT"
DECAY_LINE1 = "1 90006U 24006A   24001.50000000  .00000000  00000-0  50000-2 0  9996"
DECAY_LINE2 = "2 90006  51.6400 100.0000 0005000  90.0000 270.0000 16.40000000    19"


def demonstrate_tle_parsing(satellite: Satellite) -> None:
    """Log the parsed elements and the re-formatted TLE."""
    elements = satellite.elements
    logger.info(f"Parsed TLE for {satellite.name}")
    logger.info(f"NORAD ID: {elements.catalog_number}")
    logger.info(f"Epoch: {elements.epoch.isoformat()}")
    logger.info(f"Inclination: {elements.inclination_deg:.4f} degrees")
    logger.info(f"Eccentricity: {elements.eccentricity:.7f}")
    logger.info(f"Mean Motion: {elements.mean_motion:.8f} rev/day")
    logger.info(f"B* Drag: {elements.bstar:.8e}")
    logger.info(
        f"Perigee/apogee: {elements.perigee_altitude_km:.1f} / "
        f"{elements.apogee_altitude_km:.1f} km"
    )

    line1, line2 = elements_to_lines(elements)
    logger.debug(f"Reconstructed Line 1: {line1}")
    logger.debug(f"Reconstructed Line 2: {line2}")


def demonstrate_prediction(satellite: Satellite, minutes: List[int]) -> None:
    """Predict at several offsets from epoch."""
    logger.info(
        f"Predictions for {satellite.name} "
        f"({'deep-space' if satellite.is_deep_space else 'near-earth'} branch)"
    )
    for offset in minutes:
        instant = satellite.elements.epoch + timedelta(minutes=offset)
        eci, geo = satellite.predict(instant)
        x, y, z = eci.position
        logger.info(
            f"t={offset:5d}min: x={x:10.2f} y={y:10.2f} z={z:10.2f} km | "
            f"lat={geo.latitude_deg:7.2f} lon={geo.longitude_deg:8.2f} "
            f"alt={geo.altitude:9.2f} km"
        )


def demonstrate_footprint(satellite: Satellite) -> None:
    footprint = satellite.get_footprint(num_points=12)
    lats = np.degrees([point.latitude for point in footprint])
    logger.info(
        f"Footprint of {satellite.name}: {len(footprint)} points, "
        f"latitude span {lats.min():.2f} to {lats.max():.2f} degrees"
    )


def demonstrate_ground_station(satellites: List[Satellite]) -> None:
    """Look angles from a fixed station, computed as one batch."""
    station = GroundStation(
        GeodeticCoordinate.from_degrees(51.4779, -0.0015, 0.046),
        min_elevation=np.radians(10.0),
        name="Greenwich",
    )
    instant = satellites[0].clock.now()
    for result in predict_batch(satellites, instant):
        if not result.ok:
            logger.warning(f"{result.satellite.name}: {result.error}")
            continue
        observation = station.observe(result.satellite, instant)
        logger.info(
            f"{result.satellite.name} from {station.name}: "
            f"az={observation.azimuth_deg:6.2f} el={observation.elevation_deg:6.2f} deg "
            f"range={observation.range_km:9.1f} km"
        )


def demonstrate_error_handling() -> None:
    """A decayed orbit fails per call but the satellite stays usable."""
    satellite = Satellite(DECAY_NAME, DECAY_LINE1, DECAY_LINE2)
    epoch = satellite.elements.epoch
    try:
        satellite.predict(epoch + timedelta(days=30))
    except DecayError as e:
        logger.info(f"Expected decay after 30 days: code {e.code}: {e}")
    _, geo = satellite.predict(epoch)
    logger.info(f"Same satellite at epoch: alt={geo.altitude:.1f} km")


def plot_ground_track(satellite: Satellite, track: List[Prediction]) -> None:
    """Save a longitude/latitude plot of the track and the final footprint."""
    import matplotlib.pyplot as plt

    lons = np.degrees([p.geodetic.longitude for p in track])
    lats = np.degrees([p.geodetic.latitude for p in track])
    footprint = satellite.get_footprint(track[-1].eci.time)

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.scatter(lons, lats, s=4, label="Ground track")
    ax.scatter(
        np.degrees([p.longitude for p in footprint]),
        np.degrees([p.latitude for p in footprint]),
        s=6,
        label="Footprint",
    )
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude (deg)")
    ax.set_ylabel("Latitude (deg)")
    ax.set_title(f"{satellite.name} ground track")
    ax.legend(loc="lower left")
    ax.grid(True, alpha=0.3)

    output_file = "ground_track.png"
    fig.savefig(output_file, dpi=150, bbox_inches="tight")
    logger.info(f"Saved ground-track plot to {output_file}")
    plt.close(fig)


def main() -> None:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(
        description="Satellite Position Prediction Demonstration"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    parser.add_argument(
        "--plot", action="store_true", help="Save a ground-track plot (needs matplotlib)"
    )
    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else PredictionConfig.LOG_LEVEL
    configure_logging(level=level, json_format=args.json_logs)

    logger.info("Satellite Position Prediction Demonstration")
    logger.info("=" * 60)

    iss = Satellite(ISS_NAME, ISS_LINE1, ISS_LINE2)
    # Pin "now" to one hour after epoch so the run is reproducible
    iss.clock = FixedClock(iss.elements.epoch + timedelta(hours=1))
    deep = Satellite(DEEP_NAME, DEEP_LINE1, DEEP_LINE2, clock=iss.clock)

    demonstrate_tle_parsing(iss)
    logger.info("")
    demonstrate_prediction(iss, [0, 30, 60, 90, 120])
    logger.info("")
    demonstrate_prediction(deep, [0, 360, 720, 1440])
    logger.info("")
    demonstrate_footprint(iss)
    logger.info("")
    demonstrate_ground_station([iss, deep])
    logger.info("")
    demonstrate_error_handling()

    if args.plot:
        start = iss.clock.now()
        track = iss.ground_track(start, start + timedelta(minutes=180), timedelta(minutes=1))
        plot_ground_track(iss, track)

    logger.info("=" * 60)
    logger.info("Demonstration complete")


if __name__ == "__main__":
    main()
