"""
divelog - dive list demo

Builds a synthetic repetitive dive series, groups it into trips, and prints
the trip list, the per-dive metrics and the residual tissue loading each dive
starts with.

Usage:
    python main.py                              # Defaults from config.yaml
    python main.py --dives 8 --interval 20      # 8 dives, 20 h apart
    python main.py --threshold-hours 24         # Tighter trip grouping
    python main.py --fO2 0.32 --no-autogroup    # Nitrox, leave dives loose
"""

import argparse
import logging
from datetime import datetime, timezone

from divelog import DiveList, DiveStore, GasMix, ProfileGenerator, load_config
from divelog.buhlmann_constants import pressure_to_depth
from divelog.metrics import get_dive_gas, total_weight

# 2024-06-01 08:00 UTC
SERIES_START = 1717228800


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fmt(when: int) -> str:
    return datetime.fromtimestamp(when, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def build_series(args: argparse.Namespace) -> DiveStore:
    """Synthetic dives, `args.interval` hours apart with a gap in the middle."""
    gen = ProfileGenerator()
    interval = int(args.interval * 3600)
    gasmix = GasMix(o2=int(round(args.fO2 * 1000))) if args.fO2 else GasMix()

    first = gen.generate_series(
        SERIES_START, args.dives // 2, interval, args.depth, args.time,
        gasmix=gasmix, weight=args.weight, location="North reef",
    )
    # Second half a week later, so it ends up in its own trip
    later = SERIES_START + (args.dives // 2) * interval + 7 * 24 * 3600
    second = gen.generate_series(
        later, args.dives - len(first), interval, args.depth, args.time,
        gasmix=gasmix, weight=args.weight, location="South wall",
    )
    for n, dive in enumerate(second, start=len(first) + 1):
        dive.number = n
    return DiveStore(first + second)


def print_trips(divelist: DiveList) -> None:
    print("--- TRIPS ---")
    if not len(divelist.registry):
        print("(no trips)")
    for trip in divelist.registry:
        kind = "autogen" if trip.autogen else "manual"
        print(
            f"trip {-trip.index:>3}  {_fmt(trip.when)}  {trip.location or '-':<12} "
            f"{trip.member_count} dives ({kind})"
        )


def print_dives(divelist: DiveList) -> None:
    print("\n--- DIVES ---")
    print(f"{'#':>3}  {'start':<16}  {'depth':>6}  {'gas':<10} {'kg':>4}  "
          f"{'SAC':>5}  {'OTU':>4}  {'ceiling':>7}")
    for dive in divelist.store:
        tolerance = divelist.init_decompression(dive)
        ceiling = pressure_to_depth(tolerance, dive.get_surface_pressure() / 1000.0)
        print(
            f"{dive.number:>3}  {_fmt(dive.when):<16}  {dive.max_depth:>5.1f}m  "
            f"{get_dive_gas(dive).label:<10} {total_weight(dive):>4.0f}  "
            f"{dive.sac:>5.1f}  {dive.otu:>4}  {ceiling:>6.1f}m"
        )


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for quick overrides."""
    parser = argparse.ArgumentParser(description="divelog - trip grouping and dive metrics demo")
    parser.add_argument("--dives", type=int, default=6, help="Number of dives in the series")
    parser.add_argument("--interval", type=float, default=4.0, help="Hours between dive starts")
    parser.add_argument("--depth", type=float, default=18.0, help="Dive depth in meters")
    parser.add_argument("--time", type=float, default=30.0, help="Bottom time in minutes")
    parser.add_argument("--fO2", type=float, help="O2 fraction (e.g. 0.32 for EAN32), air if omitted")
    parser.add_argument("--weight", type=float, default=6.0, help="Ballast in kg")
    parser.add_argument("--threshold-hours", type=float, help="Override the trip threshold")
    parser.add_argument("--no-autogroup", action="store_true", help="Do not group dives into trips")
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config YAML (default: config.yaml next to the package)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(args.verbose)

    config = load_config(args.config, trip_threshold_override=args.threshold_hours)
    divelist = DiveList(build_series(args), config)
    divelist.set_autogroup(config.autogroup and not args.no_autogroup)

    print_trips(divelist)
    print_dives(divelist)


if __name__ == "__main__":
    main()
