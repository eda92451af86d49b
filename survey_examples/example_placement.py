"""
Example: Walk-Survey Access-Point Placement

Demonstrates the full capture -> dead reckoning -> grid search ->
recommendation pipeline on a two-storey home.

Can run with:
    - Inline walk (default): python example_placement.py
    - Recorded walk:         python example_placement.py --walk my_walk.json

A recorded walk is a JSON list of captures:
    [{"label": "Kitchen", "floor": 1, "signal": -63,
      "compass": 90, "steps": 6, "altitude": 0.0, "type": "room"}, ...]
All keys except label, floor and signal are optional.

Implements:
    - Signal normalization (dBm -> [0, 1], confidence from sensor availability)
    - Step-and-heading placement of captures, per floor
    - Weighted grid search for the access-point position
    - Remediation categories from weak areas and confidence
"""

import argparse
import json
import time
from pathlib import Path
from typing import Dict, List

from wifiplan.calibration import LocationType
from wifiplan.eval import plot_floor_layout, plot_score_map, save_figure
from wifiplan.placement import (
    Catalog,
    PlacementConfig,
    signal_tier,
    suggest_extenders,
)
from wifiplan.sensors import AuxiliarySensors, RawSignal
from wifiplan.service import CaptureRequest, SurveyService

PRESETS = {
    "coarse": PlacementConfig.coarse(),
    "default": PlacementConfig(),
    "fine": PlacementConfig.fine(),
}

# label, floor, dBm, compass deg, steps since previous capture, altitude m, type
INLINE_WALK = [
    ("Living Room", 1, -42, None, 0, 0.0, "room"),
    ("Kitchen", 1, -55, 90, 6, 0.1, "room"),
    ("Dining Room", 1, -63, 180, 5, 0.0, "room"),
    ("Downstairs Hall", 1, -74, 0, 6, 0.1, "hallway"),
    ("Office", 1, -82, 90, 8, 0.0, "room"),
    ("Landing", 2, -70, None, 0, 3.1, "staircase"),
    ("Main Bedroom", 2, -84, 90, 5, 3.0, "room"),
    ("Bathroom", 2, -88, 180, 4, 3.0, "room"),
    ("Guest Room", 2, -79, 270, 9, 3.1, "room"),
]


def load_walk(path: Path) -> List[Dict]:
    """Load a recorded walk from JSON."""
    with open(path, "r") as f:
        entries = json.load(f)
    for entry in entries:
        missing = {"label", "floor", "signal"} - entry.keys()
        if missing:
            raise ValueError(f"Walk entry {entry} is missing {sorted(missing)}")
    return entries


def inline_walk() -> List[Dict]:
    return [
        {"label": label, "floor": floor, "signal": dbm, "compass": compass,
         "steps": steps, "altitude": altitude, "type": kind}
        for label, floor, dbm, compass, steps, altitude, kind in INLINE_WALK
    ]


def to_request(entry: Dict) -> CaptureRequest:
    sensors = AuxiliarySensors(
        compass_deg=entry.get("compass"),
        relative_altitude_m=entry.get("altitude"),
        step_count=entry.get("steps"),
    )
    return CaptureRequest(
        label=entry["label"],
        floor=entry["floor"],
        raw_signal=RawSignal(entry["signal"]),
        sensors=sensors,
        location_type=LocationType[entry.get("type", "room").upper()],
    )


def run_survey(entries: List[Dict], preset: str, save_figs: bool) -> None:
    print("=" * 70)
    print("Walk-Survey Access-Point Placement")
    print("=" * 70)

    with SurveyService(placement=PRESETS[preset]) as service:
        service.start()
        print(f"\nCapturing {len(entries)} points...")
        for entry in entries:
            outcome = service.capture(to_request(entry))
            if not outcome.ok:
                print(f"  Skipped {entry['label']!r}: {outcome.error}")
                continue
            point = outcome.value
            x, y, z = point.position
            print(f"  F{point.floor} {point.label:<18} "
                  f"s={point.strength:.2f} c={point.confidence:.2f} "
                  f"at ({x:6.2f}, {y:6.2f}, {z:5.2f})  {signal_tier(point.strength).value}")
        service.end()

        print(f"\nRunning placement analysis ({preset} grid)...")
        start = time.time()
        outcome = service.analyze_async().result()
        print(f"  Time: {time.time() - start:.3f} s")

        if not outcome.ok:
            print(f"\nAnalysis failed: {outcome.error}")
            return
        result = outcome.value
        pos = result.recommended_position

        print("\n" + "=" * 70)
        print("RESULTS")
        print("=" * 70)
        print(f"Recommended AP: floor {pos.floor}, x = {pos.x:.2f} m, y = {pos.y:.2f} m")
        print(f"Confidence:     {result.confidence_score:.2f}")
        print(f"Average signal: {result.average_signal:.2f}")
        print(f"Coverage:       {result.coverage.coverage_percentage:.0f}% well covered")
        print()
        for summary in result.per_floor_summary:
            print(f"Floor {summary.floor}: {summary.point_count} points, "
                  f"avg {summary.average_signal:.2f}, {summary.weak_count} weak, "
                  f"best ({summary.best_position[0]:.2f}, {summary.best_position[1]:.2f})")

        if result.weak_areas:
            print("\nWeak areas:")
            for hint in suggest_extenders(result.weak_areas):
                print(f"  F{hint.floor} {hint.label}: {hint.kind.value} ({hint.reason})")

        print("\nPredicted signal with AP in place:")
        for pred in result.signal_prediction.predictions:
            print(f"  F{pred.floor} {pred.label:<18} "
                  f"{pred.measured:.2f} -> {pred.predicted:.2f} ({pred.gain:+.2f})")

        recs = service.recommend(result, Catalog.default())
        if recs:
            print("\nRecommendations:")
            for entry in recs.categories:
                print(f"  [{entry.severity.name}] {entry.category.value}: {entry.reason}")
                for product in entry.products:
                    stock = "" if product.in_stock else " (out of stock)"
                    print(f"      - {product.name} ${product.price:.2f}{stock}")
        else:
            print("\nCoverage is fine; nothing to recommend.")

        if save_figs:
            import matplotlib.pyplot as plt

            figs_dir = Path(__file__).parent / "figs"
            layout = service.layout()
            for floor in layout.floor_numbers:
                fig = plot_floor_layout(layout, result, floor=floor)
                save_figure(fig, figs_dir, f"survey_floor{floor}")
                plt.close(fig)
                fig = plot_score_map(service.optimizer, layout.floors[floor], result)
                save_figure(fig, figs_dir, f"score_floor{floor}")
                plt.close(fig)
            print(f"\nFigures saved to: {figs_dir}/")


def main():
    """Main execution with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Walk-survey access-point placement example",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the inline two-storey walk (default)
  python example_placement.py

  # Analyze a recorded walk on the dense grid and save figures
  python example_placement.py --walk my_walk.json --preset fine --save-figs

Available presets: """ + ", ".join(PRESETS.keys()),
    )
    parser.add_argument(
        "--walk", type=str, default=None,
        help="Path to a recorded walk (JSON list of captures)"
    )
    parser.add_argument(
        "--preset", type=str, default="default", choices=PRESETS.keys(),
        help="Grid resolution preset (default: default)"
    )
    parser.add_argument(
        "--save-figs", action="store_true",
        help="Save layout and score-map figures to ./figs"
    )

    args = parser.parse_args()

    if args.walk:
        walk_path = Path(args.walk)
        if not walk_path.exists():
            print(f"Error: Walk file not found at '{args.walk}'")
            return
        entries = load_walk(walk_path)
    else:
        entries = inline_walk()

    run_survey(entries, args.preset, args.save_figs)


if __name__ == "__main__":
    main()
