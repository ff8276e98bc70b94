#!/usr/bin/env python3
"""
Batch Response-Time Script

This script resolves the fastest fire-station response band for every
small area and writes the per-area table plus two summary tables.

Usage:
    python batch_response_times.py [--stations PATH] [--isochrones PATH]
        [--areas PATH] [--points PATH] [--output PATH]
        [--crs EPSG:2157] [--time-bands 3 5 8 10 12 15 30]
"""

import argparse
import logging
import sys
from pathlib import Path

from firecover import config, data, errors, pipeline, reports
from firecover.assemble import write_result_table


def main():
    parser = argparse.ArgumentParser(description='Resolve small-area fire response times')
    parser.add_argument('--stations', help='Station metadata CSV (origin_id, is_full_time)')
    parser.add_argument('--isochrones', help='Isochrone layer (origin_id, time_band_upper_bound)')
    parser.add_argument('--areas', help='Small-area polygon layer (area_id)')
    parser.add_argument('--points', help='Optional small-area point layer (area_id)')
    parser.add_argument('--output', help='Output CSV path')
    parser.add_argument('--crs', default=config.CRS, help='Target CRS shared by all layers')
    parser.add_argument('--time-bands', type=float, nargs='+', default=None,
                        help='Ascending time-band upper bounds in minutes')
    parser.add_argument('--tie-delimiter', default=config.TIE_DELIMITER,
                        help='Separator for tied station ids in the output')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    print("🚒 firecover Batch Response Times")
    print("=" * 50)

    try:
        cfg = config.make_config(crs=args.crs, time_bands=args.time_bands, tie_delimiter=args.tie_delimiter)
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    # Load datasets
    print("\n1. Loading datasets...")
    try:
        origins = data.load_origins(args.stations)
        isochrones = data.load_isochrones(args.isochrones)
        areas = data.load_area_polygons(args.areas)
        points = data.load_optional_area_points(args.points)
        print(f"✅ Loaded {len(origins)} stations")
        print(f"✅ Loaded {len(isochrones)} isochrones")
        print(f"✅ Loaded {len(areas)} small areas")
        if points is None:
            print("   No point layer; using points on surface")
        else:
            print(f"✅ Loaded {len(points)} area points")
    except (FileNotFoundError, errors.InputTableError) as e:
        print(f"❌ Error loading data: {e}")
        return 1

    # Resolve coverage
    print("\n2. Resolving coverage...")
    print(f"   CRS: {cfg.crs}")
    print(f"   Time bands: {list(cfg.time_bands)}")
    try:
        result = pipeline.compute_response_times(origins, isochrones, areas, points, cfg=cfg)
    except errors.CoverageError as e:
        print(f"❌ Coverage run aborted: {e}")
        return 1

    # Write
    print("\n3. Writing results...")
    out_path = write_result_table(result, args.output, tie_delimiter=cfg.tie_delimiter)
    bands = reports.band_table(result, cfg.time_bands)
    crews = reports.provider_type_table(result)
    bands_path = out_path.with_name(out_path.stem + '_bands.csv')
    crews_path = out_path.with_name(out_path.stem + '_crew_types.csv')
    bands.to_csv(bands_path, index=False, encoding='utf-8')
    crews.to_csv(crews_path, index=False, encoding='utf-8')

    # Summary
    print("\n🎯 Coverage Summary:")
    for phase, count in result['resolution_phase'].value_counts().items():
        print(f"   {phase}: {count} areas")
    print(f"\n✅ Results written to {Path(out_path).resolve()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
