#!/usr/bin/env python3
"""
Floor Plan Markup - command line entry point
Lists, summarizes, exports and imports saved markup designs
"""

import argparse
import json
import os
import sys

# Add src directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from calculations.takeoff import summarize_design
from models.database import close_database, initialize_database
from models.design import DesignRepository
from models.serialization import design_state_from_dict, design_state_to_dict
from utils.general_utils import get_application_title, get_version_info


def _version_string():
    info = get_version_info()
    bundled = " (bundled)" if info["bundled"] else ""
    return f"%(prog)s {info['version']}{bundled} on Python {info['python']}"


def build_parser():
    parser = argparse.ArgumentParser(prog="markup-tool", description=get_application_title())
    parser.add_argument("--db", help="Database file (default: settings or ~/Documents/FloorPlanMarkup)")
    parser.add_argument("--version", action="version", version=_version_string())
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List saved designs")
    list_parser.add_argument("--project", type=int, help="Only designs for this project id")

    summary_parser = subparsers.add_parser("summary", help="Quantity takeoff for a saved design")
    summary_parser.add_argument("design_id", type=int)
    summary_parser.add_argument("--json", action="store_true", help="Print the summary as JSON")

    export_parser = subparsers.add_parser("export", help="Write a saved design to a JSON file")
    export_parser.add_argument("design_id", type=int)
    export_parser.add_argument("output")

    import_parser = subparsers.add_parser("import", help="Save a design JSON file to the database")
    import_parser.add_argument("input")
    import_parser.add_argument("--name", help="Design name (default: file name)")
    import_parser.add_argument("--project", type=int)
    return parser


def _print_summary(summary, warnings):
    print("Equipment:")
    for name, count in summary.equipment_counts.items():
        print(f"  {name}: {count}")
    print("Cable (m):")
    for voltage, length in summary.cable_length_by_voltage.items():
        print(f"  {voltage.upper()}: {length:.2f}")
    for cable_type, length in summary.cable_length_by_type.items():
        print(f"    {cable_type}: {length:.2f}")
    print(f"  Terminations: {summary.termination_count}")
    print("Containment (m):")
    for name, sizes in summary.containment_length.items():
        for size, length in sizes.items():
            print(f"  {name} {size}: {length:.2f}")
    print(f"Zones: {summary.zone_count} ({summary.zone_area_m2:.2f} m²)")
    print(f"Roof masks: {summary.roof_mask_count} ({summary.roof_area_m2:.2f} m²)")
    print(f"PV panels: {summary.panel_count} ({summary.capacity_kwp:.2f} kWp)")
    print(f"Open tasks: {summary.open_task_count}")
    for warning in warnings:
        print(f"Warning: {warning}")


def run(args) -> int:
    repository = DesignRepository()

    if args.command == "list":
        designs = repository.list_designs(args.project)
        if not designs:
            print("No saved designs")
        for design in designs:
            ratio = f"{design.scale_ratio:.6f} m/px" if design.scale_ratio else "no scale"
            print(f"{design.id}\t{design.name}\t{design.design_purpose or '-'}\t{ratio}")
        return 0

    if args.command == "summary":
        result = summarize_design(repository.load(args.design_id))
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            _print_summary(result.data, result.warnings)
        return 0

    if args.command == "export":
        state = repository.load(args.design_id)
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(design_state_to_dict(state), f, indent=2)
        print(f"Exported design {args.design_id} to {args.output}")
        return 0

    if args.command == "import":
        with open(args.input, encoding='utf-8') as f:
            state = design_state_from_dict(json.load(f))
        name = args.name or os.path.splitext(os.path.basename(args.input))[0]
        design_id = repository.save(state, name, project_id=args.project)
        print(f"Imported {args.input} as design {design_id}")
        return 0

    return 2


def main(argv=None):
    """Console entry point; returns the process exit code"""
    args = build_parser().parse_args(argv)
    initialize_database(args.db)
    try:
        return run(args)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        close_database()


if __name__ == '__main__':
    sys.exit(main())
