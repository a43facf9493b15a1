#!/usr/bin/env python3
"""
radialmap CLI - Explorable Radial Knowledge Maps

Usage:
    radialmap stats [dataset]                  Show node/branch/connection counts
    radialmap layout [dataset] [--json]        Print computed positions
    radialmap search [dataset] <query>         Search nodes
    radialmap render [dataset] -o map.svg      Render the map (optionally focused)

When no dataset is given the bundled sample map is used.
"""

import argparse
import json
import logging
import sys
from pathlib import Path


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="radialmap: explorable radial knowledge maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    radialmap stats
    radialmap layout ./heat.yaml --json
    radialmap search ./heat.yaml "cooling"
    radialmap render ./heat.yaml -o heat.svg --select street-trees
    radialmap render --branch health --png -o health.png
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log diagnostics to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show map statistics")
    stats_parser.add_argument("dataset", nargs="?", help="JSON or YAML map file (default: bundled sample)")

    # layout command
    layout_parser = subparsers.add_parser("layout", help="Print computed positions")
    layout_parser.add_argument("dataset", nargs="?", help="JSON or YAML map file (default: bundled sample)")
    layout_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # search command
    search_parser = subparsers.add_parser("search", help="Search nodes by title, id and description")
    search_parser.add_argument("dataset", nargs="?", help="JSON or YAML map file (default: bundled sample)")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--limit", "-n", type=int, default=12, help="Maximum results")

    # render command
    render_parser = subparsers.add_parser("render", help="Render the map as SVG or PNG")
    render_parser.add_argument("dataset", nargs="?", help="JSON or YAML map file (default: bundled sample)")
    render_parser.add_argument("--output", "-o", default="radialmap.svg", help="Output file path")
    focus = render_parser.add_mutually_exclusive_group()
    focus.add_argument("--select", "-s", metavar="NODE_ID", help="Focus a topic node")
    focus.add_argument("--branch", "-b", metavar="KEY", help="Focus a branch")
    focus.add_argument("--center", "-c", action="store_true", help="Focus the center")
    render_parser.add_argument("--png", action="store_true", help="Rasterize to PNG (requires cairo)")
    render_parser.add_argument("--hide-connections", action="store_true", help="Hide the connection layer")
    render_parser.add_argument("--size", default="1920x1080", help="Output size as WxH (e.g., 1920x1080)")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    # Import here to avoid slow startup for --help
    from .core.loader import DatasetError, load_dataset, load_sample_dataset
    from .core.session import MapSession

    try:
        if args.dataset:
            path = Path(args.dataset).absolute()
            print(f"Loading map from {path}...", file=sys.stderr)
            dataset = load_dataset(path)
        else:
            dataset = load_sample_dataset()
    except DatasetError as e:
        print(f"Error loading map: {e}", file=sys.stderr)
        return 1

    session = MapSession(dataset, search_limit=max(1, getattr(args, "limit", 12)))
    for c in session.index.skipped:
        print(f"Skipped dangling connection: {c.a} -- {c.b}", file=sys.stderr)

    # Execute command
    if args.command == "stats":
        return cmd_stats(session, args)
    elif args.command == "layout":
        return cmd_layout(session, args)
    elif args.command == "search":
        return cmd_search(session, args)
    elif args.command == "render":
        return cmd_render(session, args)

    return 0


def cmd_stats(session, args):
    """Handle stats command."""
    stats = session.index.stats()
    center = session.dataset.center

    print(f"# {center.title or 'radialmap'}")
    print("")
    print(f"- **Nodes:** {stats['nodes']} ({stats['ring1']} ring 1, {stats['ring2']} ring 2)")
    print(f"- **Branches:** {stats['branches']}")
    print(f"- **Connections:** {stats['edges']}")
    print(f"- **Skipped Connections:** {stats['skipped_edges']}")
    print("")
    for b in session.index.branches:
        print(f"- `{b.key}` {b.label} @ {b.angle:g}° ({len(session.index.members(b.key))} nodes)")

    return 0


def cmd_layout(session, args):
    """Handle layout command."""
    layout = session.layout

    if args.json:
        payload = {
            "positions": {eid: [round(x, 3), round(y, 3)] for eid, (x, y) in layout.positions.items()},
            "angles": {nid: round(a, 3) for nid, a in layout.angles.items()},
        }
        print(json.dumps(payload, indent=2))
        return 0

    for eid in session.index.entity_ids():
        x, y = layout.positions[eid]
        angle = layout.angles.get(eid)
        suffix = f"  θ={angle:.2f}°" if angle is not None else ""
        print(f"{eid:<32} {x:>9.2f} {y:>9.2f}{suffix}")

    return 0


def cmd_search(session, args):
    """Handle search command."""
    hits = session.search(args.query)

    if not hits:
        print(f"No nodes matching: {args.query}")
        return 0

    print(f"# Nodes matching `{args.query}` ({len(hits)})")
    print("")

    for node_id in hits:
        node = session.index.node(node_id)
        print(f"- `{node_id}` [{node.branch}] {node.title}")

    return 0


def cmd_render(session, args):
    """Handle render command."""
    from .views import render_session, save_png

    if args.select and not session.select(args.select):
        print(f"Node not found: {args.select}", file=sys.stderr)
        return 1
    if args.branch and not session.select_branch(args.branch):
        print(f"Branch not found: {args.branch}", file=sys.stderr)
        return 1
    if args.center:
        session.select_center()
    if args.hide_connections:
        session.toggle_connections(False)

    # Parse size
    try:
        w, h = args.size.lower().split("x")
        width, height = int(w), int(h)
    except ValueError:
        width, height = 1920, 1080

    svg = render_session(session, width=width, height=height)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    if args.png or output.suffix.lower() == ".png":
        if output.suffix.lower() != ".png":
            output = output.with_suffix(".png")
        try:
            save_png(svg, output)
        except (ImportError, OSError) as e:
            print(f"Error: PNG output requires cairosvg and the cairo library ({e})", file=sys.stderr)
            return 1
    else:
        output.write_text(svg, encoding="utf-8")

    print(f"Map saved to: {output} (focus: {session.visual.focus.describe()})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
