"""
Uncover CLI - Command-line interface for the engine.

Usage:
    uncover validate <catalog_file>   Validate a card catalog (exit 1 on errors)
    uncover demo                      Run the Psychic-3 uncover scenario
    uncover serve                     Run the REST API with uvicorn

Log level comes from --log-level, then UNCOVER_LOG_LEVEL, then WARNING.
"""

import argparse
import json
import logging
import os
import sys


def main(argv=None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        description="Uncover - Card effect resolution engine",
        prog="uncover",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("UNCOVER_LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a card catalog")
    validate_parser.add_argument("catalog_file", help="Path to catalog JSON file")

    # Demo command
    subparsers.add_parser("demo", help="Run the Psychic-3 uncover scenario")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "demo":
        return cmd_demo(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


def cmd_validate(args) -> int:
    """Validate a card catalog."""
    from .catalog import validate_catalog

    print(f"Validating: {args.catalog_file}")
    try:
        with open(args.catalog_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {args.catalog_file}")
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}")
        return 1

    result = validate_catalog(data)

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        print(f"\n{len(result.errors)} error(s), {len(result.warnings)} warning(s)")
        return 1

    print(f"\nOK: 0 errors, {len(result.warnings)} warning(s)")
    return 0


def cmd_demo(args) -> int:
    """
    Run the Psychic-3 uncover scenario.

    The player's decisions are answered with FirstLegalPolicy too, except
    the discard, which picks Water-1 as in the scripted scenario.
    """
    from .bots import FirstLegalPolicy
    from .engine_core.state import Side
    from .games.main_set import psychic3_uncover

    engine = psychic3_uncover()
    player_policy = FirstLegalPolicy()

    hate_0 = next(c for c in engine.state.player(Side.PLAYER).hand if c.name == "Hate-0")
    engine.play_card(Side.PLAYER, hate_0.instance_id, lane_index=0)

    while engine.action_required is not None:
        decision = engine.action_required
        print(f"[{decision.actor.value}] {decision.prompt}: {list(decision.options)}")
        water = [v for v in decision.options if v.startswith("Water-1")]
        if water:
            values = water[:1]
        else:
            values = player_policy.select_choice(engine.state.clone(), decision).chosen_values
        print(f"  -> {values}")
        engine.submit(decision.actor, values)

    print("\nGame log:")
    for line in engine.state.log:
        print(f"  {line}")

    print(f"\nExecuted: {engine.executed}")
    print(f"Skipped: {[s.effect_id for s in engine.skipped]}")
    print(f"Pending: {len(engine.pending)}")
    return 0


def cmd_serve(args) -> int:
    """Run the REST API."""
    import uvicorn

    uvicorn.run(
        "uncover.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
