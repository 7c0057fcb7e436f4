"""
Themecards CLI - Command-line interface for the engine.

Usage:
    themecards themes                       List available themes
    themecards validate <theme_file>        Validate a JSON theme
    themecards simulate <theme_id>          Play a seeded game with greedy players
    themecards serve                        Run the HTTP API
"""

import argparse
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Themecards - Theme-driven card game engine",
        prog="themecards",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("THEMECARDS_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $THEMECARDS_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("themes", help="List available themes")

    validate_parser = subparsers.add_parser("validate", help="Validate a JSON theme")
    validate_parser.add_argument("theme_file", help="Path to theme JSON")

    simulate_parser = subparsers.add_parser("simulate", help="Play a game with greedy players")
    simulate_parser.add_argument("theme_id", help="Theme id (see `themecards themes`)")
    simulate_parser.add_argument("--players", type=int, default=2, help="Number of players")
    simulate_parser.add_argument("--seed", type=int, default=None, help="RNG seed")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "themes":
        cmd_themes(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_themes(args):
    """List available themes."""
    from .errors import ConfigurationError
    from .themes import get_theme, list_themes

    for theme_id in list_themes():
        try:
            theme = get_theme(theme_id)
        except ConfigurationError as e:
            print(f"{theme_id:<20} INVALID: {e}")
            continue
        print(
            f"{theme_id:<20} {theme.name} v{theme.version} "
            f"({theme.config.min_players}-{theme.config.max_players} players, {len(theme.cards)} cards)"
        )


def cmd_validate(args):
    """Validate a JSON theme."""
    from .spec_schema import ThemeValidationError, load_theme

    print(f"Validating: {args.theme_file}")
    try:
        theme = load_theme(args.theme_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.theme_file}")
        sys.exit(1)
    except ThemeValidationError as e:
        print("\nErrors:")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)

    print(f"Theme: {theme.name} ({theme.theme_id})")
    print(f"Cards: {len(theme.cards)}, deck: {len(theme.starting_deck)}")
    print(f"Shared pools: {len(theme.shared_resources)}, combos: {len(theme.combos)}")
    print("OK")


def cmd_simulate(args):
    """Play a seeded game where each player plays the first card they can afford."""
    from .session import SessionManager
    from .themes import get_theme

    theme = get_theme(args.theme_id)
    player_ids = [f"p{i + 1}" for i in range(args.players)]
    session = SessionManager().create_session(theme, player_ids, seed=args.seed)

    result = session.start_game()
    if not result.success:
        print(f"Error: {result.error}")
        sys.exit(1)

    state = session.game_state
    print(f"Theme: {theme.name}, players: {', '.join(player_ids)}, seed: {state.random_seed}")

    while not session.game_state.is_over:
        state = session.game_state
        player = state.current_player
        for card in list(player.hand):
            if session.play_card(player.player_id, card.instance_id).success:
                print(f"  turn {state.turn_number}: {player.player_id} plays {card.definition_id}")
                if session.game_state.is_over:
                    break
        if not session.game_state.is_over:
            session.end_turn()

    outcome = session.game_state.outcome
    print(f"\nGame over on turn {outcome.turn}: {outcome.reason.value}")
    if outcome.player_id:
        print(f"{outcome.player_id}: {outcome.outcome} ({outcome.description})")
    for player in session.game_state.players:
        stats = ", ".join(f"{k}={v:g}" for k, v in player.stats.items())
        print(f"  {player.player_id}: {stats}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "themecards.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
