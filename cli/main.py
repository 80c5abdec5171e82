#!/usr/bin/env python3

import argparse
import json
import logging
from collections.abc import Sequence

from tillrules.application.quotes import QuoteRequest, format_quote, quote_to_dict, run_quote
from tillrules.engine import DiscountEngine, validate_buy_get_rule, validate_rule_config
from tillrules.runtime import configure_logging, load_campaign, load_cart, set_log_level


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


def cmd_quote(args: argparse.Namespace) -> int:
    try:
        campaign = load_campaign(args.campaign)
        cart = load_cart(args.cart)
    except (FileNotFoundError, ValueError) as exc:
        _print_error(str(exc))
        return 1

    outcome = run_quote(QuoteRequest(campaign=campaign, items=cart.context, catalog=cart.catalog))
    if outcome.status == "error":
        assert outcome.error is not None
        _print_error(outcome.error)
        return 1

    assert outcome.result is not None
    if args.json:
        print(json.dumps(quote_to_dict(outcome.result), indent=2))
    else:
        print(format_quote(outcome.result))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Report every invalid rule slot in a campaign file."""
    try:
        campaign = load_campaign(args.campaign)
    except (FileNotFoundError, ValueError) as exc:
        _print_error(str(exc))
        return 1

    problems = 0
    for label, config in campaign.iter_rule_slots():
        validation = validate_rule_config(config)
        for error in validation.errors:
            print(f"{label}: {error}")
            problems += 1

    for rule in campaign.buy_get_rules:
        for error in validate_buy_get_rule(rule).errors:
            print(f"buy_get[{rule.id}]: {error}")
            problems += 1

    if problems:
        print(f"{problems} problem(s) found in campaign {campaign.id}")
        return 1

    engine = DiscountEngine(campaign)
    print(f"Campaign {campaign.id} OK: {len(engine.describe_pipeline())} rules in pipeline")
    for kind, rule_id in engine.describe_pipeline():
        print(f"  {kind:<11}{rule_id}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from tillrules.runtime import load_campaigns_dir
    from tillrules.runtime.quote_server import create_app

    campaigns = load_campaigns_dir(args.campaigns_dir)
    if not campaigns:
        print("No campaigns found; nothing to serve.")
        return 1
    uvicorn.run(create_app(campaigns), host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Discount campaign utilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  quote <campaign> <cart> [--json]
                             Compute the discount breakdown of a cart
  check <campaign>           Validate every rule in a campaign file
  serve [--campaigns-dir]    Start the quote server

Notes:
  campaign and cart files are TOML; see tests/ for examples
""",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Log rule evaluation details")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    quote_parser = subparsers.add_parser("quote", help="Compute the discount breakdown of a cart")
    quote_parser.add_argument("campaign", help="Campaign TOML file")
    quote_parser.add_argument("cart", help="Cart TOML file")
    quote_parser.add_argument("--json", action="store_true", help="Print the breakdown as JSON")

    check_parser = subparsers.add_parser("check", help="Validate every rule in a campaign file")
    check_parser.add_argument("campaign", help="Campaign TOML file")

    serve_parser = subparsers.add_parser("serve", help="Start the quote server")
    serve_parser.add_argument(
        "--campaigns-dir", default=None, help="Directory of campaign TOML files (default: config/campaigns)"
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to bind to (default: 8080)")

    args = parser.parse_args(argv)

    configure_logging()
    if args.verbose:
        set_log_level(logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "quote":
        return cmd_quote(args)
    if args.command == "check":
        return cmd_check(args)
    if args.command == "serve":
        return cmd_serve(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
