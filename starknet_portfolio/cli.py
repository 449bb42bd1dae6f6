"""Command-line interface for the Starknet portfolio engine."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import load_config
from .logging_setup import configure_logging
from .models import filter_nonzero_holdings
from .services import LoggingExecutor, Rebalancer, build_portfolio_service


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="starknet-portfolio",
        description="Starknet portfolio valuation and rebalancing",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    portfolio_parser = sub.add_parser("portfolio", help="Value a wallet's holdings")
    portfolio_parser.add_argument("wallet", help="Wallet address")
    portfolio_parser.add_argument(
        "--nonzero",
        action="store_true",
        help="Only show holdings with a positive USD value",
    )

    sub.add_parser("plan", help="Single dry-run sweep, print planned actions")

    rebalance_parser = sub.add_parser("rebalance", help="Continuous rebalance loop")
    rebalance_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Sweep interval in minutes (overrides config)",
    )

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "portfolio":
        service = build_portfolio_service(config)
        snapshot = await service.fetch_portfolio(args.wallet)
        output = snapshot.to_dict()
        if args.nonzero:
            keep = {h.asset.address for h in filter_nonzero_holdings(snapshot)}
            output["tokens"] = [t for t in output["tokens"] if t["address"] in keep]
        print(json.dumps(output, indent=2))
    elif args.command == "plan":
        rebalancer = Rebalancer(config, executor=LoggingExecutor())
        results = await rebalancer.sweep()
        print(
            json.dumps(
                [
                    {
                        "wallet_address": r.policy.wallet_address,
                        "total_value_usd": (
                            r.snapshot.total_value_usd if r.snapshot else None
                        ),
                        "actions": [
                            {
                                "direction": a.direction.value,
                                "category": a.asset_category.value,
                                "delta_usd": round(a.delta_usd, 2),
                            }
                            for a in r.actions
                        ],
                        "error": r.error,
                    }
                    for r in results
                ],
                indent=2,
            )
        )
    elif args.command == "rebalance":
        await Rebalancer(config).run_continuous(args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))
