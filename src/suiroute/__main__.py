"""Command line entry point for quick router checks.

Usage:
    python -m suiroute volume
    python -m suiroute coins [--search usdc]
    python -m suiroute quote 0x2::sui::SUI <usdc-type> --amount-in 1000000000
    python -m suiroute quote 0x2::sui::SUI <usdc-type> --amount-out 500000 --slippage 0.01
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from suiroute.config import SuiNetwork, get_settings
from suiroute.errors import RouterError
from suiroute.router.provider import Router

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="suiroute", description="Trade router client")
    parser.add_argument(
        "--network",
        type=str,
        choices=[n.value for n in SuiNetwork],
        help="Sui network (defaults to SUIROUTE_NETWORK)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("volume", help="Show trade volume over the last 24 hours")

    coins = subparsers.add_parser("coins", help="List supported coin types")
    coins.add_argument("--search", type=str, default="", help="Substring filter")

    quote = subparsers.add_parser("quote", help="Get a complete trade route")
    quote.add_argument("coin_in", type=str, help="Coin type to give")
    quote.add_argument("coin_out", type=str, help="Coin type to receive")
    amounts = quote.add_mutually_exclusive_group(required=True)
    amounts.add_argument("--amount-in", type=int, help="Exact input amount (base units)")
    amounts.add_argument("--amount-out", type=int, help="Exact output amount (base units)")
    quote.add_argument("--slippage", type=float, help="Slippage for --amount-out (0.01 = 1%%)")

    return parser


async def run(args: argparse.Namespace) -> int:
    network: Optional[SuiNetwork] = SuiNetwork(args.network) if args.network else None

    async with Router(network) as router:
        if args.command == "volume":
            volume = await router.get_volume_24hrs()
            print(f"24h volume: {volume:,.2f}")

        elif args.command == "coins":
            coins = await router.search_supported_coins(args.search)
            for coin in coins:
                print(coin)
            print(f"\n{len(coins)} coin(s)")

        elif args.command == "quote":
            route = await router.get_complete_trade_route(
                router.builder.build(
                    args.coin_in,
                    args.coin_out,
                    coin_in_amount=args.amount_in,
                    coin_out_amount=args.amount_out,
                    slippage=args.slippage,
                )
            )
            print(f"In:  {route.coin_in.amount} {route.coin_in.type}")
            print(f"Out: {route.coin_out.amount} {route.coin_out.type}")
            print(f"Spot price: {route.spot_price}")
            print(f"Trade fee: {route.net_trade_fee_percentage:.4%}")
            if route.min_amount_out is not None:
                print(f"Minimum out: {route.min_amount_out}")
            for i, trade_route in enumerate(route.routes):
                hops = " -> ".join(p.protocol_name for p in trade_route.paths)
                print(f"  Route {i}: {trade_route.coin_in.amount} via {hops}")

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args))
    except RouterError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
