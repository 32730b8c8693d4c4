"""
stockfolio/cli.py
-----------------
Stockfolio command-line interface.

Provides commands for:
- optimize: build and save a portfolio from the catalog
- stocks / stock / search / sectors: browse the catalog
- portfolios / show / stats / update / delete: manage saved portfolios
"""
from __future__ import annotations

import argparse
import logging
import sys

from stockfolio.config import CATALOG_PATH, LOG_LEVEL, STORE_PATH
from stockfolio.data_loader import StockCatalog
from stockfolio.enums import Algorithm, PortfolioStatus, RiskLevel
from stockfolio.errors import StockfolioError
from stockfolio.portfolio_service import PortfolioService
from stockfolio.portfolio_store import PortfolioStore
from stockfolio.response_generator import ResponseGenerator


def build_service(args) -> PortfolioService:
    """Wire catalog and store from command-line options."""
    return PortfolioService(
        catalog=StockCatalog(args.catalog),
        store=PortfolioStore(args.store),
    )


def cmd_optimize(args, service: PortfolioService, out: ResponseGenerator) -> str:
    portfolio, meta = service.optimize_and_create(
        user=args.user,
        budget=args.budget,
        risk_level=args.risk,
        symbols=args.symbols,
        algorithm=args.algorithm,
        name=args.name,
    )
    return out.optimization_result(portfolio, meta)


def cmd_stocks(args, service: PortfolioService, out: ResponseGenerator) -> str:
    stocks = service.catalog.list_stocks(
        sector=args.sector,
        min_price=args.min_price,
        max_price=args.max_price,
        limit=args.limit,
    )
    return out.stock_table(stocks)


def cmd_stock(args, service: PortfolioService, out: ResponseGenerator) -> str:
    return out.stock_detail(service.catalog.get_stock(args.symbol))


def cmd_search(args, service: PortfolioService, out: ResponseGenerator) -> str:
    return out.stock_table(service.catalog.search(args.query))


def cmd_sectors(args, service: PortfolioService, out: ResponseGenerator) -> str:
    return out.sectors(service.catalog.sectors())


def cmd_portfolios(args, service: PortfolioService, out: ResponseGenerator) -> str:
    return out.portfolio_list(service.list_portfolios(args.user, status=args.status))


def cmd_show(args, service: PortfolioService, out: ResponseGenerator) -> str:
    return out.portfolio_detail(service.get_portfolio(args.user, args.id))


def cmd_stats(args, service: PortfolioService, out: ResponseGenerator) -> str:
    return out.portfolio_stats(service.portfolio_stats(args.user, args.id))


def cmd_update(args, service: PortfolioService, out: ResponseGenerator) -> str:
    portfolio = service.update_portfolio(
        args.user, args.id, name=args.name, status=args.status
    )
    return out.portfolio_detail(portfolio)


def cmd_delete(args, service: PortfolioService, out: ResponseGenerator) -> str:
    service.delete_portfolio(args.user, args.id)
    return out.deleted(args.id)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user", default="local", help="Owner of saved portfolios")
    common.add_argument("--catalog", default=str(CATALOG_PATH), help="Path to stock catalog CSV")
    common.add_argument("--store", default=str(STORE_PATH), help="Path to portfolio JSON store")
    common.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level")

    p = argparse.ArgumentParser(prog="stockfolio", description="Stock portfolio optimizer")
    sub = p.add_subparsers(dest="cmd", required=True)

    opt = sub.add_parser("optimize", parents=[common], help="Build and save a portfolio")
    opt.add_argument("--budget", type=float, required=True, help="Total amount to invest")
    opt.add_argument(
        "--risk",
        choices=[r.value for r in RiskLevel],
        default=RiskLevel.MEDIUM.value,
        help="Risk tolerance",
    )
    opt.add_argument(
        "--algorithm",
        choices=[a.value for a in Algorithm],
        default=Algorithm.GREEDY.value,
        help="greedy (fast) or knapsack (budgets up to 100,000)",
    )
    opt.add_argument("--symbols", nargs="*", default=None, help="Restrict to these tickers")
    opt.add_argument("--name", default=None, help="Portfolio name")
    opt.set_defaults(func=cmd_optimize)

    st = sub.add_parser("stocks", parents=[common], help="List catalog stocks")
    st.add_argument("--sector", default=None)
    st.add_argument("--min-price", type=float, default=None)
    st.add_argument("--max-price", type=float, default=None)
    st.add_argument("--limit", type=int, default=50)
    st.set_defaults(func=cmd_stocks)

    one = sub.add_parser("stock", parents=[common], help="Show one stock")
    one.add_argument("symbol")
    one.set_defaults(func=cmd_stock)

    se = sub.add_parser("search", parents=[common], help="Search by symbol or name")
    se.add_argument("query")
    se.set_defaults(func=cmd_search)

    sec = sub.add_parser("sectors", parents=[common], help="List sectors")
    sec.set_defaults(func=cmd_sectors)

    pl = sub.add_parser("portfolios", parents=[common], help="List saved portfolios")
    pl.add_argument("--status", choices=[s.value for s in PortfolioStatus], default=None)
    pl.set_defaults(func=cmd_portfolios)

    for name, func, text in (
        ("show", cmd_show, "Show a saved portfolio"),
        ("stats", cmd_stats, "Portfolio statistics"),
        ("delete", cmd_delete, "Delete a saved portfolio"),
    ):
        cp = sub.add_parser(name, parents=[common], help=text)
        cp.add_argument("id")
        cp.set_defaults(func=func)

    up = sub.add_parser("update", parents=[common], help="Rename or archive a portfolio")
    up.add_argument("id")
    up.add_argument("--name", default=None)
    up.add_argument("--status", choices=[s.value for s in PortfolioStatus], default=None)
    up.set_defaults(func=cmd_update)

    return p


def configure_logging(verbose: bool) -> None:
    """Root logging at INFO for --verbose, else STOCKFOLIO_LOG_LEVEL."""
    level = logging.INFO if verbose else LOG_LEVEL
    if isinstance(level, str) and not isinstance(logging.getLevelName(level), int):
        raise ValueError(
            f"Invalid log level {level!r} in STOCKFOLIO_LOG_LEVEL. "
            "Choose from DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    out = ResponseGenerator()
    try:
        configure_logging(args.verbose)
        service = build_service(args)
        print(args.func(args, service, out))
    except (StockfolioError, FileNotFoundError, ValueError) as exc:
        print(out.error(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
