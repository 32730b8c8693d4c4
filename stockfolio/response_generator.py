from __future__ import annotations

from typing import Dict, List

from stockfolio.models import Portfolio, Stock


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


class ResponseGenerator:
    """
    Builds human-readable CLI output.

    **Formatting-only**: all computation is delegated to
    :class:`OptimizerEngine` and :class:`PortfolioService`.
    """

    # ------------------------------------------------------------------ #
    #  Catalog
    # ------------------------------------------------------------------ #

    def stock_table(self, stocks: List[Stock]) -> str:
        if not stocks:
            return "No stocks found."
        lines = [
            f"{'Symbol':<7} {'Name':<28} {'Price':>10} {'Return':>8} {'Vol':>7}  Sector",
            "-" * 80,
        ]
        for s in stocks:
            lines.append(
                f"{s.symbol:<7} {s.name[:28]:<28} {_money(s.price):>10} "
                f"{s.expected_return:>7.1f}% {s.volatility:>6.1f}%  {s.sector}"
            )
        lines.append(f"\n{len(stocks)} stock(s)")
        return "\n".join(lines)

    def stock_detail(self, stock: Stock) -> str:
        return (
            f"📈 {stock.symbol}  {stock.name}\n"
            f"  Price           : {_money(stock.price)}\n"
            f"  Expected return : {stock.expected_return:.2f}%\n"
            f"  Volatility      : {stock.volatility:.2f}%\n"
            f"  Sector          : {stock.sector}\n"
            f"  Market cap      : {_money(stock.market_cap)}"
        )

    def sectors(self, sectors: List[str]) -> str:
        if not sectors:
            return "No sectors available."
        return "Sectors:\n" + "\n".join(f"  • {s}" for s in sectors)

    # ------------------------------------------------------------------ #
    #  Portfolios
    # ------------------------------------------------------------------ #

    def optimization_result(self, portfolio: Portfolio, meta: Dict) -> str:
        header = (
            f"✅ Portfolio **{portfolio.name}** created ({meta['algorithm']}).\n"
            f"  Id        : {portfolio.id}\n"
            f"  Used      : {_money(meta['used_budget'])} of {_money(portfolio.total_budget)}\n"
            f"  Remaining : {_money(meta['remaining_budget'])}\n"
        )
        return header + "\n" + self.portfolio_detail(portfolio)

    def portfolio_detail(self, portfolio: Portfolio) -> str:
        lines = [
            f"{portfolio.name}  [{portfolio.status.value}]  "
            f"risk={portfolio.risk_level.value}  budget={_money(portfolio.total_budget)}",
            "",
        ]
        if portfolio.allocations:
            lines.append(
                f"{'Symbol':<7} {'Shares':>7} {'Invested':>13} {'Exp. return':>12} {'Weight':>8}"
            )
            lines.append("-" * 52)
            for a in portfolio.allocations:
                lines.append(
                    f"{a.symbol:<7} {a.shares:>7} {_money(a.invested_amount):>13} "
                    f"{_money(a.expected_return):>12} {a.weight:>7.2f}%"
                )
        else:
            lines.append("(no allocations)")

        lines += [
            "",
            f"Expected return       : {_money(portfolio.total_expected_return)}",
            f"Risk score            : {portfolio.total_risk:.2f}",
            f"Diversification score : {portfolio.diversification_score:.0f}/100",
        ]
        return "\n".join(lines)

    def portfolio_list(self, portfolios: List[Portfolio]) -> str:
        if not portfolios:
            return "No portfolios yet. Run 'optimize' to create one."
        lines = []
        for p in portfolios:
            lines.append(
                f"{p.id}  {p.name:<20} {p.status.value:<8} "
                f"{_money(p.total_budget):>13}  {len(p.allocations)} holdings"
            )
        return "\n".join(lines)

    def portfolio_stats(self, stats: Dict) -> str:
        lines = [
            f"Holdings              : {stats['total_stocks']}",
            f"Total invested        : {_money(stats['total_invested'])}",
            f"Expected return       : {_money(stats['average_expected_return'])}",
            f"Risk score            : {stats['risk_score']:.2f}",
            f"Diversification score : {stats['diversification_score']:.0f}/100",
        ]
        if stats["sector_distribution"]:
            lines.append("\nSector distribution:")
            for sector, weight in stats["sector_distribution"].items():
                lines.append(f"  {sector:<20} {weight:>6.2f}%")
        if stats["top_holdings"]:
            lines.append("\nTop holdings:")
            for h in stats["top_holdings"]:
                lines.append(
                    f"  {h['symbol']:<7} {h['weight']:>6.2f}%  {_money(h['invested_amount'])}"
                )
        return "\n".join(lines)

    def deleted(self, portfolio_id: str) -> str:
        return f"🗑  Portfolio {portfolio_id} deleted."

    def error(self, exc: Exception) -> str:
        return f"❌ {exc}"
