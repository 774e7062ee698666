"""Price refresh.

Fetches the latest close for every non-cash asset a user holds and
stores it in the price history. Upstream calls run on a bounded
thread pool with a per-call timeout; a symbol that fails or times out
is logged and reported back instead of failing the refresh.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Optional

from sqlalchemy.orm import Session

from src.api_errors import parse_id, require_fields
from src.db.engine import atomic
from src.db.models import Asset, AssetPrice, Holding
from src.logging_config import log_performance
from src.services.providers import PriceProvider, PriceQuote
from src.valuation.config import DEFAULT_VALUATION_CONFIG, ValuationConfig
from src.valuation.models import RefreshResult

logger = logging.getLogger(__name__)


class PriceRefresher:
    """Pull latest closes from a price provider into ``asset_history``."""

    def __init__(
        self,
        session: Session,
        provider: PriceProvider,
        config: Optional[ValuationConfig] = None,
    ):
        self.session = session
        self.provider = provider
        self.config = config or DEFAULT_VALUATION_CONFIG

    def held_assets(self, user_id: int) -> list[Asset]:
        """Distinct non-cash assets the user currently holds."""
        assets = (
            self.session.query(Asset)
            .join(Holding, Holding.asset_id == Asset.asset_id)
            .filter(Holding.user_id == user_id)
            .distinct()
            .order_by(Asset.asset_ticker)
            .all()
        )
        return [a for a in assets if not a.is_cash]

    @log_performance(threshold_ms=5000)
    def refresh_prices(self, user_id: Any) -> RefreshResult:
        """Refresh the latest close of each held asset.

        Returns:
            RefreshResult with the number of rows written and the
            symbols that could not be fetched.
        """
        require_fields({"userId": user_id}, message="User ID is required")
        user_id = parse_id(user_id, "userId")

        assets = self.held_assets(user_id)
        if not assets:
            return RefreshResult()

        quotes, failed = self._fetch_all([a.asset_ticker for a in assets])

        updated = 0
        with atomic(self.session):
            for asset in assets:
                quote = quotes.get(asset.asset_ticker)
                if quote is None:
                    continue
                self._upsert(asset, quote)
                updated += 1

        if failed:
            logger.warning(f"Price refresh skipped {len(failed)} symbols: {', '.join(failed)}")
        logger.info(f"Refreshed {updated} prices for user {user_id}")
        return RefreshResult(updated_count=updated, failed_symbols=failed)

    def _fetch_all(self, tickers: list[str]) -> tuple[dict[str, PriceQuote], list[str]]:
        workers = max(1, min(self.config.refresh_workers, len(tickers)))
        timeout = self.config.fetch_timeout_seconds
        quotes: dict[str, PriceQuote] = {}
        failed: list[str] = []

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="price-refresh")
        try:
            futures: dict[str, Future] = {
                ticker: executor.submit(self.provider.get_latest_close, ticker)
                for ticker in tickers
            }
            # One deadline for the whole batch; calls run in parallel.
            deadline = time.monotonic() + timeout
            for ticker, future in futures.items():
                try:
                    quote = future.result(timeout=max(0.0, deadline - time.monotonic()))
                except FutureTimeoutError:
                    future.cancel()
                    logger.warning(f"Price fetch for {ticker} timed out after {timeout}s")
                    failed.append(ticker)
                    continue
                except Exception as e:
                    logger.warning(f"Price fetch for {ticker} failed: {e}")
                    failed.append(ticker)
                    continue

                if quote is None:
                    failed.append(ticker)
                else:
                    quotes[ticker] = quote
        finally:
            # Do not block the request on calls that already timed out.
            executor.shutdown(wait=False, cancel_futures=True)

        return quotes, failed

    def _upsert(self, asset: Asset, quote: PriceQuote) -> None:
        row = (
            self.session.query(AssetPrice)
            .filter(AssetPrice.asset_id == asset.asset_id, AssetPrice.date == quote.date)
            .first()
        )
        if row is None:
            self.session.add(
                AssetPrice(asset_id=asset.asset_id, date=quote.date, close_price=quote.close)
            )
        else:
            row.close_price = quote.close
