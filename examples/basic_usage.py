#!/usr/bin/env python3
"""
Basic Usage Example - Market Reference Data Scheduler

Demonstrates the scheduler with a simulated upstream client:
- Configure logging and the engine
- Register a publishing strategy for stock prices
- Add a job and run a tick outside the real trading window
- Inspect results and metrics

Run: python examples/basic_usage.py
"""

import json
import random
from datetime import UTC, datetime

from refdata_app.config.defaults import (
    DefaultConfig,
    LoggingParams,
    RetryParams,
    SchedulerParams,
    ValidationParams,
)
from refdata_app.config.publishing import PublisherConfig, PublishMethod, StdoutPublisherConfig
from refdata_app.engine import SchedulerEngine
from refdata_app.operation.models import DataType
from refdata_app.operation.validators import RequiredFieldsValidator

# A Wednesday at 10:00 IST
MARKET_OPEN = datetime(2024, 1, 3, 4, 30, tzinfo=UTC)


def simulated_quote(symbol: str) -> dict:
    """Stand-in for the upstream quote API; fails now and then."""
    if random.random() < 0.2:
        raise ConnectionError(f"upstream timeout for {symbol}")
    return {
        "symbol": symbol,
        "lastPrice": round(random.uniform(100, 3000), 2),
        "lastUpdateTime": MARKET_OPEN.isoformat(),
    }


def main() -> None:
    config = DefaultConfig(
        retry=RetryParams(max_attempts=3, base_delay_seconds=0.1),
        scheduler=SchedulerParams(symbols="RELIANCE,TCS,INFY,HDFCBANK", warm_start=False),
        validation=ValidationParams(max_age_minutes=15),
        logging=LoggingParams(level="INFO"),
    )
    engine = SchedulerEngine(
        config=config,
        clock=lambda: MARKET_OPEN,
        publisher_config=PublisherConfig("stdout", PublishMethod.STDOUT,
                                         StdoutPublisherConfig(format="json")),
    )

    engine.register_publishing_strategy(
        DataType.STOCK_PRICE,
        validator=RequiredFieldsValidator(["symbol", "lastPrice", "lastUpdateTime"]),
        mapper=lambda p: {"symbol": p["symbol"], "price": p["lastPrice"]},
        timestamp_of=lambda p: p["lastUpdateTime"],
    )
    engine.add_job("stock-price", DataType.STOCK_PRICE, simulated_quote)

    result = engine.schedule_tick("stock-price")
    print(f"\nJob succeeded: {result.succeeded}")
    for op in result.results:
        print(f"  {op.symbol:10} {'OK' if op.succeeded else op.error_kind}")

    print("\nMetrics:")
    print(json.dumps(engine.metrics.snapshot()["counters"], indent=2))

    engine.stop()


if __name__ == "__main__":
    main()
