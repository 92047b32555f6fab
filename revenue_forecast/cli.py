"""Command line interface for forecasting a monthly revenue CSV.

Example usage::

    revenue-forecast --input-csv data/monthly_revenue.csv --branch "Main" \
        --range nextQuarter --output-file forecast.json

The CSV needs ``date`` and ``revenue`` columns; ``orders`` and ``branch``
are optional.  If ``--average-order-value`` is not given it is computed from
the ``orders`` column over the most recent months.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import RANGE_PRESETS, ForecastConfig
from .data import average_order_value, load_data, select_branch, winsorize_history
from .exceptions import ForecastError
from .model import RevenueForecaster

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forecast monthly revenue for one branch or company-wide.")
    parser.add_argument(
        "--input-csv",
        required=True,
        help="Path to a CSV with date and revenue columns (optional orders and branch).",
    )
    parser.add_argument(
        "--branch",
        default=None,
        help="Forecast only the rows of this branch.  Omit when the CSV holds a single series.",
    )
    horizon = parser.add_mutually_exclusive_group()
    horizon.add_argument(
        "--range",
        choices=sorted(RANGE_PRESETS),
        default=None,
        help="Named forecast range (nextMonth, nextQuarter, nextYear).",
    )
    horizon.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Number of months to forecast.  Defaults to 3 when no range is given.",
    )
    parser.add_argument(
        "--average-order-value",
        type=float,
        default=None,
        help="Revenue per order.  Computed from the orders column when omitted.",
    )
    parser.add_argument("--harmonics", type=int, default=6, help="Fourier harmonic pairs.")
    parser.add_argument("--season-length", type=int, default=12, help="Months per seasonal cycle.")
    parser.add_argument("--recency-decay", type=float, default=0.55, help="Weight decay per 12 months of age.")
    parser.add_argument("--min-weight", type=float, default=0.3, help="Floor on observation weights.")
    parser.add_argument("--epsilon", type=float, default=1e-6, help="Ridge regularisation strength.")
    parser.add_argument(
        "--min-months",
        type=int,
        default=18,
        help="Months of history required before the regression is used.",
    )
    parser.add_argument(
        "--winsorize",
        action="store_true",
        help="Cap the top 5%% of monthly revenue values before fitting.",
    )
    parser.add_argument(
        "--output-file",
        default=None,
        help="Write the forecast to this file (.json for the full result, otherwise CSV).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)-8s - %(module)s - %(message)s",
    )

    try:
        config = ForecastConfig(
            harmonics=args.harmonics,
            season_length=args.season_length,
            recency_decay=args.recency_decay,
            min_weight=args.min_weight,
            epsilon=args.epsilon,
            min_months_for_regression=args.min_months,
        )
        df = load_data(args.input_csv)
        if args.branch is not None:
            df = select_branch(df, args.branch)
        df = df.sort_values("date")
        order_value = args.average_order_value
        if order_value is None:
            # taken from uncapped revenue, matching the uncapped order counts
            order_value = average_order_value(df)
        if args.winsorize:
            df = winsorize_history(df)
        horizon = args.range or (args.horizon if args.horizon is not None else 3)
        result = RevenueForecaster(config).forecast(
            df, horizon=horizon, average_order_value=order_value
        )
    except (ForecastError, KeyError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger.info("Forecast produced with model %s (degraded=%s)", result.model, result.degraded)
    if args.output_file:
        output_path = Path(args.output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if output_path.suffix.lower() == ".json":
            payload = result.to_dict()
            payload["summary"] = result.summary()
            output_path.write_text(json.dumps(payload, indent=2))
        else:
            result.to_frame().to_csv(output_path, index=False)
        print(f"Forecast written to {output_path}")
    else:
        print(f"Model: {result.model}{' (degraded)' if result.degraded else ''}")
        print(result.to_frame().to_string(index=False))
        summary = result.summary()
        print(
            f"Projected revenue {summary['projectedRevenue']:,.0f} over {summary['months']} months, "
            f"{summary['projectedOrders']:,.0f} orders, confidence {summary['confidence']}%"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
