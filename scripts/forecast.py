#!/usr/bin/env python3
"""Forecast monthly revenue from a CSV export.

Thin wrapper around :mod:`revenue_forecast.cli` so the forecaster can be run
from a checkout without installing the package::

    python scripts/forecast.py --input-csv data/monthly_revenue.csv --range nextYear
"""

import sys
from pathlib import Path

# Add parent directory to sys.path so that the revenue_forecast package can be
# imported when executing this script directly.  When the package is
# installed, the ``revenue-forecast`` console script does the same job.
sys.path.append(str(Path(__file__).resolve().parents[1]))

from revenue_forecast.cli import main

if __name__ == "__main__":
    sys.exit(main())
