"""Allow running as: python -m signal_core [--config path] score|backtest ..."""

import sys

from signal_core.cli import main

sys.exit(main())
