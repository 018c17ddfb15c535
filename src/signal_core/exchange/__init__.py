"""Market-data API clients."""

from signal_core.exchange.feargreed import FearGreedClient
from signal_core.exchange.okx import OKXClient, swap_inst_id

__all__ = ["FearGreedClient", "OKXClient", "swap_inst_id"]
