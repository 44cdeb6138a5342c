"""Block explorer integration and swap history."""

from lptrack.services.explorer.client import ExplorerClient, filter_swap_transactions
from lptrack.services.explorer.swap_history import SwapHistoryService

__all__ = ["ExplorerClient", "SwapHistoryService", "filter_swap_transactions"]
