"""
Undo history for the portfolio ledger.

A bounded stack of earlier PortfolioState snapshots. The valuation engine
keeps no history of its own; undoing is restoring an earlier state and
recomputing from it.
"""

from typing import Optional

from lotbook.models import PortfolioState


DEFAULT_UNDO_LIMIT = 50


class UndoHistory:
    """Bounded LIFO stack of state snapshots."""

    def __init__(
        self,
        limit: int = DEFAULT_UNDO_LIMIT,
        snapshots: Optional[list[PortfolioState]] = None,
    ):
        """
        Initialize the history.

        Args:
            limit: Maximum number of snapshots kept; oldest are dropped first
            snapshots: Existing snapshots, oldest first
        """
        self.limit = limit
        self._snapshots: list[PortfolioState] = []
        for snapshot in snapshots or []:
            self.push(snapshot)

    def push(self, state: PortfolioState) -> None:
        """Record a snapshot taken before a mutation."""
        if self.limit <= 0:
            return
        self._snapshots.append(state.copy())
        if len(self._snapshots) > self.limit:
            del self._snapshots[0]

    def undo(self) -> Optional[PortfolioState]:
        """
        Pop the most recent snapshot.

        Returns:
            The snapshot, or None if there is nothing to undo
        """
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def clear(self) -> None:
        self._snapshots.clear()

    @property
    def snapshots(self) -> list[PortfolioState]:
        """Snapshots oldest first."""
        return list(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)
