"""
Progress reporting for pipeline milestones.

Calculates overall progress from milestone weights and delivers events to a
caller-supplied callback in strict milestone order.
"""

import inspect
import logging
from typing import Awaitable, Callable

from stillmotion.models.schemas import ProgressEvent, ProgressMilestone

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Signature: (event) -> None, sync or async
ProgressCallback = Callable[[ProgressEvent], Awaitable[None] | None]


class ProgressManager:
    """
    Emits progress events for one pipeline run.

    Weights reflect where wall-clock time goes: both remote stages dominate,
    everything else is short. A short run jumps from GENERATING straight to
    DOWNLOADING.

    Example:
        manager = ProgressManager(callback)
        await manager.emit(ProgressMilestone.WARMING_UP, "Warming up...")
        await manager.emit(ProgressMilestone.GENERATING, "Generating...")
    """

    # Progress weights for each milestone (must sum to 100)
    MILESTONE_WEIGHTS = {
        ProgressMilestone.WARMING_UP: 5,    # 0-5%: submit
        ProgressMilestone.GENERATING: 45,   # 5-50%: first stage polling
        ProgressMilestone.FINALIZING: 5,    # 50-55%: settle delay
        ProgressMilestone.EXTENDING: 40,    # 55-95%: extension polling
        ProgressMilestone.DOWNLOADING: 5,   # 95-100%: download
    }

    MILESTONE_ORDER = list(ProgressMilestone)

    def __init__(self, callback: ProgressCallback | None = None):
        """
        Initialize progress manager.

        Args:
            callback: Receives each ProgressEvent (may be None)
        """
        self.callback = callback
        self._last_index = -1
        self.events: list[ProgressEvent] = []

    def calculate_progress(self, milestone: ProgressMilestone) -> float:
        """
        Overall progress at the start of a milestone.

        Args:
            milestone: Milestone being entered

        Returns:
            Overall progress (0-100)
        """
        progress = 0.0
        for current in self.MILESTONE_ORDER:
            if current == milestone:
                break
            progress += self.MILESTONE_WEIGHTS.get(current, 0)
        return min(progress, 100)

    async def emit(self, milestone: ProgressMilestone, message: str) -> ProgressEvent:
        """
        Emit a progress event.

        Args:
            milestone: Milestone being entered
            message: Human-readable status message

        Returns:
            The emitted event

        Raises:
            ValueError: If the milestone does not come after the previous one
        """
        index = self.MILESTONE_ORDER.index(milestone)
        if index <= self._last_index:
            raise ValueError(
                f"Progress milestone {milestone.value} emitted after "
                f"{self.MILESTONE_ORDER[self._last_index].value}"
            )
        self._last_index = index

        event = ProgressEvent(
            milestone=milestone,
            message=message,
            progress=self.calculate_progress(milestone),
        )
        self.events.append(event)
        logger.info(f"Progress {event.progress:.0f}%: {message}")

        if self.callback is None:
            return event

        try:
            result = self.callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            # Never fail due to callback error
            logger.warning(f"Progress callback error: {e}")

        return event


if __name__ == "__main__":
    """Run tests when executed directly."""
    import asyncio

    async def run_tests():
        print("\nRunning ProgressManager tests...\n")

        manager = ProgressManager()

        print("Test 1: Milestone weights sum...", end=" ")
        total = sum(manager.MILESTONE_WEIGHTS.values())
        assert total == 100, f"Expected 100, got {total}"
        print("OK")

        print("Test 2: DOWNLOADING starts at 95%...", end=" ")
        progress = manager.calculate_progress(ProgressMilestone.DOWNLOADING)
        assert progress == 95, f"Expected 95, got {progress}"
        print("OK")

        print("Test 3: Out-of-order emit rejected...", end=" ")
        await manager.emit(ProgressMilestone.GENERATING, "Generating")
        try:
            await manager.emit(ProgressMilestone.WARMING_UP, "Warming up")
        except ValueError:
            print("OK")
        else:
            raise AssertionError("Expected ValueError")

        print("\n" + "=" * 40)
        print("All ProgressManager tests passed!")
        return 0

    asyncio.run(run_tests())
