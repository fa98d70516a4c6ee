"""Post-commit side effects whose failures are logged and counted, never raised."""

import logging
from collections import Counter
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

_counters: Counter = Counter()


def outbox_metrics() -> dict[str, int]:
    """Delivered/failed counts per step name, for the metrics endpoint."""
    return dict(sorted(_counters.items()))


def reset_outbox_metrics() -> None:
    _counters.clear()


class PostCommitOutbox:
    """Queue of best-effort steps run after the primary work is committed."""

    def __init__(self):
        self._steps: list[tuple[str, Callable[[], Awaitable[object]]]] = []

    def add(self, name: str, step: Callable[[], Awaitable[object]]) -> None:
        self._steps.append((name, step))

    async def drain(self) -> dict[str, bool]:
        """Run queued steps in order. Returns step name -> succeeded."""
        outcomes: dict[str, bool] = {}
        steps, self._steps = self._steps, []
        for name, step in steps:
            try:
                await step()
            except Exception:
                logger.exception("Post-commit step %s failed", name)
                _counters[f"{name}.failed"] += 1
                outcomes[name] = False
            else:
                _counters[f"{name}.delivered"] += 1
                outcomes[name] = True
        return outcomes
