"""Stage timing for ``sourcetree build --bench``."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from rich.console import Console

logger = logging.getLogger(__name__)


class Bench:
    """Times named pipeline stages; silent unless enabled."""

    def __init__(self, enabled: bool = False, console: Optional[Console] = None) -> None:
        self.enabled = enabled
        self.console = console or Console(stderr=True)
        self.timings: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        self.console.print(f"[dim]{name} started[/dim]")
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - started
            self.timings[name] = elapsed
            logger.info("%s finished in %.3f seconds", name, elapsed)
            self.console.print(f"[cyan]{name}[/cyan] finished in {elapsed:.3f} seconds")
