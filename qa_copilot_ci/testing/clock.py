"""Deterministic stand-ins for the poller's clock and sleep."""

from dataclasses import dataclass, field


@dataclass
class FakeTimer:
    """Clock and sleep pair where sleeping advances the clock instantly."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    def clock(self) -> float:
        """Return the current fake time in seconds."""
        return self.now

    async def sleep(self, seconds: float) -> None:
        """Record the sleep and advance the clock."""
        self.sleeps.append(seconds)
        self.now += seconds
