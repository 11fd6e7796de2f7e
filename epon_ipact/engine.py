"""Discrete-event kernel: scheduler, channels, modules and the traffic source."""

from __future__ import annotations

import heapq
import itertools
import math
import random
from dataclasses import dataclass, field
from typing import Any

from epon_ipact.packet import PonPacket
from epon_ipact.params import PKT_SZ_AVG, PKT_SZ_MAX, PKT_SZ_MIN

GENERATE_EVENT = "generateEvent"
"""Self-message a source uses to time its next packet."""


@dataclass(order=True)
class _Event:
    time: float
    seq: int
    module: Module = field(compare=False)
    message: Any = field(compare=False)
    gate: str | None = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class Simulation:
    """Future-event set and clock shared by all modules of one run."""

    def __init__(self, seed: int | None = None) -> None:
        self.now = 0.0
        self.rng = random.Random(seed)
        self.modules: list[Module] = []
        self._queue: list[_Event] = []
        self._counter = itertools.count()

    def _push(self, time: float, module: Module, message: Any, gate: str | None) -> None:
        if math.isnan(time):
            raise ValueError("event time must be a number")
        if time < self.now:
            raise ValueError(f"cannot schedule at {time}, which is before the current time {self.now}")
        heapq.heappush(self._queue, _Event(time, next(self._counter), module, message, gate))

    def schedule(self, time: float, module: Module, message: Any) -> None:
        """Deliver ``message`` to ``module`` as a self-message at ``time``."""
        self._push(time, module, message, None)

    def cancel(self, message: Any) -> bool:
        """Withdraw every pending delivery of this very object; report whether any was found."""
        found = False
        for event in self._queue:
            if event.message is message and not event.cancelled:
                event.cancelled = True
                found = True
        return found

    @property
    def pending(self) -> int:
        """Number of deliveries still waiting."""
        return sum(not event.cancelled for event in self._queue)

    def run(self, until: float | None = None) -> int:
        """Initialise new modules, then process events up to ``until``; return how many ran."""
        if until is not None and until < self.now:
            raise ValueError(f"cannot run until {until}, the clock is already at {self.now}")
        for module in list(self.modules):
            if not module._initialized:
                module._initialized = True
                module.initialize()
        processed = 0
        while self._queue:
            event = self._queue[0]
            if until is not None and event.time > until:
                break
            heapq.heappop(self._queue)
            if event.cancelled:
                continue
            self.now = event.time
            event.module.handle_message(event.message, event.gate)
            processed += 1
        if until is not None and math.isfinite(until):
            self.now = until
        return processed


class Channel:
    """A link into a module's input gate with a propagation delay and optional data rate."""

    def __init__(
        self,
        target: Module,
        target_gate: str,
        delay: float = 0.0,
        datarate: float | None = None,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must not be negative, got {delay}")
        if datarate is not None and datarate <= 0:
            raise ValueError(f"data rate must be positive, got {datarate}")
        self.target = target
        self.target_gate = target_gate
        self.delay = delay
        self.datarate = datarate
        self.transmission_finish_time = 0.0

    @property
    def simulation(self) -> Simulation:
        return self.target.simulation

    def is_busy(self) -> bool:
        """Whether a frame is still being put on the link."""
        return self.simulation.now < self.transmission_finish_time

    def transmit(self, message: Any) -> float:
        """Send ``message`` down the link and return its arrival time.

        Frames on a link with a data rate occupy it for their transmission time
        and arrive once fully received; other messages take only the delay.
        """
        now = self.simulation.now
        duration = 0.0
        if self.datarate is not None and isinstance(message, PonPacket):
            if self.is_busy():
                raise RuntimeError(
                    f"channel to {self.target.name}.{self.target_gate} is busy until "
                    f"{self.transmission_finish_time}"
                )
            duration = message.bit_length / self.datarate
            self.transmission_finish_time = now + duration
        arrival = now + self.delay + duration
        self.simulation._push(arrival, self.target, message, self.target_gate)
        return arrival


class Module:
    """A simulation component that reacts to messages.

    ``gates`` maps each output gate name to its channels, one per gate index.
    ``signals`` keeps every emitted value as ``(time, value)`` per signal name.
    """

    def __init__(
        self,
        simulation: Simulation,
        name: str,
        index: int = 0,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.simulation = simulation
        self.name = name
        self.index = index
        self.params = dict(params or {})
        self.gates: dict[str, list[Channel]] = {}
        self.signals: dict[str, list[tuple[float, Any]]] = {}
        self._initialized = False
        simulation.modules.append(self)

    @property
    def now(self) -> float:
        return self.simulation.now

    @property
    def rng(self) -> random.Random:
        return self.simulation.rng

    def _par(self, name: str) -> Any:
        try:
            return self.params[name]
        except KeyError:
            raise KeyError(f"module {self.name} has no parameter {name!r}") from None

    def initialize(self) -> None:
        """Set up state before the first event; modules without setup need not override it."""

    def handle_message(self, message: Any, gate: str | None) -> None:
        """React to ``message`` arriving on input ``gate`` (``None`` for a self-message)."""
        raise RuntimeError(f"module {self.name} does not accept messages")

    def send(self, message: Any, gate: str, index: int = 0) -> float:
        """Send ``message`` out of output ``gate`` and return its arrival time."""
        try:
            channels = self.gates[gate]
        except KeyError:
            raise KeyError(f"module {self.name} has no output gate {gate!r}") from None
        if not 0 <= index < len(channels):
            raise IndexError(f"gate {gate!r} of module {self.name} has no index {index}")
        return channels[index].transmit(message)

    def schedule_at(self, time: float, message: Any) -> None:
        """Deliver ``message`` back to this module at ``time``."""
        self.simulation.schedule(time, self, message)

    def emit(self, signal: str, value: Any) -> None:
        """Record ``value`` for ``signal`` at the current time."""
        self.signals.setdefault(signal, []).append((self.now, value))


class SourceApp(Module):
    """Generates data frames of random size with exponential inter-arrival times.

    Parameters: ``load`` (fraction of the data rate) and ``dataRate`` (bit/s).
    The first frame leaves at start-up; each later one is sent on ``out``.
    """

    def initialize(self) -> None:
        self.load = float(self._par("load"))
        data_rate = float(self._par("dataRate"))
        self.arrival_rate = self.load * data_rate / (8 * PKT_SZ_AVG)
        if not self.arrival_rate > 0:
            raise ValueError(
                f"load and data rate must give a positive arrival rate, got {self.arrival_rate}"
            )
        self.pkt_interval = self.rng.expovariate(self.arrival_rate)
        self.send(self.generate_new_packet(), "out")
        self.schedule_at(self.now + self.pkt_interval, GENERATE_EVENT)

    def handle_message(self, message: Any, gate: str | None) -> None:
        if isinstance(message, str) and message == GENERATE_EVENT:
            self.send(self.generate_new_packet(), "out")
            self.pkt_interval = self.rng.expovariate(self.arrival_rate)
            self.schedule_at(self.now + self.pkt_interval, message)

    def generate_new_packet(self) -> PonPacket:
        """Return a new data frame of uniformly random size stamped with the current time."""
        size = self.rng.randint(PKT_SZ_MIN, PKT_SZ_MAX)
        return PonPacket(name="app_data", byte_length=size, generation_time=self.now)