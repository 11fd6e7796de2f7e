"""Assembly of a complete EPON and a command to simulate it."""

from __future__ import annotations

import argparse
import statistics
from dataclasses import dataclass, field

from epon_ipact.engine import Channel, Simulation, SourceApp
from epon_ipact.olt import Olt
from epon_ipact.onu import Onu
from epon_ipact.params import LIGHT_SPEED, OLT_ONU_DISTANCE, PON_LINK_DATARATE, onu_max_grant
from epon_ipact.splitter import Splitter


@dataclass(frozen=True)
class NetworkConfig:
    """Settings of one simulated network.

    ``data_rate`` is each source's peak rate in bit/s, ``max_polling_cycle``
    is in milliseconds and ``distance`` is the OLT–ONU fibre length in km.
    """

    onus: int = 4
    load: float = 0.5
    data_rate: float = 1e8
    max_polling_cycle: float = 2.0
    ber: float = 0.0
    distance: float = OLT_ONU_DISTANCE
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.onus < 1:
            raise ValueError(f"number of ONUs must be positive, got {self.onus}")
        if not self.load > 0:
            raise ValueError(f"load must be positive, got {self.load}")
        if not self.data_rate > 0:
            raise ValueError(f"data rate must be positive, got {self.data_rate}")
        if not self.max_polling_cycle > 0:
            raise ValueError(f"polling cycle must be positive, got {self.max_polling_cycle}")
        if onu_max_grant(self.max_polling_cycle, self.onus) < 0:
            raise ValueError("polling cycle too short to cover the guard times of all ONUs")
        if not 0.0 <= self.ber <= 1.0:
            raise ValueError(f"bit error rate must lie in [0, 1], got {self.ber}")
        if self.distance < 0:
            raise ValueError(f"distance must not be negative, got {self.distance}")


@dataclass
class NetworkStats:
    """Results of one run; times in seconds, sizes in bits."""

    packets_received: int
    bits_received: int
    corrupted_packets: int
    dropped_packets: int
    duration: float
    latencies: list[float] = field(default_factory=list)

    @property
    def mean_latency(self) -> float:
        """Mean ONU queueing delay, or 0.0 when no frame left an ONU."""
        return statistics.fmean(self.latencies) if self.latencies else 0.0

    @property
    def packet_error_rate(self) -> float:
        """Share of received frames that were corrupted."""
        return self.corrupted_packets / self.packets_received if self.packets_received else 0.0

    @property
    def throughput(self) -> float:
        """Bits received at the OLT per second of simulated time."""
        return self.bits_received / self.duration if self.duration > 0 else 0.0


def build_network(config: NetworkConfig) -> Simulation:
    """Create the OLT, splitter, ONUs and sources, wired together, in a new simulation."""
    sim = Simulation(seed=config.seed)
    delay = config.distance / LIGHT_SPEED
    olt = Olt(
        sim,
        "olt",
        params={
            "NumberOfONUs": config.onus,
            "max_polling_cycle": config.max_polling_cycle,
            "ber": config.ber,
        },
    )
    splitter = Splitter(sim, "splitter")
    onus = [Onu(sim, f"onu[{k}]", index=k) for k in range(config.onus)]
    sources = [
        SourceApp(sim, f"source[{k}]", index=k, params={"load": config.load, "dataRate": config.data_rate})
        for k in range(config.onus)
    ]

    olt.gates["SpltGate_o"] = [Channel(splitter, "OltGate_i", delay, PON_LINK_DATARATE)]
    splitter.gates["OltGate_o"] = [Channel(olt, "SpltGate_i", delay, PON_LINK_DATARATE)]
    splitter.gates["OnuGate_o"] = [Channel(onu, "SpltGate_i", 0.0, PON_LINK_DATARATE) for onu in onus]
    for onu, source in zip(onus, sources):
        onu.gates["SpltGate_o"] = [Channel(splitter, "OnuGate_i", 0.0, PON_LINK_DATARATE)]
        source.gates["out"] = [Channel(onu, "inSrc")]
    return sim


def _collect(sim: Simulation) -> NetworkStats:
    olt = next(module for module in sim.modules if isinstance(module, Olt))
    onus = [module for module in sim.modules if isinstance(module, Onu)]
    latencies = [value for onu in onus for _, value in onu.signals.get("latency", [])]
    return NetworkStats(
        packets_received=getattr(olt, "total_packets_received", 0),
        bits_received=getattr(olt, "total_bits_received", 0),
        corrupted_packets=getattr(olt, "corrupted_packets", 0),
        dropped_packets=sum(getattr(onu, "packet_drop_count", 0) for onu in onus),
        duration=sim.now,
        latencies=latencies,
    )


def run(config: NetworkConfig, until: float) -> NetworkStats:
    """Simulate the network for ``until`` seconds and return its statistics."""
    sim = build_network(config)
    sim.run(until)
    return _collect(sim)


def main(argv: list[str] | None = None) -> int:
    """Run a simulation from the command line and print a summary."""
    defaults = NetworkConfig()
    parser = argparse.ArgumentParser(description="Simulate upstream IPACT scheduling on an EPON.")
    parser.add_argument("--onus", type=int, default=defaults.onus, help="number of ONUs")
    parser.add_argument("--load", type=float, default=defaults.load, help="offered load per source")
    parser.add_argument("--data-rate", type=float, default=defaults.data_rate, help="source peak rate (bit/s)")
    parser.add_argument(
        "--max-polling-cycle", type=float, default=defaults.max_polling_cycle, help="polling cycle (ms)"
    )
    parser.add_argument("--ber", type=float, default=defaults.ber, help="bit error rate")
    parser.add_argument("--distance", type=float, default=defaults.distance, help="OLT-ONU distance (km)")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--time", type=float, default=0.1, help="simulated time (s)")
    args = parser.parse_args(argv)

    try:
        config = NetworkConfig(
            onus=args.onus,
            load=args.load,
            data_rate=args.data_rate,
            max_polling_cycle=args.max_polling_cycle,
            ber=args.ber,
            distance=args.distance,
            seed=args.seed,
        )
        stats = run(config, args.time)
    except ValueError as exc:
        parser.error(str(exc))

    print(f"packets received: {stats.packets_received}")
    print(f"bits received: {stats.bits_received}")
    print(f"corrupted packets: {stats.corrupted_packets}")
    print(f"dropped packets: {stats.dropped_packets}")
    print(f"mean latency: {stats.mean_latency:.6g} s")
    print(f"throughput: {stats.throughput:.6g} bit/s")
    return 0