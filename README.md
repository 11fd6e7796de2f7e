# epon_ipact

A discrete-event simulation of upstream traffic in an Ethernet Passive Optical
Network (EPON). The OLT shares the upstream link among the ONUs with IPACT
(Interleaved Polling with Adaptive Cycle Time).

The modelled network holds:

- one **OLT** (optical line terminal). It first pings every ONU to learn its
  round-trip time. Then, cycle after cycle, it sorts the ONUs by total latency
  (round trip plus grant transmission time plus guard time) and sends each one
  a grant. The grant times are staggered so that each ONU's data arrives right
  after the previous ONU's. A grant is the ONU's last request, capped at a
  maximum derived from the polling cycle. Received data frames are counted,
  and each one is marked corrupted at random, with the chance given by the bit
  error rate.
- a **splitter**. It broadcasts downstream frames and pings to every ONU, and
  forwards upstream traffic to the OLT. Upstream frames wait in a queue while
  the OLT link is busy. When an ONU link is busy, a downstream frame is queued
  only for the ONU it is addressed to; the other ONUs lose it.
- several **ONUs** (optical network units). Each one buffers frames from its
  source, up to 10 MB, and drops frames beyond that. It sends frames while its
  grant lasts, then reports its backlog to the OLT in a request.
- one **source** per ONU. A source generates frames of 64–1542 bytes, uniformly
  at random, with exponential inter-arrival times. The rate is a given load of
  the source's peak data rate.

Links run at 1 Gbit/s. The OLT–splitter fibre adds a propagation delay of
distance / (2·10⁵ km/s).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
epon-ipact --help
epon-ipact --onus 8 --load 0.7 --time 0.5 --seed 1
```

Options:

| option | default | meaning |
| --- | --- | --- |
| `--onus` | 4 | number of ONUs |
| `--load` | 0.5 | offered load of each source, as a fraction of its data rate |
| `--data-rate` | 1e8 | peak rate of each source, bit/s |
| `--max-polling-cycle` | 2.0 | maximum polling cycle, ms |
| `--ber` | 0.0 | bit error rate on upstream frames |
| `--distance` | 20 | OLT–ONU fibre length, km |
| `--seed` | none | random seed |
| `--time` | 0.1 | simulated time, s |

The command prints the number of packets and bits received at the OLT, the
corrupted and dropped packets, the mean ONU queueing latency and the
throughput. Invalid settings are reported as a usage error.

## Library use

```python
from epon_ipact.network import NetworkConfig, run

stats = run(NetworkConfig(onus=8, load=0.7, seed=1), until=0.5)
print(stats.packets_received, stats.mean_latency, stats.throughput)
```

`NetworkConfig` has the fields `onus`, `load`, `data_rate`,
`max_polling_cycle`, `ber`, `distance` and `seed`, and checks them when it is
created. `run` returns a `NetworkStats` with `packets_received`,
`bits_received`, `corrupted_packets`, `dropped_packets`, `duration` and
`latencies`, and the derived `mean_latency`, `packet_error_rate` and
`throughput`.

The building blocks can also be used on their own:

- `epon_ipact.params`: link rate, guard time, frame sizes and buffer capacity,
  and the helpers `onu_max_grant` and `transmission_time`.
- `epon_ipact.ping.Ping` and `epon_ipact.packet.PonPacket`: the messages
  exchanged in the network. Both have `dup`, `field_names`,
  `field_value_as_string` and `set_field_value_as_string`. Bad field names or
  values raise `epon_ipact.ping.FieldError`.
- `epon_ipact.codec`: `pack_packet` / `unpack_packet` and `pack_ping` /
  `unpack_ping` turn these messages into big-endian bytes and back.
- `epon_ipact.engine`: the event scheduler `Simulation` (`schedule`, `cancel`,
  `run`, `pending`), `Channel` (`is_busy`, `transmit`), the base class `Module`
  (`send`, `schedule_at`, `emit`), and the traffic generator `SourceApp`.
- `epon_ipact.splitter.Splitter`, `epon_ipact.onu.Onu` and
  `epon_ipact.olt.Olt`: the network elements.
- `epon_ipact.olt`: `packet_error_probability` and `schedule_grant_times`,
  the formulas behind the OLT's error model and grant schedule.
- `epon_ipact.network`: `build_network` wires up a `Simulation` from a
  `NetworkConfig`. This lets you run it step by step or inspect its modules.

The OLT writes its scheduling decisions to the `epon_ipact.olt` logger at
debug level.

## What it does not do

Only upstream traffic is modelled. The OLT sends no downstream data, only
pings and grants. Results are kept in memory and printed. Nothing is written
to result files, and there is no graphical view of the network.