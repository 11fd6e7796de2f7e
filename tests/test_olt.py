import pytest

from epon_ipact.engine import Channel, Module, Simulation
from epon_ipact.olt import (
    ERROR_SIGNAL,
    SPLITTER_GATE_IN,
    SPLITTER_GATE_OUT,
    Olt,
    packet_error_probability,
    schedule_grant_times,
)
from epon_ipact.packet import PonPacket
from epon_ipact.params import GRANT_REQUEST_SIZE, T_GUARD, onu_max_grant, transmission_time
from epon_ipact.ping import Ping


class _Sink(Module):
    def initialize(self):
        self.received = []

    def handle_message(self, message, gate):
        self.received.append((self.now, message, gate))


def _make_olt(onus=2, cycle=0.1, ber=0.0, seed=1):
    sim = Simulation(seed=seed)
    olt = Olt(sim, "olt", params={"NumberOfONUs": onus, "max_polling_cycle": cycle, "ber": ber})
    sink = _Sink(sim, "splitter")
    olt.gates[SPLITTER_GATE_OUT] = [Channel(sink, "OltGate_i")]
    sim.run(0.0)
    return sim, olt, sink


def _deliver_pings(sim, olt, at, onus):
    sim.now = at
    for k in onus:
        olt.handle_message(Ping(onu_id=k), SPLITTER_GATE_IN)


def _grants(sink):
    return [(t, m) for t, m, _ in sink.received if isinstance(m, PonPacket)]


def test_error_probability_bounds():
    assert packet_error_probability(0.0, 1000) == 0.0
    assert packet_error_probability(1.0, 8) == 1.0
    assert packet_error_probability(0.5, 1) == pytest.approx(0.5)


def test_error_probability_grows_with_length():
    assert packet_error_probability(1e-4, 100) < packet_error_probability(1e-4, 1000)


@pytest.mark.parametrize("ber, bits", [(-0.1, 8), (1.5, 8), (0.1, -1)])
def test_error_probability_rejects_bad_input(ber, bits):
    with pytest.raises(ValueError):
        packet_error_probability(ber, bits)


def test_schedule_orders_by_latency():
    order, times = schedule_grant_times(1.0, [3.0, 1.0, 2.0], [0.0, 0.0, 0.0])
    assert order == [1, 2, 0]
    assert times[1] == 1.0
    gap = transmission_time(GRANT_REQUEST_SIZE)
    assert times[2] == pytest.approx(1.0 + 1.0 + gap)
    assert times[0] == pytest.approx(times[2] + 2.0 + gap)


def test_schedule_subtracts_round_trip():
    order, times = schedule_grant_times(0.0, [1.0, 2.0], [0.0, 0.5])
    assert order == [0, 1]
    assert times[1] == pytest.approx(1.0 + transmission_time(GRANT_REQUEST_SIZE) - 0.5)


def test_schedule_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        schedule_grant_times(0.0, [1.0, 2.0], [0.0])


def test_initialize_sends_ping_and_max_grants():
    _, olt, sink = _make_olt(onus=3, cycle=0.2)
    pings = [m for _, m, _ in sink.received if isinstance(m, Ping)]
    assert len(pings) == 1
    assert olt.onu_grants == [onu_max_grant(0.2, 3)] * 3


def test_initialize_rejects_zero_onus():
    sim = Simulation()
    Olt(sim, "olt", params={"NumberOfONUs": 0, "max_polling_cycle": 1.0, "ber": 0.0})
    with pytest.raises(ValueError):
        sim.run(0.0)


def test_request_caps_grant_and_updates_latency():
    _, olt, _ = _make_olt(onus=2)
    olt.handle_message(PonPacket(name="RequestONU", is_request=True, onu_id=0, request=500.0), SPLITTER_GATE_IN)
    olt.handle_message(PonPacket(name="RequestONU", is_request=True, onu_id=1, request=1e12), SPLITTER_GATE_IN)
    assert olt.onu_grants == [500.0, olt.onu_max_grant]
    assert olt.onu_total_latency[0] == pytest.approx(transmission_time(500.0) + T_GUARD)


def test_request_for_unknown_onu_raises():
    _, olt, _ = _make_olt(onus=2)
    with pytest.raises(ValueError):
        olt.handle_message(PonPacket(name="RequestONU", onu_id=5, request=1.0), SPLITTER_GATE_IN)


def test_data_counted_and_corrupted_with_full_ber():
    _, olt, _ = _make_olt(ber=1.0)
    for _ in range(2):
        olt.handle_message(PonPacket(name="app_data", byte_length=100), SPLITTER_GATE_IN)
    assert olt.total_packets_received == 2
    assert olt.total_bits_received == 1600
    assert olt.corrupted_packets == 2
    assert [value for _, value in olt.signals[ERROR_SIGNAL]] == [1, 2]


def test_data_clean_with_zero_ber():
    _, olt, _ = _make_olt(ber=0.0)
    olt.handle_message(PonPacket(name="app_data", byte_length=64), SPLITTER_GATE_IN)
    assert olt.corrupted_packets == 0
    assert ERROR_SIGNAL not in olt.signals


def test_no_grants_until_every_onu_answers():
    sim, olt, sink = _make_olt(onus=2)
    _deliver_pings(sim, olt, 2e-4, [0])
    sim.run(0.01)
    assert _grants(sink) == []
    assert olt.onu_rtt[0] == pytest.approx(2e-4)


def test_grant_cycle_order_and_values():
    sim, olt, sink = _make_olt(onus=2, cycle=0.1)
    olt.handle_message(PonPacket(name="RequestONU", is_request=True, onu_id=1, request=100.0), SPLITTER_GATE_IN)
    _deliver_pings(sim, olt, 2e-4, [0, 1])
    sim.run(0.01)
    grants = _grants(sink)
    assert len(grants) >= 4
    assert [m.onu_id for _, m in grants[:4]] == [1, 0, 1, 0]
    assert grants[0][0] == pytest.approx(2e-4)
    assert grants[0][1].grant == 100.0
    assert grants[1][1].grant == olt.onu_max_grant
    assert all(m.is_grant and m.byte_length == GRANT_REQUEST_SIZE for _, m in grants)
    times = [t for t, _ in grants]
    assert times == sorted(times)