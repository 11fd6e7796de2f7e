"""Optical line terminal running interleaved polling with adaptive cycle time."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from epon_ipact.engine import Module
from epon_ipact.packet import PonPacket
from epon_ipact.params import GRANT_REQUEST_SIZE, T_GUARD, onu_max_grant, transmission_time
from epon_ipact.ping import Ping

SPLITTER_GATE_IN = "SpltGate_i"
SPLITTER_GATE_OUT = "SpltGate_o"

GRANT_SCHEDULE = "GrantSchedule"
"""Self-message that starts a new polling cycle."""

SEND_GRANTS = "sendGrants"
"""Self-message that sends the next grant of the current cycle."""

ERROR_SIGNAL = "pkt_error"

_log = logging.getLogger(__name__)


def packet_error_probability(ber: float, bits: int) -> float:
    """Return the chance that a frame of ``bits`` bits holds at least one bit error."""
    if not 0.0 <= ber <= 1.0:
        raise ValueError(f"bit error rate must lie in [0, 1], got {ber}")
    if bits < 0:
        raise ValueError(f"bit count must not be negative, got {bits}")
    return 1.0 - (1.0 - ber) ** bits


def schedule_grant_times(
    start: float,
    total_latency: Sequence[float],
    rtt: Sequence[float],
) -> tuple[list[int], list[float]]:
    """Order ONUs by total latency and compute when each one's grant is sent.

    Returns the ONU indices in service order and, per ONU index, the grant
    time. The first ONU is granted at ``start``; each later one so that its
    data arrives right after the previous ONU's transmission and request.
    """
    if len(total_latency) != len(rtt):
        raise ValueError(
            f"latency and round-trip lists differ in length: {len(total_latency)} != {len(rtt)}"
        )
    order = sorted(range(len(total_latency)), key=lambda onu: total_latency[onu])
    times = [0.0] * len(order)
    request_time = transmission_time(GRANT_REQUEST_SIZE)
    cursor = start
    previous: int | None = None
    for onu in order:
        if previous is None:
            times[onu] = start
        else:
            cursor = cursor + total_latency[previous] + request_time - rtt[onu]
            times[onu] = cursor
        previous = onu
    return order, times


class Olt(Module):
    """Ranges the ONUs, then grants them upstream slots cycle after cycle.

    Parameters: ``NumberOfONUs``, ``max_polling_cycle`` (ms) and ``ber``.
    Received data frames are counted and checked against the bit error rate.
    """

    def initialize(self) -> None:
        self.onus = int(self._par("NumberOfONUs"))
        self.max_polling_cycle = float(self._par("max_polling_cycle"))
        self.onu_max_grant = onu_max_grant(self.max_polling_cycle, self.onus)
        _log.debug("%s: %d ONUs detected", self.name, self.onus)

        self.onu_rtt = [0.0] * self.onus
        self.onu_grants = [self.onu_max_grant] * self.onus
        self.onu_total_latency = [0.0] * self.onus
        self.onu_grant_times = [0.0] * self.onus
        self.order = list(range(self.onus))
        self.ping_count = 0

        self.total_bits_received = 0
        self.total_packets_received = 0
        self.corrupted_packets = 0

        self.send(Ping(name="ping"), SPLITTER_GATE_OUT)

    def handle_message(self, message: Any, gate: str | None) -> None:
        if isinstance(message, PonPacket):
            if message.name == "app_data":
                self._receive_data(message)
            elif message.name == "RequestONU":
                self._receive_request(message)
        elif isinstance(message, Ping):
            self._receive_ping(message)
        elif message == GRANT_SCHEDULE:
            self._schedule_grants()
        elif message == SEND_GRANTS:
            self._send_grant(message)

    def _check_onu(self, onu: int) -> int:
        if not 0 <= onu < self.onus:
            raise ValueError(f"ONU index {onu} out of range for {self.onus} ONUs")
        return onu

    def _update_latency(self, onu: int) -> None:
        self.onu_total_latency[onu] = (
            self.onu_rtt[onu] + transmission_time(self.onu_grants[onu]) + T_GUARD
        )

    def _receive_data(self, packet: PonPacket) -> None:
        ber = float(self._par("ber"))
        bits = packet.bit_length
        self.total_bits_received += bits
        self.total_packets_received += 1
        if self.rng.uniform(0.0, 1.0) < packet_error_probability(ber, bits):
            self.corrupted_packets += 1
            _log.debug("%s: packet corrupted due to BER", self.name)
            self.emit(ERROR_SIGNAL, self.corrupted_packets)

    def _receive_request(self, packet: PonPacket) -> None:
        onu = self._check_onu(packet.onu_id)
        self.onu_grants[onu] = min(packet.request, self.onu_max_grant)
        self._update_latency(onu)

    def _receive_ping(self, message: Ping) -> None:
        onu = self._check_onu(message.onu_id)
        self.ping_count += 1
        # The ping leaves at time zero, so its arrival time is the round trip.
        self.onu_rtt[onu] = self.now
        self._update_latency(onu)
        if self.ping_count == self.onus:
            self.schedule_at(self.now, GRANT_SCHEDULE)

    def _schedule_grants(self) -> None:
        self.order, self.onu_grant_times = schedule_grant_times(
            self.now, self.onu_total_latency, self.onu_rtt
        )
        _log.debug("%s: service order %s, grant times %s", self.name, self.order, self.onu_grant_times)
        self.schedule_at(self.onu_grant_times[self.order[0]], SEND_GRANTS)

    def _send_grant(self, message: Any) -> None:
        slot = self.ping_count % self.onus
        onu = self.order[slot]
        grant = PonPacket(
            name="GrantONU",
            byte_length=GRANT_REQUEST_SIZE,
            is_grant=True,
            onu_id=onu,
            grant=self.onu_grants[onu],
        )
        self.ping_count += 1
        _log.debug("%s: sending grant to ONU %d at %s", self.name, onu, self.now)
        self.send(grant, SPLITTER_GATE_OUT)
        if slot < self.onus - 1:
            self.schedule_at(self.onu_grant_times[self.order[slot + 1]], message)
        else:
            self.schedule_at(
                self.onu_grant_times[onu] + self.onu_total_latency[onu], GRANT_SCHEDULE
            )