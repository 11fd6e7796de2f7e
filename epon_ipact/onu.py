"""Optical network unit: buffers upstream data and transmits it when granted."""

from __future__ import annotations

from collections import deque
from typing import Any

from epon_ipact.engine import Module
from epon_ipact.packet import PonPacket
from epon_ipact.params import GRANT_REQUEST_SIZE, ONU_BUFFER_CAPACITY, transmission_time
from epon_ipact.ping import Ping

SOURCE_GATE_IN = "inSrc"
SPLITTER_GATE_IN = "SpltGate_i"
SPLITTER_GATE_OUT = "SpltGate_o"

PACKET_SEND = "packetSend"
"""Self-message that drives transmission within a grant."""

LATENCY_SIGNAL = "latency"


class Onu(Module):
    """Queues frames from its source and sends them upstream within each grant.

    When the grant is used up, or nothing is left to send, the ONU reports its
    pending backlog to the OLT in a request frame.
    """

    def initialize(self) -> None:
        self.queue: deque[PonPacket] = deque()
        self.capacity = ONU_BUFFER_CAPACITY
        self.pending_buffer = 0.0
        self.packet_drop_count = 0
        self.current_grant = 0.0

    def handle_message(self, message: Any, gate: str | None) -> None:
        if isinstance(message, PonPacket):
            if gate == SOURCE_GATE_IN:
                self._enqueue(message)
            elif gate == SPLITTER_GATE_IN and message.is_grant and message.onu_id == self.index:
                self.current_grant = message.grant
                self.schedule_at(self.now, PACKET_SEND)
        elif isinstance(message, Ping):
            message.onu_id = self.index
            self.send(message, SPLITTER_GATE_OUT)
        elif gate is None and message == PACKET_SEND:
            self._transmit(message)

    def _enqueue(self, packet: PonPacket) -> None:
        if self.pending_buffer + packet.byte_length <= self.capacity:
            packet.onu_arrival_time = self.now
            packet.onu_id = self.index
            self.queue.append(packet)
            self.pending_buffer += packet.byte_length
        else:
            self.packet_drop_count += 1

    def _transmit(self, message: Any) -> None:
        if self.current_grant > 0 and self.pending_buffer > 0:
            if self.queue[0].byte_length <= self.current_grant:
                data = self.queue.popleft()
                self.current_grant -= data.byte_length
                self.pending_buffer -= data.byte_length
                sending_time = self.now
                data.onu_departure_time = sending_time
                self.send(data, SPLITTER_GATE_OUT)
                self.schedule_at(sending_time + transmission_time(data.byte_length), message)
                self.emit(LATENCY_SIGNAL, data.onu_departure_time - data.onu_arrival_time)
                return
        self._send_request()

    def _send_request(self) -> None:
        request = PonPacket(
            name="RequestONU",
            byte_length=GRANT_REQUEST_SIZE,
            is_request=True,
            onu_id=self.index,
            request=self.pending_buffer,
        )
        self.send(request, SPLITTER_GATE_OUT)