"""Passive optical splitter between the OLT and the ONUs."""

from __future__ import annotations

from collections import deque
from typing import Any

from epon_ipact.engine import Module
from epon_ipact.packet import PonPacket
from epon_ipact.params import transmission_time
from epon_ipact.ping import Ping

OLT_GATE_IN = "OltGate_i"
OLT_GATE_OUT = "OltGate_o"
ONU_GATE_IN = "OnuGate_i"
ONU_GATE_OUT = "OnuGate_o"

OLT_TX_DELAY = "OLT_Tx_Delay"
"""Self-message that releases the next frame queued for the OLT."""

ONU_TX_DELAY = "ONU_Tx_Delay"
"""Self-message that releases the next frame queued for an ONU."""


class Splitter(Module):
    """Broadcasts downstream traffic to every ONU and merges upstream traffic to the OLT.

    Output gates: ``OnuGate_o`` (one channel per ONU) and ``OltGate_o``.
    Messages arriving on ``OltGate_i`` travel downstream; anything else
    arriving from outside travels upstream.
    """

    def initialize(self) -> None:
        self.onu_queue: deque[PonPacket] = deque()
        self.olt_queue: deque[PonPacket] = deque()
        self.onu_queue_size = 0
        self.olt_queue_size = 0

    def handle_message(self, message: Any, gate: str | None) -> None:
        if isinstance(message, PonPacket):
            if gate == OLT_GATE_IN:
                self._broadcast_packet(message)
            else:
                self._forward_packet(message)
        elif gate is None:
            self._release(message)
        elif isinstance(message, Ping):
            if gate == OLT_GATE_IN:
                for k in range(len(self.gates.get(ONU_GATE_OUT, []))):
                    self.send(message.dup(), ONU_GATE_OUT, k)
            else:
                self.send(message, OLT_GATE_OUT)
        else:
            raise TypeError(f"splitter cannot handle message {message!r}")

    def _broadcast_packet(self, packet: PonPacket) -> None:
        for k, channel in enumerate(self.gates.get(ONU_GATE_OUT, [])):
            if not channel.is_busy() and not self.onu_queue:
                self.send(packet.dup(), ONU_GATE_OUT, k)
            elif packet.onu_id == k:
                # Only the intended ONU gets a deferred copy; the others lose it.
                self.onu_queue.append(packet)
                self.schedule_at(
                    channel.transmission_finish_time + transmission_time(self.onu_queue_size),
                    ONU_TX_DELAY,
                )
                self.onu_queue_size += packet.byte_length

    def _forward_packet(self, packet: PonPacket) -> None:
        channel = self.gates[OLT_GATE_OUT][0] if self.gates.get(OLT_GATE_OUT) else None
        if channel is None:
            raise KeyError(f"module {self.name} has no output gate {OLT_GATE_OUT!r}")
        if not channel.is_busy() and not self.olt_queue:
            self.send(packet, OLT_GATE_OUT)
            return
        self.olt_queue.append(packet)
        self.schedule_at(
            channel.transmission_finish_time + transmission_time(self.olt_queue_size),
            OLT_TX_DELAY,
        )
        self.olt_queue_size += packet.byte_length

    def _release(self, message: Any) -> None:
        if message == OLT_TX_DELAY:
            packet = self.olt_queue.popleft()
            self.send(packet, OLT_GATE_OUT)
            self.olt_queue_size -= packet.byte_length
        elif message == ONU_TX_DELAY:
            packet = self.onu_queue.popleft()
            self.send(packet, ONU_GATE_OUT, packet.onu_id)
            self.onu_queue_size -= packet.byte_length