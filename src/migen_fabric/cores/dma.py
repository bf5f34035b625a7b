from migen import *  # noqa
from ..interconnect import wishbone
from ..interconnect.decoder import MEM_MAP

__all__ = ["transfer_continues", "words_for_length", "DMAEngine"]


def transfer_continues(count, length):
    """Termination rule, valid for ints as well as migen values.

    ``count`` is the number of bytes moved *before* the current word,
    ``length == 0`` stands for 65536 bytes.
    """
    # count < length - 2, without unsigned underflow for length < 2
    return (count + 2 < length) | ((length == 0) & (count != 0xfffe))


def words_for_length(length):
    return ((length or 0x10000) + 1) // 2


@ResetInserter()
class DMAEngine(Module):
    """
    Single word Wishbone master moving a block between the bus and an
    external producer/consumer.

    The external side is coupled through one-tick pulses: ``ready_in``
    signals a word for us (write) or readiness for the next word (read),
    ``ready_out`` signals a word for the external side (read) or a
    consumed word (write). The first word of a read is emitted without
    waiting for ``ready_in``.

    Parameters
    ----------
    bus : migen_fabric.interconnect.wishbone.Interface, optional
    halt_address : int, optional
        Target of the placeholder write that confirms bus ownership
        before a write transfer.

    Attributes
    ----------
    start : migen.Signal
        Latch ``write``, ``address`` and ``length`` and begin.
    write : migen.Signal
        Direction, 1: external -> bus.
    address : migen.Signal
    length : migen.Signal
        Byte count, 0 stands for 65536.
    idle : migen.Signal
    halt : migen.Signal
        Request for the CPU to stay off the bus.
    halted : migen.Signal
        A bus beat of ours completed since ``start``.
    current_address : migen.Signal
    count : migen.Signal
        Bytes transferred.
    """
    def __init__(self, bus=None, halt_address=MEM_MAP["zero"]):
        if bus is None:
            bus = wishbone.Interface()
        self.bus = bus
        dw = bus.data_width

        self.start = Signal()
        self.write = Signal()
        self.address = Signal(bus.adr_width)
        self.length = Signal(16)

        self.ready_in = Signal()
        self.data_in = Signal(dw)
        self.ready_out = Signal()
        self.data_out = Signal(dw)

        self.idle = Signal()
        self.halt = Signal()
        self.halted = Signal()
        self.current_address = Signal(bus.adr_width)
        self.count = Signal(16)

        ###

        length = Signal.like(self.length)
        more = Signal()
        self.comb += more.eq(transfer_continues(self.count, length))

        # external side ready, set by a pulse until consumed
        pending = Signal()
        consume = Signal()
        word = Signal(dw)
        self.sync += [
            If(
                self.idle,
                pending.eq(~self.write),
            ).Elif(
                consume,
                pending.eq(0),
            ).Elif(
                self.ready_in,
                pending.eq(1),
            ),
            If(
                self.ready_in,
                word.eq(self.data_in),
            ),
        ]

        advance = [
            NextValue(self.current_address, self.current_address + 2),
            NextValue(self.count, self.count + 2),
        ]

        self.submodules.fsm = fsm = FSM(reset_state="IDLE")
        fsm.act(
            "IDLE",
            self.idle.eq(1),
            If(
                self.start,
                NextValue(length, self.length),
                NextValue(self.current_address, self.address),
                NextValue(self.count, 0),
                NextValue(self.halted, 0),
                If(
                    self.write,
                    NextState("WRITE_AWAIT_HALT"),
                ).Else(
                    NextState("READING"),
                )
            )
        )
        fsm.act(
            "READING",
            bus.cyc.eq(1),
            bus.stb.eq(1),
            bus.adr.eq(self.current_address),
            If(
                bus.ack,
                NextValue(self.data_out, bus.dat_r),
                NextValue(self.halted, 1),
                NextState("READ_WAIT_EXTERNAL"),
            )
        )
        fsm.act(
            "READ_WAIT_EXTERNAL",
            If(
                pending,
                consume.eq(1),
                NextState("READ_EMIT"),
            )
        )
        fsm.act(
            "READ_EMIT",
            self.ready_out.eq(1),
            *advance,
            If(
                more,
                NextState("READING"),
            ).Else(
                NextState("IDLE"),
            )
        )
        fsm.act(
            "WRITE_AWAIT_HALT",
            bus.cyc.eq(1),
            bus.stb.eq(1),
            bus.we.eq(1),
            bus.adr.eq(halt_address),
            If(
                bus.ack,
                self.ready_out.eq(1),
                NextValue(self.halted, 1),
                NextState("WRITE_AWAIT_WORD"),
            )
        )
        fsm.act(
            "WRITE_AWAIT_WORD",
            If(
                pending,
                consume.eq(1),
                NextState("WRITING"),
            )
        )
        fsm.act(
            "WRITING",
            bus.cyc.eq(1),
            bus.stb.eq(1),
            bus.we.eq(1),
            bus.adr.eq(self.current_address),
            bus.dat_w.eq(word),
            If(
                bus.ack,
                self.ready_out.eq(1),
                *advance,
                If(
                    more,
                    NextState("WRITE_AWAIT_WORD"),
                ).Else(
                    NextState("IDLE"),
                )
            )
        )
        self.comb += self.halt.eq(~self.idle)
