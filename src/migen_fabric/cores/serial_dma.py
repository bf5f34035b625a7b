from enum import Enum
from operator import or_
from toolz.curried import *  # noqa
from migen import *  # noqa
from misoc.interconnect import stream
from .dma import transfer_continues

__all__ = ["Command", "ACK", "HEADER_LENGTH", "request", "pack_words",
           "unpack_words", "SerialDMA"]

Command = Enum("Command", [
    ("ping", 0x2a),  # '*'
    ("read", 0x3e),  # '>', bus -> serial
    ("write", 0x3c),  # '<', serial -> bus
    ("reset", 0x21),  # '!'
])

ACK = Command.ping.value

# 3 address bytes, 2 length bytes, most significant first
HEADER_LENGTH = 5


def request(command, address=0, length=0):
    """Host side encoding of a command and, for block transfers, its
    header."""
    command = Command(command)
    if command not in (Command.read, Command.write):
        return bytes([command.value])
    if not 0 <= address < 2**24:
        raise ValueError("address shall fit into 24 bits")
    if not 0 <= length < 2**16:
        raise ValueError("length shall fit into 16 bits, 0 for 65536")
    return bytes([command.value]) + address.to_bytes(3, "big") + \
        length.to_bytes(2, "big")


def pack_words(words):
    return b"".join(w.to_bytes(2, "big") for w in words)


def unpack_words(data):
    if len(data) % 2:
        raise ValueError("odd number of bytes, words are 2 bytes")
    return pipe(
        data,
        partition(2),
        map(lambda hl: (hl[0] << 8) | hl[1]),
        list)


@ResetInserter()
class SerialDMA(Module):
    """
    Byte oriented front end of a ``DMAEngine``.

    Commands: ``'*'`` ping, ``'>'`` read block, ``'<'`` write block and
    ``'!'`` reset request. Every command is acknowledged with ``'*'``.
    Block commands are followed by a 5 byte header and the data words,
    high byte first, and are completed by another ``'*'``. Bytes
    received while waiting for a command that are not commands are
    dropped.

    Parameters
    ----------
    dma : migen_fabric.cores.dma.DMAEngine
        Engine whose control and handshake signals are driven, it is not
        added as a submodule.
    reset_ticks : int, optional
        Duration of ``reset_request``.

    Attributes
    ----------
    sink : misoc.interconnect.stream.Endpoint
        Bytes from the host.
    source : misoc.interconnect.stream.Endpoint
        Bytes to the host.
    reset_request : migen.Signal
    idle : migen.Signal
        Waiting for a command.
    address : migen.Signal
    length : migen.Signal
    count : migen.Signal
        Bytes transferred, in lock-step with the engine.
    """
    def __init__(self, dma, reset_ticks=16):
        if reset_ticks < 1:
            raise ValueError("reset_ticks shall be >= 1")
        self.sink = stream.Endpoint([("data", 8)])
        self.source = stream.Endpoint([("data", 8)])
        self.reset_request = Signal()
        self.idle = Signal()
        self.address = Signal(len(dma.address))
        self.length = Signal(len(dma.length))
        self.count = Signal(16)

        ###

        sink, source = self.sink, self.source
        command = Signal(8)
        header = Signal(8 * HEADER_LENGTH)
        index = Signal(max=HEADER_LENGTH)
        timer = Signal(max=max(reset_ticks, 2))
        word_out = Signal(len(dma.data_out))
        word_in = Signal(len(dma.data_in))
        write = Signal()
        more = Signal()

        is_command = reduce(or_, [sink.data == c.value for c in Command])
        self.comb += [
            self.address.eq(header[16:]),
            self.length.eq(header[:16]),
            write.eq(command == Command.write.value),
            more.eq(transfer_continues(self.count, self.length)),
            dma.write.eq(write),
            dma.address.eq(self.address),
            dma.length.eq(self.length),
            dma.data_in.eq(word_in),
        ]

        # engine per-word ready, set by a pulse until consumed
        engine_ready = Signal()
        consume = Signal()
        self.sync += [
            If(
                consume,
                engine_ready.eq(0),
            ).Elif(
                dma.ready_out,
                engine_ready.eq(1),
            ),
            If(
                dma.ready_out,
                word_out.eq(dma.data_out),
            ),
        ]

        self.submodules.fsm = fsm = FSM(reset_state="WAIT_COMMAND")
        fsm.act(
            "WAIT_COMMAND",
            self.idle.eq(1),
            sink.ack.eq(1),
            If(
                sink.stb & is_command,
                NextValue(command, sink.data),
                NextState("ACK"),
            )
        )
        fsm.act(
            "ACK",
            source.stb.eq(1),
            source.data.eq(ACK),
            If(
                source.ack,
                Case(command, {
                    Command.ping.value: NextState("WAIT_COMMAND"),
                    Command.reset.value: [
                        NextValue(timer, 0),
                        NextState("RESET"),
                    ],
                    "default": [
                        NextValue(index, 0),
                        NextState("HEADER"),
                    ],
                })
            )
        )
        fsm.act(
            "RESET",
            self.reset_request.eq(1),
            NextValue(timer, timer + 1),
            If(
                timer == reset_ticks - 1,
                NextState("WAIT_COMMAND"),
            )
        )
        fsm.act(
            "HEADER",
            sink.ack.eq(1),
            If(
                sink.stb,
                NextValue(header, Cat(sink.data, header[:-8])),
                NextValue(index, index + 1),
                If(
                    index == HEADER_LENGTH - 1,
                    NextState("DISPATCH"),
                )
            )
        )
        fsm.act(
            "DISPATCH",
            dma.start.eq(1),
            consume.eq(1),
            NextValue(self.count, 0),
            If(
                write,
                NextState("LOAD_HIGH"),
            ).Else(
                NextState("AWAIT_PRODUCER"),
            )
        )
        # bus -> serial
        fsm.act(
            "AWAIT_PRODUCER",
            If(
                engine_ready,
                consume.eq(1),
                NextState("EMIT_HIGH"),
            )
        )
        fsm.act(
            "EMIT_HIGH",
            source.stb.eq(1),
            source.data.eq(word_out[8:]),
            If(
                source.ack,
                NextState("EMIT_LOW"),
            )
        )
        fsm.act(
            "EMIT_LOW",
            source.stb.eq(1),
            source.data.eq(word_out[:8]),
            If(
                source.ack,
                dma.ready_in.eq(1),
                NextState("LOOP"),
            )
        )
        # serial -> bus
        fsm.act(
            "LOAD_HIGH",
            sink.ack.eq(1),
            If(
                sink.stb,
                NextValue(word_in, Cat(sink.data, word_in[:8])),
                NextState("LOAD_LOW"),
            )
        )
        fsm.act(
            "LOAD_LOW",
            sink.ack.eq(1),
            If(
                sink.stb,
                NextValue(word_in, Cat(sink.data, word_in[:8])),
                NextState("AWAIT_CONSUMER"),
            )
        )
        fsm.act(
            "AWAIT_CONSUMER",
            If(
                engine_ready,
                consume.eq(1),
                dma.ready_in.eq(1),
                NextState("LOOP"),
            )
        )
        fsm.act(
            "LOOP",
            NextValue(self.count, self.count + 2),
            If(
                ~more,
                NextState("DONE"),
            ).Elif(
                write,
                NextState("LOAD_HIGH"),
            ).Else(
                NextState("AWAIT_PRODUCER"),
            )
        )
        fsm.act(
            "DONE",
            If(
                dma.idle,
                source.stb.eq(1),
                source.data.eq(ACK),
                If(
                    source.ack,
                    NextState("WAIT_COMMAND"),
                )
            )
        )
