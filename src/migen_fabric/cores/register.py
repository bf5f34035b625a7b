from migen import *  # noqa
from ..interconnect import wishbone

__all__ = ["Register"]


class Register(Module):
    """
    Single word Wishbone provider.

    Parameters
    ----------
    read_only : bool, optional
        Reads return ``status`` and writes are discarded. Otherwise reads
        return ``storage``. An unconnected read only register reads as
        zero.
    reset : int, optional
        Reset value of ``storage``.
    bus : migen_fabric.interconnect.wishbone.Interface, optional

    Attributes
    ----------
    storage : migen.Signal
        Last value written by a master.
    status : migen.Signal
        Value presented to masters by a read only register.
    re : migen.Signal
        Pulsed with the ack of a read.
    we : migen.Signal
        Pulsed with the ack of a write, ``storage`` is updated already.
    """
    def __init__(self, read_only=False, reset=0, bus=None):
        if bus is None:
            bus = wishbone.Interface()
        self.bus = bus
        dw = bus.data_width
        self.storage = Signal(dw, reset=reset)
        self.status = Signal(dw)
        self.re = Signal()
        self.we = Signal()

        ###

        access = Signal()
        self.comb += access.eq(bus.cyc & bus.stb & ~bus.ack)
        self.sync += [
            bus.ack.eq(access),
            self.re.eq(access & ~bus.we),
            self.we.eq(access & bus.we),
        ]
        if read_only:
            self.comb += bus.dat_r.eq(self.status)
        else:
            self.comb += bus.dat_r.eq(self.storage)
            self.sync += If(access & bus.we, self.storage.eq(bus.dat_w))
