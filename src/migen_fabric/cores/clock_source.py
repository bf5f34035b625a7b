from migen import *  # noqa
from ..interconnect import wishbone

__all__ = ["ClockSource"]


@ResetInserter()
class ClockSource(Module):
    """
    Periodic bus claim without payload.

    Every ``period`` ticks the bus is requested (``cyc`` only, ``stb``
    never asserted). Once ``granted`` is seen, ``tick`` is pulsed and the
    bus is released.

    Parameters
    ----------
    period : int
    bus : migen_fabric.interconnect.wishbone.Interface, optional

    Attributes
    ----------
    granted : migen.Signal
        Input, grant indication from the arbiter.
    tick : migen.Signal
    """
    def __init__(self, period, bus=None):
        if period < 1:
            raise ValueError("period shall be >= 1")
        if bus is None:
            bus = wishbone.Interface()
        self.bus = bus
        self.granted = Signal()
        self.tick = Signal()

        ###

        count = Signal(max=period + 1, reset=period - 1)
        self.submodules.fsm = fsm = FSM(reset_state="WAIT")
        fsm.act(
            "WAIT",
            If(
                count == 0,
                NextValue(count, period - 1),
                NextState("REQUEST"),
            ).Else(
                NextValue(count, count - 1),
            )
        )
        fsm.act(
            "REQUEST",
            bus.cyc.eq(1),
            If(
                self.granted,
                self.tick.eq(1),
                NextState("WAIT"),
            )
        )
