from enum import Enum
from toolz.curried import *  # noqa
from migen import *  # noqa

__all__ = ["Master", "priority", "Arbiter"]

Master = Enum("Master", "clock_source cpu dma", start=0)


def priority(last, n=len(Master)):
    """Order in which requests are tried once ``last`` released the bus."""
    return [(last + 1 + i) % n for i in range(n)]


@ResetInserter()
class Arbiter(Module):
    """
    Round-robin arbiter for single grant Wishbone masters.

    A grant is held for as long as the granted master keeps ``cyc``
    asserted, the arbiter then falls back to IDLE for one tick and
    re-arbitrates starting after the master that just released the bus.
    Out of reset the rotation is the one following the last master, i.e.
    ``masters[0]`` is tried first.

    Parameters
    ----------
    masters : list of migen_fabric.interconnect.wishbone.Interface
    target : migen_fabric.interconnect.wishbone.Interface

    Attributes
    ----------
    grant : migen.Signal
        Index of the granted master, valid while ``granted``.
    granted : migen.Signal
    grants : migen.Signal
        One-hot grant vector.
    last : migen.Signal
        Index of the master granted most recently.
    """
    def __init__(self, masters, target):
        n = len(masters)
        if n < 2:
            raise ValueError("at least two masters required")
        self.grant = Signal(max=n)
        self.granted = Signal()
        self.grants = Signal(n)
        self.last = Signal(max=n, reset=n - 1)

        ###

        requests = [m.cyc for m in masters]

        def take(i):
            return [NextValue(self.grant, i), NextState("GRANTED")]

        def grant_chain(order):
            first, *rest = order
            return reduce(
                lambda chain, i: chain.Elif(requests[i], *take(i)),
                rest,
                If(requests[first], *take(first)))

        self.submodules.fsm = fsm = FSM(reset_state="IDLE")
        fsm.act(
            "IDLE",
            Case(self.last, {
                i: grant_chain(priority(i, n)) for i in range(n)}),
        )
        fsm.act(
            "GRANTED",
            self.granted.eq(1),
            If(
                ~Array(requests)[self.grant],
                NextValue(self.last, self.grant),
                NextState("IDLE"),
            )
        )

        # granted master -> target
        self.comb += [
            self.grants[i].eq(self.granted & (self.grant == i))
            for i in range(n)]
        self.comb += Case(self.grant, {
            i: [
                target.adr.eq(m.adr),
                target.dat_w.eq(m.dat_w),
                target.we.eq(m.we),
                target.cyc.eq(self.granted & m.cyc),
                target.stb.eq(self.granted & m.stb),
            ] for i, m in enumerate(masters)})
        # target -> granted master only
        self.comb += [
            m.ack.eq(target.ack & self.grants[i])
            for i, m in enumerate(masters)]
        self.comb += [m.dat_r.eq(target.dat_r) for m in masters]
