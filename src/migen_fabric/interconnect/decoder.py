from enum import Enum
from operator import or_
from toolz.curried import *  # noqa
from migen import *  # noqa

__all__ = ["ProviderId", "REGISTERS", "MEM_MAP", "check_mem_map", "decode",
           "AddressDecoder"]

ProviderId = Enum(
    "ProviderId",
    "ram rom sdram gpo gpi uart bank segment keyboard leds zero", start=0)

# single-word providers, matched before any range rule
REGISTERS = (
    ProviderId.gpo, ProviderId.gpi, ProviderId.uart, ProviderId.bank,
    ProviderId.segment, ProviderId.keyboard, ProviderId.leds,
    ProviderId.zero,
)

# byte offsets within segment 0
MEM_MAP = dict(
    ram=0x0000,
    rom=0xc000,  # reads from here up to io are served by ROM
    io=0xff00,  # reserved region, unmatched offsets read as zero
    gpo=0xff00,
    gpi=0xff02,
    uart=0xff04,
    bank=0xff06,
    segment=0xff08,
    keyboard=0xff0a,
    leds=0xff0c,
    zero=0xff0e,
)


def check_mem_map(mem_map):
    for p in REGISTERS:
        if mem_map[p.name] & 1:
            raise ValueError(
                "{} register address shall be even".format(p.name))
        if not 0 <= mem_map[p.name] <= 0xffff:
            raise ValueError(
                "{} register address shall be within segment 0".format(
                    p.name))
    if mem_map["rom"] > mem_map["io"]:
        raise ValueError("rom window shall start below the io region")
    return mem_map


def decode(address, write, mem_map=None):
    """Select the provider serving a bus transaction.

    Parameters
    ----------
    address : int
        24 bit byte address. Bits [22:16] select the segment, bit 23
        selects ROM-class over RAM-class storage outside segment 0.
    write : bool
    mem_map : dict, optional
        Segment 0 layout, defaults to ``MEM_MAP``.

    Returns
    -------
    ProviderId
        Never ``None``, unmatched addresses resolve to ``ProviderId.zero``.
    """
    mem_map = mem_map or MEM_MAP
    segment = (address >> 16) & 0x7f
    offset = address & 0xffff
    if segment:
        return ProviderId.rom if address & 0x800000 else ProviderId.sdram
    for p in REGISTERS:
        if offset >> 1 == mem_map[p.name] >> 1:
            return p
    if offset < mem_map["rom"]:
        return ProviderId.ram
    if offset < mem_map["io"]:
        return ProviderId.ram if write else ProviderId.rom
    return ProviderId.zero


class AddressDecoder(Module):
    # slaves maps every ProviderId to the bus interface of its provider.
    # Providers share adr, dat_w, we and cyc, stb is one-hot.
    def __init__(self, bus, slaves, mem_map=None):
        mem_map = check_mem_map(mem_map or MEM_MAP)
        missing = set(ProviderId) - set(slaves)
        if missing:
            raise ValueError("no slave for {}".format(
                ", ".join(sorted(p.name for p in missing))))
        self.selected = Signal(max=len(ProviderId))
        self.sel = Signal(len(ProviderId))

        ###

        segment = bus.adr[16:23]
        offset = bus.adr[:16]

        def select(p):
            return self.selected.eq(p.value)

        first, *rest = REGISTERS
        registers = reduce(
            lambda chain, p: chain.Elif(
                offset[1:] == mem_map[p.name] >> 1, select(p)),
            rest,
            If(offset[1:] == mem_map[first.name] >> 1, select(first)))
        self.comb += If(
            segment == 0,
            registers.Elif(
                offset < mem_map["rom"], select(ProviderId.ram)
            ).Elif(
                offset < mem_map["io"],
                If(
                    bus.we, select(ProviderId.ram)
                ).Else(
                    select(ProviderId.rom)
                )
            ).Else(
                select(ProviderId.zero)
            )
        ).Else(
            If(
                bus.adr[23], select(ProviderId.rom)
            ).Else(
                select(ProviderId.sdram)
            )
        )
        self.comb += [
            self.sel[p.value].eq(
                bus.cyc & bus.stb & (self.selected == p.value))
            for p in ProviderId]

        # master->slaves, strobe replaced by the one-hot selection
        ordered = [slaves[p] for p in ProviderId]
        self.comb += bus.connect(*ordered, omit={"stb", "ack", "dat_r"})
        self.comb += [s.stb.eq(self.sel[i]) for i, s in enumerate(ordered)]

        # mux (1-hot) slave ack and data return
        self.comb += [
            bus.ack.eq(reduce(or_, [
                self.sel[i] & s.ack for i, s in enumerate(ordered)])),
            bus.dat_r.eq(reduce(or_, [
                Replicate(self.selected == i, len(bus.dat_r)) & s.dat_r
                for i, s in enumerate(ordered)])),
        ]
