from migen import *  # noqa
from ..interconnect import wishbone
from ..interconnect.arbiter import Master, Arbiter
from ..interconnect.decoder import (ProviderId, MEM_MAP, check_mem_map,
                                    AddressDecoder)
from ..cores.dma import DMAEngine
from ..cores.serial_dma import SerialDMA
from ..cores.sram import SRAM
from ..cores.register import Register
from ..cores.clock_source import ClockSource

__all__ = ["Fabric"]


class Fabric(Module):
    """
    Shared bus of the CPU, the serial DMA engine and the clock source.

    Attributes
    ----------
    cpu : migen_fabric.interconnect.wishbone.Interface
        Master port of the CPU.
    sink, source : misoc.interconnect.stream.Endpoint
        Serial link bytes, host to device and device to host.
    reset : migen.Signal
        Global reset of the fabric.
    reset_request : migen.Signal
        Requested over the serial link, resets everything but the serial
        front end.
    halt, halted : migen.Signal
        DMA request for the CPU to stay off the bus and its confirmation.
    tick : migen.Signal
        Clock source event.
    """
    mem_map = dict(MEM_MAP)

    def __init__(self,
                 ram_size=0x10000,
                 rom_size=0x4000,
                 sdram_size=0x10000,
                 rom_init=None,
                 clock_period=256,
                 reset_ticks=16,
                 mem_map=None):
        if mem_map is not None:
            self.mem_map = dict(self.mem_map, **mem_map)
        check_mem_map(self.mem_map)

        self.cpu = wishbone.Interface()
        self.reset = Signal()
        self.halt = Signal()
        self.halted = Signal()
        self.tick = Signal()

        # masters, in arbiter order
        self.submodules.clock_source = ClockSource(clock_period)
        self.submodules.dma = DMAEngine(
            halt_address=self.mem_map[ProviderId.zero.name])
        masters = {
            Master.clock_source: self.clock_source.bus,
            Master.cpu: self.cpu,
            Master.dma: self.dma.bus,
        }
        self.bus = wishbone.Interface.like(self.cpu)
        self.submodules.arbiter = Arbiter(
            [masters[m] for m in Master], self.bus)

        self.submodules.serial = SerialDMA(self.dma, reset_ticks=reset_ticks)
        self.sink = self.serial.sink
        self.source = self.serial.source
        self.reset_request = self.serial.reset_request

        # providers
        self.submodules.ram = SRAM(ram_size)
        self.submodules.rom = SRAM(rom_size, read_only=True, init=rom_init)
        self.submodules.sdram = SRAM(sdram_size)
        self.submodules.gpo = Register()
        self.submodules.gpi = Register(read_only=True)
        self.submodules.uart = Register()
        self.submodules.bank = Register()
        self.submodules.segment = Register()
        self.submodules.keyboard = Register(read_only=True)
        self.submodules.leds = Register()
        self.submodules.zero = Register(read_only=True)
        self.providers = {p: getattr(self, p.name) for p in ProviderId}
        self.submodules.decoder = AddressDecoder(
            self.bus, {p: m.bus for p, m in self.providers.items()},
            self.mem_map)

        ###

        self.comb += [
            self.serial.reset.eq(self.reset),
            self.dma.reset.eq(self.reset | self.reset_request),
            self.arbiter.reset.eq(self.reset | self.reset_request),
            self.clock_source.reset.eq(self.reset | self.reset_request),
            self.clock_source.granted.eq(
                self.arbiter.grants[Master.clock_source.value]),
            self.tick.eq(self.clock_source.tick),
            self.halt.eq(self.dma.halt),
            self.halted.eq(self.dma.halted),
        ]

    def get_ios(self):
        return set(
            list(self.cpu.flatten()) +
            list(self.sink.flatten()) +
            list(self.source.flatten()) +
            [self.reset, self.reset_request, self.halt, self.halted,
             self.tick] +
            [getattr(self, p.name).storage
             for p in (ProviderId.gpo, ProviderId.uart, ProviderId.bank,
                       ProviderId.segment, ProviderId.leds)] +
            [getattr(self, p.name).status
             for p in (ProviderId.gpi, ProviderId.keyboard)])
