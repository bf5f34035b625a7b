from migen import *  # noqa
from ..interconnect import wishbone

__all__ = ["SRAM"]


class SRAM(Module):
    def __init__(self, mem_or_size, read_only=False, init=None, bus=None):
        if bus is None:
            bus = wishbone.Interface()
        self.bus = bus
        bus_data_width = len(self.bus.dat_r)
        if isinstance(mem_or_size, Memory):
            if mem_or_size.width > bus_data_width:
                raise NotImplementedError("memory wider than the bus")
            self.mem = mem_or_size
        else:
            if init is not None and \
                    len(init) > mem_or_size // (bus_data_width // 8):
                raise ValueError("init does not fit into memory")
            self.mem = Memory(bus_data_width,
                              mem_or_size // (bus_data_width // 8),
                              init=init
                              )
        # addresses wrap around the memory size
        try:
            depth_bits = log2_int(self.mem.depth)
        except ValueError:
            raise ValueError("memory depth shall be a power of 2")
        if depth_bits + 1 > len(self.bus.adr):
            raise ValueError("memory larger than the address space")

        # memory
        port = self.mem.get_port(write_capable=not read_only)
        self.port = port
        self.specials += self.mem, port

        # # #

        # registered ack, read data follows the synchronous port
        self.comb += [
            port.adr.eq(bus.adr[1:1 + depth_bits]),
            bus.dat_r.eq(port.dat_r),
        ]
        self.sync += [
            bus.ack.eq(0),
            If(
                bus.cyc & bus.stb & ~bus.ack,
                bus.ack.eq(1),
            )
        ]
        # writes to a read only memory are acknowledged and discarded
        if not read_only:
            self.comb += [
                port.dat_w.eq(bus.dat_w),
                port.we.eq(bus.cyc & bus.stb & bus.we & ~bus.ack),
            ]
