from types import SimpleNamespace
import tempfile
from os import path
from toolz import partial
from migen.sim import passive

__all__ = ["send_bytes", "collect", "wb_slave", "pulse", "file_tmp_folder"]


def pulse(sig):
    yield sig.eq(1)
    yield
    yield sig.eq(0)
    yield


def send_bytes(sink, data):
    """Hold ``stb`` across ``data``, one byte per accepted beat."""
    for b in data:
        yield sink.data.eq(b)
        yield sink.stb.eq(1)
        yield
        while (yield sink.ack) == 0:
            yield
    yield sink.stb.eq(0)
    yield


@passive
def collect(source, data):
    yield source.ack.eq(1)
    while True:
        yield
        if (yield source.stb):
            data.append((yield source.data))


@passive
def wb_slave(bus, mem, log):
    """Acknowledge every beat after one tick, ``mem`` maps byte addresses
    to words."""
    while True:
        if (yield bus.cyc) and (yield bus.stb):
            ns = SimpleNamespace()
            ns.adr = (yield bus.adr)
            ns.we = (yield bus.we)
            if ns.we:
                ns.dat = (yield bus.dat_w)
                mem[ns.adr] = ns.dat
            else:
                ns.dat = mem.get(ns.adr, 0)
                yield bus.dat_r.eq(ns.dat)
            log.append(ns)
            yield bus.ack.eq(1)
            yield
            yield bus.ack.eq(0)
        yield


file_tmp_folder = partial(path.join, tempfile.gettempdir())
