from migen import *  # noqa
from migen.sim import run_simulation, passive
from migen_fabric.cores.register import Register
from migen_fabric.cores.clock_source import ClockSource
import pytest


def test_register():
    dut = Register(reset=0x55)
    data = []

    def testbench():
        data.append((yield from dut.bus.read(0)))
        yield from dut.bus.write(0, 0x1234)
        assert (yield dut.storage) == 0x1234
        data.append((yield from dut.bus.read(0)))

    run_simulation(dut, testbench())
    assert data == [0x55, 0x1234]


def test_register_read_only():
    dut = Register(read_only=True)
    data = []

    def testbench():
        data.append((yield from dut.bus.read(0)))
        yield dut.status.eq(0x77)
        yield from dut.bus.write(0, 0x1234)
        assert (yield dut.storage) == 0
        data.append((yield from dut.bus.read(0)))

    run_simulation(dut, testbench())
    assert data == [0, 0x77]


def test_register_strobes():
    dut = Register()
    strobes = []

    @passive
    def monitor():
        while True:
            re, we = (yield dut.re), (yield dut.we)
            if re or we:
                strobes.append((re, we, (yield dut.bus.ack)))
            yield

    def testbench():
        yield from dut.bus.write(0, 1)
        yield from dut.bus.read(0)
        yield from dut.bus.write(0, 2)

    run_simulation(dut, [testbench(), monitor()])
    # one strobe per access, together with its ack
    assert strobes == [(0, 1, 1), (1, 0, 1), (0, 1, 1)]


def test_clock_source():
    dut = ClockSource(4)
    ticks = []

    def wait_request():
        n = 0
        while not (yield dut.bus.cyc):
            assert (yield dut.tick) == 0
            n += 1
            yield
        return n

    def testbench():
        for _ in range(3):
            assert (yield from wait_request()) == 4
            # held until granted, never a data beat
            for _ in range(3):
                assert (yield dut.bus.cyc) == 1
                assert (yield dut.bus.stb) == 0
                assert (yield dut.tick) == 0
                yield
            yield dut.granted.eq(1)
            yield
            ticks.append((yield dut.tick))
            yield dut.granted.eq(0)
            yield
            assert (yield dut.bus.cyc) == 0

    run_simulation(dut, testbench())
    assert ticks == [1, 1, 1]


def test_clock_source_period():
    with pytest.raises(ValueError):
        ClockSource(0)
