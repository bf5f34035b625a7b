import operator
from toolz.curried import *  # noqa
import ramda as R
from migen import *  # noqa
from migen.genlib.record import set_layout_parameters

__all__ = ["Interface"]

# single-word, classic cycle Wishbone subset; byte addresses, word data
_layout = [
    ("adr", "adr_width", DIR_M_TO_S),  # byte address
    ("dat_w", "data_width", DIR_M_TO_S),  # write data
    ("dat_r", "data_width", DIR_S_TO_M),  # read data
    ("cyc", 1, DIR_M_TO_S),  # bus cycle, held for the transaction
    ("stb", 1, DIR_M_TO_S),  # data lines valid
    ("we", 1, DIR_M_TO_S),  # write enable
    ("ack", 1, DIR_S_TO_M),  # beat complete
]


class Interface(Record):
    def __init__(self, data_width=16, adr_width=24, name=None):
        self.data_width = data_width
        self.adr_width = adr_width
        super().__init__(
            set_layout_parameters(
                _layout, data_width=data_width, adr_width=adr_width),
            name=name)

    @staticmethod
    def like(other, name=None):
        return pipe(
            other,
            operator.attrgetter("data_width", "adr_width"),
            R.apply(partial(Interface, name=name)))

    def _start(self, adr, we, dat=0):
        yield self.adr.eq(adr)
        yield self.dat_w.eq(dat)
        yield self.we.eq(we)
        yield self.cyc.eq(1)
        yield self.stb.eq(1)
        yield
        while (yield self.ack) == 0:
            yield

    def _release(self):
        yield self.cyc.eq(0)
        yield self.stb.eq(0)
        yield self.we.eq(0)
        yield

    def write(self, adr, dat):
        yield from self._start(adr, 1, dat)
        yield from self._release()

    def read(self, adr):
        yield from self._start(adr, 0)
        dat = (yield self.dat_r)
        yield from self._release()
        return dat
