from .dma import *  # noqa
from .serial_dma import *  # noqa
from .sram import *  # noqa
from .register import *  # noqa
from .clock_source import *  # noqa
