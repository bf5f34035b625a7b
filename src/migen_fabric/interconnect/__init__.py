from .wishbone import *  # noqa
from .decoder import *  # noqa
from .arbiter import *  # noqa
