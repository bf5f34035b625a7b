from .fabric import *  # noqa
