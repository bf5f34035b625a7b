import click
import numpy as np
from migen.fhdl import verilog
from migen_fabric.integration import Fabric


@click.command(name="fabric_gen")
@click.argument("output", type=click.Path())
@click.option("--rom", type=click.Path(exists=True),
              help="ROM image, 16 bit big-endian words.")
@click.option("--rom-size", type=int, default=0x4000, show_default=True,
              help="ROM size in bytes.")
@click.option("--clock-period", type=int, default=256, show_default=True,
              help="Clock source period in ticks.")
@click.option("--name", default="fabric", show_default=True,
              help="Top level module name.")
def cli(**kwargs):
    """Convert the bus fabric to Verilog.

    [OUTPUT] Verilog source file (*.v)

    """
    init = None
    if kwargs["rom"]:
        a = np.fromfile(kwargs["rom"], dtype=">u2")
        if len(a) > kwargs["rom_size"] // 2:
            raise click.BadParameter(
                "{} words do not fit into {} bytes of ROM".format(
                    len(a), kwargs["rom_size"]), param_hint="--rom")
        init = a.tolist()
        click.echo("ROM: {} words from {}".format(len(init), kwargs["rom"]))
    try:
        fabric = Fabric(rom_size=kwargs["rom_size"], rom_init=init,
                        clock_period=kwargs["clock_period"])
    except ValueError as e:
        raise click.UsageError(str(e))
    verilog.convert(fabric, ios=fabric.get_ios(),
                    name=kwargs["name"]).write(kwargs["output"])
    click.echo("Wrote {}".format(kwargs["output"]))
