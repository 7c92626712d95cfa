from em_viz.physim.scenes import demo_snapshot
from em_viz.physim.shader import ShadingMode
from em_viz.render import Backend, render_frame
import em_viz.utils.visualization as vis

from typing import List, Optional
from pathlib import Path
import matplotlib.pyplot as plt
import argparse
import logging
import sys

__author__ = "em-viz developers"
__copyright__ = "em-viz developers"
__license__ = "MIT"

_logger = logging.getLogger(__name__)
MODE_NAMES = ["auto"] + [mode.value for mode in ShadingMode]
BACKEND_NAMES = [backend.value for backend in Backend]


def setup_logging(loglevel):
    """Setup basic logging

    Args:
      loglevel (int): minimum loglevel for emitting messages
    """
    logformat = "[%(asctime)s] %(levelname)s:%(name)s:%(message)s"
    logging.basicConfig(
        level=loglevel, stream=sys.stdout, format=logformat, datefmt="%Y-%m-%d %H:%M:%S"
    )


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Render a frame of a synthetic electromagnetic field snapshot",
    )
    parser.add_argument(
        "--grid", type=int, nargs=2, default=[100, 100], metavar=("GX", "GY"), help="Number of grid cells along x and y"
    )
    parser.add_argument(
        "--cell_size", type=float, default=0.02, help="Physical size of one grid cell"
    )
    parser.add_argument(
        "--output", type=int, nargs=2, default=[400, 400], metavar=("WIDTH", "HEIGHT"), help="Size of the output raster in pixels"
    )
    parser.add_argument(
        "--mode",
        choices=MODE_NAMES,
        default="auto",
        help="Coordinate resolution mode. 'auto' uses the continuous mode on GPU and the snapped mode otherwise",
    )
    parser.add_argument(
        "--backend", choices=BACKEND_NAMES, default=Backend.NUMPY.value, help="Execution backend"
    )
    parser.add_argument(
        "--arch", choices=["cpu", "gpu"], default="cpu", help="Taichi architecture, only used by the taichi backend"
    )
    parser.add_argument(
        "--figure", type=str, default=None, help="Path where the figure is saved. If None, the figure is shown"
    )
    parser.add_argument(
        "-d",
        "--debug",
        help="Print lots of debugging statements",
        action="store_const",
        dest="loglevel",
        const=logging.DEBUG,
        default=logging.WARNING,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        help="Be verbose",
        action="store_const",
        dest="loglevel",
        const=logging.INFO,
    )
    return parser


def resolve_mode(mode: str, backend: Backend, arch: str) -> ShadingMode:
    "Continuous sampling where fractional indexing is native (taichi on GPU), snapped sampling otherwise"
    if mode != "auto":
        return ShadingMode.from_name(mode)
    if backend is Backend.TAICHI and arch == "gpu":
        return ShadingMode.CONTINUOUS
    return ShadingMode.SNAPPED


def run(args: List[str]) -> Optional[Path]:
    parser = get_parser()
    args = parser.parse_args(args)
    setup_logging(args.loglevel)

    backend = Backend.from_name(args.backend)
    mode = resolve_mode(args.mode, backend, args.arch)
    if backend is Backend.TAICHI:
        import taichi as ti

        ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    _logger.info("Building the demo field snapshot")
    snapshot = demo_snapshot(*args.grid, cell_size=args.cell_size)
    _logger.info(f"Rendering with the {backend.value} backend in {mode.value} mode")
    frame = render_frame(snapshot, tuple(args.output), mode, backend)

    fig, _, _ = vis.plot_frame(frame, title=f"{snapshot} - {mode.value}")
    if args.figure is None:
        plt.show()
        return None
    path = Path(args.figure).resolve()
    _logger.info(f"Saving the figure to {path}")
    fig.savefig(path)
    plt.close(fig)
    return path


def main():
    """Calls :func:`run` passing the CLI arguments extracted from :obj:`sys.argv`

    This function can be used as entry point to create console scripts with setuptools.
    """
    run(sys.argv[1:])


if __name__ == "__main__":
    main()
