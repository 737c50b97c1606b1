"""Command-line interface for adcmesh.

This module provides the main entry point for the adcmesh command-line
application: mesh inspection, format conversion, spatial queries,
reprojection, shapefile export, plotting and search benchmarks.
"""

import argparse
import logging
import sys
import traceback
from typing import List, Optional

from adcmesh.core.config import MeshConfig
from adcmesh.core.errors import MeshError
from adcmesh.mesh.formats import MeshFormat
from adcmesh.mesh.mesh import Mesh

logger = logging.getLogger(__name__)

FORMAT_CHOICES = [f.value for f in MeshFormat]


def setup_logging(debug_mode: bool = False) -> None:
    """Configure logging based on debug mode.

    Args:
        debug_mode: If True, set logging level to DEBUG, otherwise INFO
    """
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog='adcmesh',
        description='Read, convert and query unstructured 2D coastal meshes'
    )
    parser.add_argument('--debug', action='store_true', help='Enable debug output')
    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser('info', help='Summarise a mesh file')
    info.add_argument('mesh_file', help='Path to mesh (.14/.grd, .2dm, *_net.nc)')
    info.add_argument('--format', choices=FORMAT_CHOICES, default=None, help='Mesh format (default: detect)')

    convert = subparsers.add_parser('convert', help='Convert a mesh between formats')
    convert.add_argument('input', help='Input mesh file')
    convert.add_argument('output', help='Output mesh file')
    convert.add_argument('--input-format', choices=FORMAT_CHOICES, default=None)
    convert.add_argument('--output-format', choices=FORMAT_CHOICES, default=None)

    nearest = subparsers.add_parser('nearest', help='Find the nearest node or element')
    nearest.add_argument('mesh_file')
    nearest.add_argument('x', type=float)
    nearest.add_argument('y', type=float)
    nearest.add_argument('--element', action='store_true', help='Report the nearest element centroid instead')

    locate = subparsers.add_parser('locate', help='Find the element containing a point')
    locate.add_argument('mesh_file')
    locate.add_argument('x', type=float)
    locate.add_argument('y', type=float)
    locate.add_argument('--search-depth', type=int, default=20, help='Number of candidate elements (default: 20)')

    reproject = subparsers.add_parser('reproject', help='Transform mesh coordinates between EPSG codes')
    reproject.add_argument('input')
    reproject.add_argument('output')
    reproject.add_argument('--epsg-in', type=int, default=4326, help='Input EPSG code (default: 4326)')
    reproject.add_argument('--epsg-out', type=int, required=True, help='Output EPSG code')

    shp = subparsers.add_parser('shapefile', help='Export nodes, links or elements as a shapefile')
    shp.add_argument('mesh_file')
    shp.add_argument('output', help='Output shapefile path')
    shp.add_argument('--kind', choices=['nodes', 'connectivity', 'elements'], default='elements')

    plot = subparsers.add_parser('plot', help='Plot a mesh with matplotlib')
    plot.add_argument('mesh_file')
    plot.add_argument('--save', default=None, help='Save the figure instead of showing it')
    plot.add_argument('--no-boundaries', action='store_true', help='Do not draw boundaries')

    bench = subparsers.add_parser('benchmark', help='Time search tree builds and queries')
    bench.add_argument('mesh_file')
    bench.add_argument('--queries', type=int, default=1000, help='Number of random query points')
    bench.add_argument('--seed', type=int, default=None, help='Random seed for reproducibility')

    return parser


def load_mesh(path: str, format: Optional[str] = None, config: Optional[MeshConfig] = None) -> Mesh:
    mesh = Mesh(config=config)
    mesh.read(path, format)
    return mesh


def cmd_info(args: argparse.Namespace) -> int:
    mesh = load_mesh(args.mesh_file, args.format)
    print(f"Mesh: {args.mesh_file}")
    print(f"  Header: {mesh.header}")
    print(f"  Nodes: {mesh.num_nodes} (sequential ids: {mesh.node_ordering_is_sequential})")
    print(f"  Elements: {mesh.num_elements} (sequential ids: {mesh.element_ordering_is_sequential})")
    print(f"  Open boundaries: {mesh.num_open_boundaries} ({mesh.total_open_boundary_nodes} nodes)")
    print(f"  Land boundaries: {mesh.num_land_boundaries} ({mesh.total_land_boundary_nodes} nodes)")
    if mesh.num_nodes:
        x, y, z = mesh.x, mesh.y, mesh.z
        print(f"  X range: {x.min()} to {x.max()}")
        print(f"  Y range: {y.min()} to {y.max()}")
        print(f"  Z range: {z.min()} to {z.max()}")
    print(f"  Projection: EPSG:{mesh.projection} ({'geographic' if mesh.is_geographic else 'projected'})")
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    mesh = load_mesh(args.input, args.input_format)
    mesh.write(args.output, args.output_format)
    logger.info(f"Converted {args.input} to {args.output}")
    return 0


def cmd_nearest(args: argparse.Namespace) -> int:
    mesh = load_mesh(args.mesh_file)
    if args.element:
        element = mesh.element(mesh.find_nearest_element(args.x, args.y))
        print(f"Nearest element: {element.id} nodes {' '.join(str(n) for n in element.nodes)}")
    else:
        node = mesh.node(mesh.find_nearest_node(args.x, args.y))
        print(f"Nearest node: {node.id} at ({node.x}, {node.y}) z={node.z}")
    return 0


def cmd_locate(args: argparse.Namespace) -> int:
    mesh = load_mesh(args.mesh_file, config=MeshConfig(search_depth=args.search_depth))
    position = mesh.find_element(args.x, args.y)
    if position is None:
        print(f"No element contains ({args.x}, {args.y})")
        return 1
    element = mesh.element(position)
    print(f"Element {element.id} contains ({args.x}, {args.y})")
    return 0


def cmd_reproject(args: argparse.Namespace) -> int:
    mesh = load_mesh(args.input)
    mesh.define_projection(args.epsg_in, mesh.is_geographic)
    mesh.reproject(args.epsg_out)
    mesh.write(args.output)
    return 0


def cmd_shapefile(args: argparse.Namespace) -> int:
    mesh = load_mesh(args.mesh_file)
    if args.kind == 'nodes':
        mesh.to_node_shapefile(args.output)
    elif args.kind == 'connectivity':
        mesh.to_connectivity_shapefile(args.output)
    else:
        mesh.to_element_shapefile(args.output)
    return 0


def cmd_plot(args: argparse.Namespace) -> int:
    from adcmesh.visualization.mesh_viz import visualize_mesh

    mesh = load_mesh(args.mesh_file)
    visualize_mesh(mesh, save_path=args.save, show=args.save is None, show_boundaries=not args.no_boundaries)
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    from adcmesh.utils.benchmark import benchmark_search, log_benchmark_results

    mesh = load_mesh(args.mesh_file)
    log_benchmark_results(benchmark_search(mesh, args.queries, args.seed))
    return 0


COMMANDS = {
    'info': cmd_info,
    'convert': cmd_convert,
    'nearest': cmd_nearest,
    'locate': cmd_locate,
    'reproject': cmd_reproject,
    'shapefile': cmd_shapefile,
    'plot': cmd_plot,
    'benchmark': cmd_benchmark,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run the adcmesh command line.

    Args:
        argv: Argument list, ``sys.argv[1:]`` when omitted

    Returns:
        Exit code: 0 for success, non-zero for error
    """
    args = create_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        return COMMANDS[args.command](args)
    except MeshError as e:
        logger.error(f"{type(e).__name__}: {e}")
        if args.debug:
            logger.debug(traceback.format_exc())
        return 1


if __name__ == '__main__':
    sys.exit(main())
