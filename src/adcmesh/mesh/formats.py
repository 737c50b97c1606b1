"""
Mesh Format I/O Module

This module provides reading and writing of the supported mesh formats:
- ADCIRC ASCII mesh (fort.14, .14/.grd) with open and land boundaries
- Aquaveo generic 2D mesh (.2dm), nodes and elements only
- DFlow-FM unstructured network (*_net.nc) through netCDF4

Readers return a MeshData container that the Mesh adopts only after the
whole file has been parsed. Writers serialise a Mesh.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Optional, TextIO, Tuple, TypeVar, Union

import netCDF4
import numpy as np

from adcmesh.core.errors import (
    ExternalLibraryError,
    MalformedRecordError,
    MeshConfigurationError,
    MeshInvariantError,
    MeshNotFoundError,
)
from adcmesh.mesh.ordering import Ordering, OrderingTracker, SequentialOrdering
from adcmesh.mesh.records import Boundary, Element, Node, parse_int
from adcmesh.mesh.topology import generate_link_table, max_nodes_per_element, normalize_block

logger = logging.getLogger(__name__)

T = TypeVar("T")

DFLOW_HEADER = "DFlowFM-NetNC"

# 2dm cards describing elements this library cannot represent
_UNSUPPORTED_2DM_CARDS = ("E2L", "E3L", "E6T", "E8Q", "E9Q")


class MeshFormat(Enum):
    """Supported mesh formats."""

    ADCIRC = "adcirc"
    TWODM = "2dm"
    DFLOW = "dflow"

    @classmethod
    def from_filename(cls, filename: Union[str, Path]) -> "MeshFormat":
        """Infer the format from a file name.

        Raises:
            MeshConfigurationError: If the name matches no supported format
        """
        name = Path(filename).name
        suffix = Path(filename).suffix.lower()
        if suffix in (".14", ".grd"):
            return cls.ADCIRC
        if suffix == ".2dm":
            return cls.TWODM
        if "_net.nc" in name:
            return cls.DFLOW
        raise MeshConfigurationError(f"Could not determine mesh format from file name: {filename}")

    @classmethod
    def from_name(cls, name: str) -> "MeshFormat":
        """Look up a format by its value, e.g. ``"adcirc"``."""
        try:
            return cls(name.lower())
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise MeshConfigurationError(f"Unknown mesh format {name!r}; expected one of {choices}") from None


@dataclass
class MeshData:
    """Records parsed from a mesh file."""

    header: str = ""
    nodes: List[Node] = field(default_factory=list)
    elements: List[Element] = field(default_factory=list)
    open_boundaries: List[Boundary] = field(default_factory=list)
    land_boundaries: List[Boundary] = field(default_factory=list)
    node_ordering: Optional[Ordering] = None
    element_ordering: Optional[Ordering] = None

    # Projection metadata, when the format carries it
    epsg: Optional[int] = None
    is_geographic: Optional[bool] = None


class _LineSource:
    """Numbered line iterator that attaches file/line context to parse errors."""

    def __init__(self, handle: TextIO, filename: str):
        self._lines: Iterator[str] = iter(handle)
        self.filename = filename
        self.line_number = 0

    def next_line(self, what: str) -> str:
        try:
            line = next(self._lines)
        except StopIteration:
            raise MalformedRecordError(f"Unexpected end of file while reading {what}", self.filename) from None
        self.line_number += 1
        return line

    def at_end(self) -> bool:
        """Consume blank lines and report whether the file is exhausted."""
        for line in self._lines:
            self.line_number += 1
            if line.strip():
                self._lines = _prepend(line, self._lines)
                self.line_number -= 1
                return False
        return True

    def parse(self, parser: Callable[[str], T], what: str) -> T:
        line = self.next_line(what)
        try:
            return parser(line)
        except MalformedRecordError as e:
            raise MalformedRecordError(str(e), self.filename, self.line_number) from e

    def read_count(self, what: str) -> int:
        """Read a line whose first token is a non-negative count."""
        def _count(line: str) -> int:
            fields = line.split()
            if not fields:
                raise MalformedRecordError(f"Missing {what}")
            value = parse_int(fields[0], what)
            if value < 0:
                raise MalformedRecordError(f"Negative {what}: {value}")
            return value

        return self.parse(_count, what)

    def error(self, message: str) -> MalformedRecordError:
        return MalformedRecordError(message, self.filename, self.line_number)


def _prepend(line: str, rest: Iterator[str]) -> Iterator[str]:
    yield line
    yield from rest


def _check_references(ids, ordering: Ordering, owner: str, filename: str, line_number: int = None) -> None:
    for node_id in ids:
        if not ordering.contains(node_id):
            raise MalformedRecordError(f"{owner} references unknown node {node_id}", filename, line_number)


class MeshFormatRegistry:
    """Registry for mesh format readers and writers."""

    def __init__(self):
        self.readers = {}
        self.writers = {}
        self._register_default_formats()

    def _register_default_formats(self):
        """Register default format handlers."""
        self.readers[MeshFormat.ADCIRC] = AdcircReader()
        self.writers[MeshFormat.ADCIRC] = AdcircWriter()

        self.readers[MeshFormat.TWODM] = TwoDMReader()
        self.writers[MeshFormat.TWODM] = TwoDMWriter()

        self.readers[MeshFormat.DFLOW] = DFlowReader()
        self.writers[MeshFormat.DFLOW] = DFlowWriter()

    def get_reader(self, format: MeshFormat) -> "MeshReader":
        """Get reader for specified format."""
        if format not in self.readers:
            raise MeshConfigurationError(f"No reader available for format: {format}")
        return self.readers[format]

    def get_writer(self, format: MeshFormat) -> "MeshWriter":
        """Get writer for specified format."""
        if format not in self.writers:
            raise MeshConfigurationError(f"No writer available for format: {format}")
        return self.writers[format]


# Base classes for format handlers
class MeshReader:
    """Base class for mesh readers."""

    def read(self, file_path: Path) -> MeshData:
        """Read mesh records from file."""
        raise NotImplementedError

    def detect_format(self, file_path: Path) -> bool:
        """Detect if file content is in this format."""
        return False


class MeshWriter:
    """Base class for mesh writers."""

    def write(self, mesh, file_path: Path) -> None:
        """Write mesh to file."""
        raise NotImplementedError


# ADCIRC format handlers
class AdcircReader(MeshReader):
    """ADCIRC ASCII mesh reader."""

    def read(self, file_path: Path) -> MeshData:
        """Read an ADCIRC fort.14 style mesh."""
        logger.info(f"Reading ADCIRC mesh from {file_path}")

        with open(file_path, "r") as f:
            source = _LineSource(f, str(file_path))

            header = source.next_line("mesh header").rstrip("\r\n")
            num_elements, num_nodes = source.parse(self._parse_dimensions, "mesh dimensions")

            nodes, node_ordering = self._read_nodes(source, num_nodes)
            elements, element_ordering = self._read_elements(source, num_elements, node_ordering)

            if source.at_end():
                logger.warning(f"{file_path} has no boundary sections; assuming no boundaries")
                open_boundaries, land_boundaries = [], []
            else:
                open_boundaries = self._read_open_boundaries(source, node_ordering)
                land_boundaries = self._read_land_boundaries(source, node_ordering)

        data = MeshData(
            header=header,
            nodes=nodes,
            elements=elements,
            open_boundaries=open_boundaries,
            land_boundaries=land_boundaries,
            node_ordering=node_ordering,
            element_ordering=element_ordering,
        )

        logger.info(
            f"Read ADCIRC mesh: {len(nodes)} nodes, {len(elements)} elements, "
            f"{len(open_boundaries)} open and {len(land_boundaries)} land boundaries"
        )
        return data

    @staticmethod
    def _parse_dimensions(line: str) -> Tuple[int, int]:
        fields = line.split()
        if len(fields) < 2:
            raise MalformedRecordError(f"Error reading mesh header dimensions: {line.strip()!r}")
        num_elements = parse_int(fields[0], "number of elements")
        num_nodes = parse_int(fields[1], "number of nodes")
        if num_elements < 0 or num_nodes < 0:
            raise MalformedRecordError("Mesh dimensions must be non-negative")
        return num_elements, num_nodes

    def _read_nodes(self, source: _LineSource, count: int) -> Tuple[List[Node], Ordering]:
        nodes: List[Node] = []
        tracker = OrderingTracker("node")
        for _ in range(count):
            node = source.parse(Node.from_adcirc_string, "nodes")
            tracker.observe(node.id)
            nodes.append(node)

        try:
            ordering = tracker.finalize(n.id for n in nodes)
        except MalformedRecordError as e:
            raise MalformedRecordError(str(e), source.filename) from e
        return nodes, ordering

    def _read_elements(
        self, source: _LineSource, count: int, node_ordering: Ordering
    ) -> Tuple[List[Element], Ordering]:
        elements: List[Element] = []
        tracker = OrderingTracker("element")
        for _ in range(count):
            element = source.parse(Element.from_adcirc_string, "elements")
            _check_references(element.nodes, node_ordering, f"Element {element.id}", source.filename, source.line_number)
            tracker.observe(element.id)
            elements.append(element)

        try:
            ordering = tracker.finalize(e.id for e in elements)
        except MalformedRecordError as e:
            raise MalformedRecordError(str(e), source.filename) from e
        return elements, ordering

    def _read_boundary_nodes(self, source: _LineSource, boundary: Boundary, length: int, node_ordering: Ordering) -> None:
        for _ in range(length):
            source.parse(boundary.append_node_line, "boundary nodes")
        _check_references(boundary.node_ids(), node_ordering, "Boundary", source.filename, source.line_number)

    def _read_open_boundaries(self, source: _LineSource, node_ordering: Ordering) -> List[Boundary]:
        count = source.read_count("number of open boundaries")
        total = source.read_count("total number of open boundary nodes")

        boundaries = []
        for _ in range(count):
            length = source.read_count("open boundary length")
            boundary = Boundary()
            self._read_boundary_nodes(source, boundary, length, node_ordering)
            boundaries.append(boundary)

        found = sum(b.length for b in boundaries)
        if found != total:
            logger.warning(f"Open boundary node total {total} does not match {found} nodes read")
        logger.debug(f"Read {count} open boundaries with {found} nodes")
        return boundaries

    def _read_land_boundaries(self, source: _LineSource, node_ordering: Ordering) -> List[Boundary]:
        count = source.read_count("number of land boundaries")
        total = source.read_count("total number of land boundary nodes")

        def _header(line: str) -> Tuple[int, int]:
            fields = line.split()
            if len(fields) < 2:
                raise MalformedRecordError(f"Land boundary header needs a length and a type code: {line.strip()!r}")
            length = parse_int(fields[0], "land boundary length")
            if length < 0:
                raise MalformedRecordError(f"Negative land boundary length: {length}")
            return length, parse_int(fields[1], "land boundary type code")

        boundaries = []
        for _ in range(count):
            length, code = source.parse(_header, "land boundary header")
            if code < 0:
                raise source.error(f"Invalid land boundary type code: {code}")
            boundary = Boundary(code=code)
            self._read_boundary_nodes(source, boundary, length, node_ordering)
            boundaries.append(boundary)

        found = sum(b.length for b in boundaries)
        if found != total:
            logger.warning(f"Land boundary node total {total} does not match {found} nodes read")
        logger.debug(f"Read {count} land boundaries with {found} nodes")
        return boundaries


class AdcircWriter(MeshWriter):
    """ADCIRC ASCII mesh writer."""

    def write(self, mesh, file_path: Path) -> None:
        """Write ADCIRC fort.14 format."""
        logger.info(f"Writing ADCIRC mesh to {file_path}")

        config = mesh.config
        precision = config.coordinate_precision(mesh.is_geographic)

        with open(file_path, "w") as f:
            f.write(f"{mesh.header}\n")
            f.write(f"{mesh.num_elements:11d} {mesh.num_nodes:11d}\n")

            for node in mesh.nodes:
                f.write(node.to_adcirc_string(mesh.is_geographic, precision) + "\n")

            for element in mesh.elements:
                f.write(element.to_adcirc_string() + "\n")

            f.write(f"{mesh.num_open_boundaries}\n")
            f.write(f"{mesh.total_open_boundary_nodes}\n")
            for boundary in mesh.open_boundaries:
                for line in boundary.to_string_list(config.boundary_precision):
                    f.write(line + "\n")

            f.write(f"{mesh.num_land_boundaries}\n")
            f.write(f"{mesh.total_land_boundary_nodes}\n")
            for boundary in mesh.land_boundaries:
                for line in boundary.to_string_list(config.boundary_precision):
                    f.write(line + "\n")

        logger.info(f"Written ADCIRC mesh: {mesh.num_nodes} nodes, {mesh.num_elements} elements")


# 2dm format handlers
class TwoDMReader(MeshReader):
    """Aquaveo generic 2D mesh reader.

    The 2dm format cannot hold weirs or cross-barrier pipes, so boundary
    information is never read from it.
    """

    def read(self, file_path: Path) -> MeshData:
        """Read a 2dm mesh."""
        logger.info(f"Reading 2dm mesh from {file_path}")

        header = ""
        nodes: List[Node] = []
        elements: List[Element] = []
        element_lines: List[int] = []
        node_tracker = OrderingTracker("node")
        element_tracker = OrderingTracker("element")
        filename = str(file_path)

        with open(file_path, "r") as f:
            for line_number, line in enumerate(f, start=1):
                fields = line.split()
                if not fields:
                    continue
                card = fields[0]
                try:
                    if card == "ND":
                        node = Node.from_2dm_string(line)
                        node_tracker.observe(node.id)
                        nodes.append(node)
                    elif card in ("E3T", "E4Q"):
                        element = Element.from_2dm_string(line)
                        element_tracker.observe(element.id)
                        elements.append(element)
                        element_lines.append(line_number)
                    elif card == "MESHNAME":
                        header = line.strip()[len("MESHNAME"):].replace('"', "").strip()
                    elif card in _UNSUPPORTED_2DM_CARDS:
                        raise MeshInvariantError(
                            f"Element card {card} is not supported; only E3T and E4Q are ({filename}, line {line_number})"
                        )
                except MalformedRecordError as e:
                    raise MalformedRecordError(str(e), filename, line_number) from e

        try:
            node_ordering = node_tracker.finalize(n.id for n in nodes)
            element_ordering = element_tracker.finalize(e.id for e in elements)
        except MalformedRecordError as e:
            raise MalformedRecordError(str(e), filename) from e

        for element, line_number in zip(elements, element_lines):
            _check_references(element.nodes, node_ordering, f"Element {element.id}", filename, line_number)

        data = MeshData(
            header=header or "Mesh",
            nodes=nodes,
            elements=elements,
            node_ordering=node_ordering,
            element_ordering=element_ordering,
        )

        logger.info(f"Read 2dm mesh: {len(nodes)} nodes, {len(elements)} elements")
        return data

    def detect_format(self, file_path: Path) -> bool:
        """Detect the MESH2D card on the first line."""
        try:
            with open(file_path, "r") as f:
                return f.readline().strip().startswith("MESH2D")
        except (OSError, UnicodeDecodeError):
            return False


class TwoDMWriter(MeshWriter):
    """Aquaveo generic 2D mesh writer."""

    def write(self, mesh, file_path: Path) -> None:
        """Write 2dm format."""
        logger.info(f"Writing 2dm mesh to {file_path}")

        precision = mesh.config.coordinate_precision(mesh.is_geographic)
        with open(file_path, "w") as f:
            f.write("MESH2D\n")
            f.write(f'MESHNAME "{mesh.header}"\n')
            for element in mesh.elements:
                f.write(element.to_2dm_string() + "\n")
            for node in mesh.nodes:
                f.write(node.to_2dm_string(mesh.is_geographic, precision) + "\n")

        if mesh.num_open_boundaries or mesh.num_land_boundaries:
            logger.warning("Boundary information is not written to 2dm files")
        logger.info(f"Written 2dm mesh: {mesh.num_nodes} nodes, {mesh.num_elements} elements")


# DFlow-FM format handlers
def _fill_values(variable) -> List[int]:
    """Sentinels that mark an absent vertex in NetElemNode."""
    values = [netCDF4.default_fillvals["i4"], netCDF4.default_fillvals["i8"]]
    fill = getattr(variable, "_FillValue", None)
    if fill is not None:
        values.append(int(fill))
    return values


class DFlowReader(MeshReader):
    """DFlow-FM unstructured network reader."""

    REQUIRED_DIMENSIONS = ("nNetNode", "nNetElem", "nNetElemMaxNode")
    REQUIRED_VARIABLES = ("NetNode_x", "NetNode_y", "NetElemNode")

    def read(self, file_path: Path) -> MeshData:
        """Read a DFlow-FM *_net.nc mesh."""
        logger.info(f"Reading DFlow-FM mesh from {file_path}")
        filename = str(file_path)

        try:
            dataset = netCDF4.Dataset(filename, "r")
        except OSError as e:
            logger.error(f"netCDF error opening {filename}: {e}")
            raise ExternalLibraryError(f"Error opening DFlow mesh file {filename}: {e}") from e

        with dataset:
            for name in self.REQUIRED_DIMENSIONS:
                if name not in dataset.dimensions:
                    raise MalformedRecordError(f"Missing dimension {name}", filename)
            for name in self.REQUIRED_VARIABLES:
                if name not in dataset.variables:
                    raise MalformedRecordError(f"Missing variable {name}", filename)

            max_nodes = len(dataset.dimensions["nNetElemMaxNode"])
            if max_nodes < 3 or max_nodes > 4:
                raise MeshInvariantError("Mesh must only contain triangles and quads")

            try:
                x = self._read_array(dataset, "NetNode_x", float)
                y = self._read_array(dataset, "NetNode_y", float)
                if "NetNode_z" in dataset.variables:
                    z = self._read_array(dataset, "NetNode_z", float)
                else:
                    logger.warning(f"{filename} has no NetNode_z variable; elevations set to zero")
                    z = np.zeros_like(x)

                elem_var = dataset.variables["NetElemNode"]
                elem_var.set_auto_mask(False)
                raw = np.asarray(elem_var[:], dtype=np.int64).reshape(-1, max_nodes)
                fills = _fill_values(elem_var)
                start_index = int(getattr(elem_var, "start_index", 1))
            except (RuntimeError, OSError) as e:
                logger.error(f"netCDF error reading arrays from {filename}: {e}")
                raise ExternalLibraryError(f"Error reading arrays from netcdf file {filename}: {e}") from e

            epsg, is_geographic = self._read_projection(dataset)

        if not (x.size == y.size == z.size):
            raise MalformedRecordError("Node coordinate arrays differ in length", filename)

        nodes = [Node(i + 1, float(xi), float(yi), float(zi)) for i, (xi, yi, zi) in enumerate(zip(x, y, z))]
        connectivity, counts = self._decode_connectivity(raw, fills, start_index, len(nodes), filename)
        elements = self._build_elements(connectivity, counts, x, y)

        # Node and element ids are positions + 1 by construction
        data = MeshData(
            header=DFLOW_HEADER,
            nodes=nodes,
            elements=elements,
            node_ordering=SequentialOrdering("node", len(nodes)),
            element_ordering=SequentialOrdering("element", len(elements)),
            epsg=epsg,
            is_geographic=is_geographic,
        )

        logger.info(f"Read DFlow-FM mesh: {len(nodes)} nodes, {len(elements)} elements")
        return data

    @staticmethod
    def _read_array(dataset, name: str, dtype) -> np.ndarray:
        variable = dataset.variables[name]
        variable.set_auto_mask(False)
        return np.asarray(variable[:], dtype=dtype).ravel()

    @staticmethod
    def _read_projection(dataset) -> Tuple[Optional[int], Optional[bool]]:
        epsg = None
        is_geographic = None
        if "crs" in dataset.variables:
            crs = dataset.variables["crs"]
            for name in ("EPSG", "epsg"):
                if name in crs.ncattrs():
                    epsg = int(np.asarray(crs.getncattr(name)).ravel()[0])
                    break
        if "Spherical" in dataset.ncattrs():
            is_geographic = bool(int(np.asarray(dataset.getncattr("Spherical")).ravel()[0]))
        return epsg, is_geographic

    @staticmethod
    def _decode_connectivity(
        raw: np.ndarray, fills: List[int], start_index: int, num_nodes: int, filename: str
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Convert NetElemNode to 1-based ids and per-element vertex counts.

        Raises:
            MeshInvariantError: If fills are not trailing or leave an element
                with other than 3 or 4 vertices
            MalformedRecordError: If a vertex references a missing node
        """
        is_fill = np.isin(raw, fills)
        ids = np.where(is_fill, 0, raw - start_index + 1)
        is_fill |= ids <= 0

        if np.any(np.diff(is_fill.astype(np.int8), axis=1) < 0):
            raise MeshInvariantError(f"Fill values in NetElemNode are not trailing ({filename})")

        counts = raw.shape[1] - is_fill.sum(axis=1)
        bad = np.flatnonzero((counts != 3) & (counts != 4))
        if bad.size:
            raise MeshInvariantError(f"Invalid element type detected at element {bad[0] + 1} ({filename})")

        if np.any(ids > num_nodes):
            raise MalformedRecordError("NetElemNode references a node beyond nNetNode", filename)
        return ids, counts

    @staticmethod
    def _build_elements(connectivity: np.ndarray, counts: np.ndarray, x: np.ndarray, y: np.ndarray) -> List[Element]:
        """Create elements with vertices in centroid-angle order."""
        ordered: List[Optional[List[int]]] = [None] * len(counts)
        for arity in (3, 4):
            rows = np.flatnonzero(counts == arity)
            if rows.size == 0:
                continue
            ids = connectivity[rows, :arity]
            sorted_ids, _ = normalize_block(ids, ids - 1, x, y)
            for row, vertices in zip(rows, sorted_ids.tolist()):
                ordered[row] = vertices
        return [Element(i + 1, vertices) for i, vertices in enumerate(ordered)]

    def detect_format(self, file_path: Path) -> bool:
        """Detect a netCDF file carrying the nNetNode dimension."""
        try:
            with open(file_path, "rb") as f:
                magic = f.read(4)
            if magic[:3] != b"CDF" and magic != b"\x89HDF":
                return False
            with netCDF4.Dataset(str(file_path), "r") as dataset:
                return "nNetNode" in dataset.dimensions
        except OSError:
            return False


class DFlowWriter(MeshWriter):
    """DFlow-FM unstructured network writer."""

    def write(self, mesh, file_path: Path) -> None:
        """Write a UGRID-0.9 style *_net.nc file."""
        logger.info(f"Writing DFlow-FM mesh to {file_path}")

        if mesh.num_nodes == 0 or mesh.num_elements == 0:
            raise MeshInvariantError("Cannot write a DFlow-FM mesh without nodes and elements")

        fill = netCDF4.default_fillvals["i4"]
        max_nodes = max_nodes_per_element(mesh)

        # NetNode arrays are written in storage order, so connectivity uses positions + 1
        links = mesh.node_positions(generate_link_table(mesh)) + 1
        connectivity = np.full((mesh.num_elements, max_nodes), fill, dtype=np.int32)
        for i, element in enumerate(mesh.elements):
            connectivity[i, :element.n] = mesh.node_positions(np.asarray(element.nodes)) + 1

        try:
            with netCDF4.Dataset(str(file_path), "w", format="NETCDF4_CLASSIC") as ds:
                self._write_dataset(ds, mesh, links, connectivity, max_nodes, fill)
        except (RuntimeError, OSError) as e:
            logger.error(f"netCDF error writing {file_path}: {e}")
            raise ExternalLibraryError(f"Error writing DFlow mesh file {file_path}: {e}") from e

        logger.info(f"Written DFlow-FM mesh: {mesh.num_nodes} nodes, {mesh.num_elements} elements, {len(links)} links")

    @staticmethod
    def _write_dataset(ds, mesh, links: np.ndarray, connectivity: np.ndarray, max_nodes: int, fill: int) -> None:
        ds.createDimension("nNetNode", mesh.num_nodes)
        ds.createDimension("nNetLink", len(links))
        ds.createDimension("nNetElem", mesh.num_elements)
        ds.createDimension("nNetElemMaxNode", max_nodes)
        ds.createDimension("nNetLinkPts", 2)

        mesh2d = ds.createVariable("Mesh2D", "i4")
        node_x = ds.createVariable("NetNode_x", "f8", ("nNetNode",))
        node_y = ds.createVariable("NetNode_y", "f8", ("nNetNode",))
        node_z = ds.createVariable("NetNode_z", "f8", ("nNetNode",))
        link_type = ds.createVariable("NetLinkType", "i4", ("nNetLink",))
        net_link = ds.createVariable("NetLink", "i4", ("nNetLink", "nNetLinkPts"))
        crs = ds.createVariable("crs", "i4")
        elem_node = ds.createVariable("NetElemNode", "i4", ("nNetElem", "nNetElemMaxNode"), fill_value=fill)

        mesh2d.cf_role = "mesh_topology"
        mesh2d.topology_dimension = np.int32(2)
        mesh2d.node_coordinates = "NetNode_x NetNode_y"
        mesh2d.node_dimension = "nNetNode"
        mesh2d.face_node_connectivity = "NetElemNode"
        mesh2d.face_dimension = "nNetElem"
        mesh2d.edge_node_connectivity = "NetLink"
        mesh2d.edge_dimension = "nNetLink"

        if mesh.is_geographic:
            node_x.axis = "theta"
            node_x.long_name = "longitude of vertex"
            node_x.units = "degrees_east"
            node_x.standard_name = "longitude"
            node_y.axis = "phi"
            node_y.long_name = "latitude of vertex"
            node_y.units = "degrees_north"
            node_y.standard_name = "latitude"
        else:
            node_x.axis = "X"
            node_x.long_name = "x-coordinate in Cartesian system"
            node_x.units = "metre"
            node_x.standard_name = "projection_x_coordinate"
            node_y.axis = "Y"
            node_y.long_name = "y-coordinate in Cartesian system"
            node_y.units = "metre"
            node_y.standard_name = "projection_y_coordinate"
        ds.Spherical = np.int32(1 if mesh.is_geographic else 0)
        crs.EPSG = np.int32(mesh.epsg)

        node_z.axis = "Z"
        node_z.long_name = "z-coordinate in Cartesian system"
        node_z.units = "metre"
        node_z.standard_name = "projection_z_coordinate"
        node_z.mesh = "Mesh2D"
        node_z.location = "node"

        net_link.start_index = np.int32(1)
        elem_node.start_index = np.int32(1)
        ds.Conventions = "UGRID-0.9"

        node_x[:] = mesh.x
        node_y[:] = mesh.y
        node_z[:] = mesh.z
        net_link[:] = links.astype(np.int32)
        link_type[:] = np.full(len(links), mesh.config.link_type, dtype=np.int32)
        elem_node[:] = connectivity


# Main mesh I/O interface
def detect_format(file_path: Union[str, Path]) -> MeshFormat:
    """Determine the format of an existing file.

    The file name is tried first; when it is not conclusive, the content
    probes of the 2dm and DFlow-FM readers are consulted. ADCIRC files have
    no signature and are only recognised by extension.

    Raises:
        MeshConfigurationError: If no format can be determined
    """
    file_path = Path(file_path)
    try:
        return MeshFormat.from_filename(file_path)
    except MeshConfigurationError:
        registry = MeshFormatRegistry()
        for fmt in (MeshFormat.TWODM, MeshFormat.DFLOW):
            if registry.get_reader(fmt).detect_format(file_path):
                logger.debug(f"Detected {fmt.value} format from content of {file_path}")
                return fmt
        raise


def read_mesh_data(file_path: Union[str, Path], format: Optional[MeshFormat] = None) -> MeshData:
    """Read mesh records from file with automatic format detection.

    Args:
        file_path: Path to mesh file
        format: Mesh format (if None, auto-detect)

    Returns:
        MeshData object

    Raises:
        MeshNotFoundError: If the file does not exist
        MeshConfigurationError: If the format cannot be determined
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise MeshNotFoundError(f"File does not exist: {file_path}")

    if format is None:
        format = detect_format(file_path)

    reader = MeshFormatRegistry().get_reader(format)
    return reader.read(file_path)


def write_mesh(mesh, file_path: Union[str, Path], format: Optional[MeshFormat] = None) -> None:
    """Write a mesh to file.

    Args:
        mesh: Mesh to write
        file_path: Output file path
        format: Output mesh format (if None, inferred from the file name)
    """
    file_path = Path(file_path)
    if format is None:
        format = MeshFormat.from_filename(file_path)

    writer = MeshFormatRegistry().get_writer(format)
    writer.write(mesh, file_path)
