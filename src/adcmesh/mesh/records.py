"""
Mesh record types.

This module defines the plain records stored by a mesh:
- Node: identifier, position and elevation
- Element: identifier and the identifiers of its 3 or 4 vertices
- Boundary: open or land/structure boundary with type-dependent attributes

Records only know how to (de)serialise themselves as a single line of a
given text format. Resolving node identifiers to storage positions is the
job of the owning mesh.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from adcmesh.core.errors import MalformedRecordError, MeshInvariantError

OPEN_BOUNDARY_CODE = -1

EXTERNAL_WEIR_CODES = (3, 13, 23)
INTERNAL_WEIR_CODES = (4, 24)
INTERNAL_WEIR_PIPE_CODES = (5, 25)


def parse_int(token: str, what: str) -> int:
    """Parse an integer field, raising MalformedRecordError on failure."""
    try:
        return int(token)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"Invalid {what}: {token!r}")


def parse_float(token: str, what: str) -> float:
    """Parse a float field, accepting Fortran style 'D' exponents."""
    try:
        return float(token.replace("D", "E").replace("d", "e"))
    except (AttributeError, ValueError):
        raise MalformedRecordError(f"Invalid {what}: {token!r}")


def split_fields(line: str, minimum: int, what: str) -> List[str]:
    """Split a record line and check it holds at least ``minimum`` fields."""
    fields = line.split()
    if len(fields) < minimum:
        raise MalformedRecordError(
            f"Expected at least {minimum} fields for {what}, got {len(fields)}: {line.strip()!r}"
        )
    return fields


@dataclass
class Node:
    """A mesh vertex."""

    id: int
    x: float
    y: float
    z: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def to_adcirc_string(self, geographic: bool = True, precision: Optional[int] = None) -> str:
        """Format the node as an ADCIRC node line.

        Args:
            geographic: Whether coordinates are in degrees
            precision: Decimal places, overriding the 10/4 default

        Returns:
            The formatted line without a trailing newline
        """
        if precision is None:
            precision = 10 if geographic else 4
        return f"{self.id:11d}   {self.x:14.{precision}f}   {self.y:14.{precision}f}  {self.z:14.{precision}f}"

    @classmethod
    def from_adcirc_string(cls, line: str) -> "Node":
        fields = split_fields(line, 4, "node")
        return cls(
            id=parse_int(fields[0], "node id"),
            x=parse_float(fields[1], "node x"),
            y=parse_float(fields[2], "node y"),
            z=parse_float(fields[3], "node z"),
        )

    def to_2dm_string(self, geographic: bool = True, precision: Optional[int] = None) -> str:
        if precision is None:
            precision = 10 if geographic else 4
        return f"ND {self.id} {self.x:14.{precision}f} {self.y:14.{precision}f} {self.z:14.{precision}f}"

    @classmethod
    def from_2dm_string(cls, line: str) -> "Node":
        fields = split_fields(line, 5, "2dm node")
        if fields[0] != "ND":
            raise MalformedRecordError(f"Not a 2dm node card: {line.strip()!r}")
        return cls(
            id=parse_int(fields[1], "node id"),
            x=parse_float(fields[2], "node x"),
            y=parse_float(fields[3], "node y"),
            z=parse_float(fields[4], "node z"),
        )


@dataclass
class Element:
    """A triangular or quadrilateral cell.

    ``nodes`` holds node identifiers, never node objects, so an element stays
    valid for as long as the owning mesh keeps those identifiers.
    """

    id: int
    nodes: List[int]

    def __post_init__(self) -> None:
        self.nodes = [int(n) for n in self.nodes]
        if len(self.nodes) not in (3, 4):
            raise MeshInvariantError(
                f"Element {self.id} has {len(self.nodes)} vertices; only triangles and quadrilaterals are supported"
            )

    @property
    def n(self) -> int:
        """Number of vertices."""
        return len(self.nodes)

    def legs(self) -> List[Tuple[int, int]]:
        """Return consecutive vertex pairs around the element, closing pair included."""
        return [(self.nodes[i], self.nodes[(i + 1) % self.n]) for i in range(self.n)]

    def to_adcirc_string(self) -> str:
        vertices = " ".join(f"{n:11d}" for n in self.nodes)
        return f"{self.id:11d} {self.n:3d} {vertices}"

    @classmethod
    def from_adcirc_string(cls, line: str) -> "Element":
        fields = split_fields(line, 5, "element")
        element_id = parse_int(fields[0], "element id")
        count = parse_int(fields[1], "element vertex count")
        if count not in (3, 4):
            raise MeshInvariantError(f"Element {element_id} declares {count} vertices")
        if len(fields) < 2 + count:
            raise MalformedRecordError(
                f"Element {element_id} declares {count} vertices but lists {len(fields) - 2}"
            )
        nodes = [parse_int(token, "element vertex") for token in fields[2:2 + count]]
        return cls(element_id, nodes)

    def to_2dm_string(self, material: int = 1) -> str:
        card = "E3T" if self.n == 3 else "E4Q"
        vertices = " ".join(str(n) for n in self.nodes)
        return f"{card} {self.id} {vertices} {material}"

    @classmethod
    def from_2dm_string(cls, line: str) -> "Element":
        fields = line.split()
        if not fields or fields[0] not in ("E3T", "E4Q"):
            raise MalformedRecordError(f"Not a 2dm element card: {line.strip()!r}")
        count = 3 if fields[0] == "E3T" else 4
        if len(fields) < 2 + count:
            raise MalformedRecordError(f"Expected {count} vertices in 2dm element: {line.strip()!r}")
        element_id = parse_int(fields[1], "element id")
        nodes = [parse_int(token, "element vertex") for token in fields[2:2 + count]]
        return cls(element_id, nodes)


class BoundaryKind(Enum):
    """Attribute layout of a boundary, determined by its type code."""

    OPEN = "open"
    LAND = "land"
    EXTERNAL_WEIR = "external_weir"
    INTERNAL_WEIR = "internal_weir"
    INTERNAL_WEIR_PIPE = "internal_weir_pipe"

    @classmethod
    def from_code(cls, code: int) -> "BoundaryKind":
        if code == OPEN_BOUNDARY_CODE:
            return cls.OPEN
        if code in EXTERNAL_WEIR_CODES:
            return cls.EXTERNAL_WEIR
        if code in INTERNAL_WEIR_CODES:
            return cls.INTERNAL_WEIR
        if code in INTERNAL_WEIR_PIPE_CODES:
            return cls.INTERNAL_WEIR_PIPE
        if code < 0:
            raise MalformedRecordError(f"Invalid land boundary type code: {code}")
        return cls.LAND


# Per-node attribute lists carried by each kind, in ADCIRC column order
_ATTRIBUTES = {
    BoundaryKind.OPEN: (),
    BoundaryKind.LAND: (),
    BoundaryKind.EXTERNAL_WEIR: ("crest_elevation", "supercritical_coefficient"),
    BoundaryKind.INTERNAL_WEIR: ("crest_elevation", "subcritical_coefficient", "supercritical_coefficient"),
    BoundaryKind.INTERNAL_WEIR_PIPE: (
        "crest_elevation",
        "subcritical_coefficient",
        "supercritical_coefficient",
        "pipe_height",
        "pipe_coefficient",
        "pipe_diameter",
    ),
}

_ALL_ATTRIBUTES = _ATTRIBUTES[BoundaryKind.INTERNAL_WEIR_PIPE]


@dataclass
class Boundary:
    """An open or land/structure boundary.

    Attributes:
        code: -1 for an open boundary, otherwise the land boundary type code
        node1: Node identifiers along the boundary
        node2: Paired node identifiers across an internal weir
        crest_elevation: Weir crest elevation per node
        subcritical_coefficient: Subcritical weir coefficient per node
        supercritical_coefficient: Supercritical weir coefficient per node
        pipe_height: Pipe centre height per node
        pipe_coefficient: Pipe bulk coefficient per node
        pipe_diameter: Pipe diameter per node
    """

    code: int = OPEN_BOUNDARY_CODE
    node1: List[int] = field(default_factory=list)
    node2: List[int] = field(default_factory=list)
    crest_elevation: List[float] = field(default_factory=list)
    subcritical_coefficient: List[float] = field(default_factory=list)
    supercritical_coefficient: List[float] = field(default_factory=list)
    pipe_height: List[float] = field(default_factory=list)
    pipe_coefficient: List[float] = field(default_factory=list)
    pipe_diameter: List[float] = field(default_factory=list)

    @property
    def kind(self) -> BoundaryKind:
        return BoundaryKind.from_code(self.code)

    @property
    def length(self) -> int:
        return len(self.node1)

    @property
    def is_open(self) -> bool:
        return self.code == OPEN_BOUNDARY_CODE

    @property
    def has_paired_nodes(self) -> bool:
        return self.kind in (BoundaryKind.INTERNAL_WEIR, BoundaryKind.INTERNAL_WEIR_PIPE)

    def attribute_names(self) -> Tuple[str, ...]:
        """Names of the per-node attribute lists defined by the type code."""
        return _ATTRIBUTES[self.kind]

    def node_ids(self) -> List[int]:
        """All node identifiers referenced by the boundary."""
        return list(self.node1) + list(self.node2)

    def validate(self) -> None:
        """Check that the attribute set present matches the type code.

        Raises:
            MeshInvariantError: If a list has the wrong length for the code
        """
        expected = self.attribute_names()
        if self.has_paired_nodes:
            if len(self.node2) != self.length:
                raise MeshInvariantError(
                    f"Boundary type {self.code} needs {self.length} paired nodes, has {len(self.node2)}"
                )
        elif self.node2:
            raise MeshInvariantError(f"Boundary type {self.code} cannot carry paired nodes")

        for name in _ALL_ATTRIBUTES:
            values = getattr(self, name)
            wanted = self.length if name in expected else 0
            if len(values) != wanted:
                raise MeshInvariantError(
                    f"Boundary type {self.code} expects {wanted} values for {name}, has {len(values)}"
                )

    def append_node_line(self, line: str) -> None:
        """Parse one ADCIRC boundary node line and append it."""
        kind = self.kind
        if kind in (BoundaryKind.OPEN, BoundaryKind.LAND):
            fields = split_fields(line, 1, "boundary node")
            self.node1.append(parse_int(fields[0], "boundary node id"))
            return

        names = _ATTRIBUTES[kind]
        paired = self.has_paired_nodes
        id_columns = 2 if paired else 1
        fields = split_fields(line, id_columns + len(names), f"type {self.code} boundary node")
        self.node1.append(parse_int(fields[0], "boundary node id"))
        if paired:
            self.node2.append(parse_int(fields[1], "paired boundary node id"))
        for offset, name in enumerate(names):
            getattr(self, name).append(parse_float(fields[id_columns + offset], name.replace("_", " ")))

    def header_string(self) -> str:
        if self.is_open:
            return f"{self.length}"
        return f"{self.length} {self.code}"

    def node_string(self, index: int, precision: int = 3) -> str:
        """Format the ADCIRC line for the node at ``index``."""
        columns = [f"{self.node1[index]:11d}"]
        if self.has_paired_nodes:
            columns.append(f"{self.node2[index]:11d}")
        for name in self.attribute_names():
            columns.append(f"{getattr(self, name)[index]:11.{precision}f}")
        return " ".join(columns)

    def to_string_list(self, precision: int = 3) -> List[str]:
        """Return the header line followed by one line per boundary node."""
        return [self.header_string()] + [self.node_string(j, precision) for j in range(self.length)]
