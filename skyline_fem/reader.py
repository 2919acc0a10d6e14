# skyline_fem/reader.py
"""
STAP90 input reader.

Layout of an input deck (free format, whitespace separated after the
heading line; all ids 1-based and sequential):

    heading line
    NUMNP NUMEG NLCASE MODEX
    N BC1 BC2 BC3 X Y Z                 x NUMNP      (BC: 1 = fixed, 0 = free)
    LL NLOAD                            x NLCASE
        NODE DOF LOAD                   x NLOAD
    TYPE NUME NUMMAT                    x NUMEG
        material record                 x NUMMAT     (bar: SET E AREA)
        element record                  x NUME       (bar: N NODE_I NODE_J MSET)
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .config import AssemblyConfig
from .domain import Domain
from .elements import element_class
from .errors import ModelError
from .model import NDF, ElementGroup, Load, LoadCase, Node

logger = logging.getLogger(__name__)


class _Tokens:
    """Whitespace-separated fields of the deck body, consumed in order."""

    def __init__(self, lines: Iterable[str]):
        self._fields = [f for line in lines for f in line.split()]
        self._pos = 0

    def take(self, n: int, what: str) -> List[str]:
        if self._pos + n > len(self._fields):
            raise ModelError(f"Unexpected end of input while reading {what}")
        fields = self._fields[self._pos:self._pos + n]
        self._pos += n
        return fields

    def ints(self, n: int, what: str) -> List[int]:
        fields = self.take(n, what)
        try:
            return [int(f) for f in fields]
        except ValueError:
            raise ModelError(f"Expected {n} integers for {what}, got {fields}") from None


def _check_sequence(found: int, expected: int, what: str):
    if found != expected:
        raise ModelError(f"{what} must be numbered sequentially: expected {expected}, got {found}")


def read_nodes(tokens: _Tokens, numnp: int) -> List[Node]:
    nodes = []
    for expected in range(1, numnp + 1):
        fields = tokens.take(1 + NDF + 3, f"node {expected}")
        try:
            node_id = int(fields[0])
            bcode = [int(f) for f in fields[1:1 + NDF]]
            x, y, z = (float(f) for f in fields[1 + NDF:])
        except ValueError:
            raise ModelError(f"Malformed data for node {expected}: {fields}") from None
        _check_sequence(node_id, expected, "Nodes")
        nodes.append(Node(node_id, x, y, z, bcode=bcode))
    return nodes


def read_load_cases(tokens: _Tokens, nlcase: int, numnp: int) -> List[LoadCase]:
    cases = []
    for expected in range(1, nlcase + 1):
        case_id, nload = tokens.ints(2, f"load case {expected} control line")
        _check_sequence(case_id, expected, "Load cases")

        case = LoadCase(case_id)
        for k in range(1, nload + 1):
            fields = tokens.take(3, f"load {k} of load case {case_id}")
            try:
                node, dof, magnitude = int(fields[0]), int(fields[1]), float(fields[2])
            except ValueError:
                raise ModelError(f"Malformed load {k} of load case {case_id}: {fields}") from None
            if not 1 <= node <= numnp:
                raise ModelError(f"Load case {case_id}: node {node} out of range (1..{numnp})")
            if not 1 <= dof <= NDF:
                raise ModelError(f"Load case {case_id}: DOF {dof} out of range (1..{NDF})")
            case.loads.append(Load(node, dof, magnitude))
        cases.append(case)
    return cases


def read_element_group(tokens: _Tokens, group_no: int, nodes: List[Node]) -> ElementGroup:
    element_type, nume, nummat = tokens.ints(3, f"element group {group_no} control line")
    try:
        cls = element_class(element_type)
    except ModelError as exc:
        raise ModelError(f"Element group {group_no}: {exc}") from None

    group = ElementGroup(element_type)
    for expected in range(1, nummat + 1):
        fields = tokens.take(cls.material_class.n_fields, f"material set {expected} of group {group_no}")
        try:
            material = cls.material_class.from_record(fields)
        except ValueError:
            raise ModelError(f"Malformed material set {expected} of group {group_no}: {fields}") from None
        _check_sequence(material.id, expected, f"Material sets of group {group_no}")
        group.materials.append(material)

    for expected in range(1, nume + 1):
        fields = tokens.take(cls.n_fields, f"element {expected} of group {group_no}")
        try:
            element = cls.from_record(fields, nodes, group.materials)
        except ModelError:
            raise
        except ValueError:
            raise ModelError(f"Malformed element {expected} of group {group_no}: {fields}") from None
        _check_sequence(element.id, expected, f"Elements of group {group_no}")
        group.elements.append(element)

    return group


def read_input(
    source: Union[str, Path, Iterable[str]],
    config: Optional[AssemblyConfig] = None,
) -> Domain:
    """
    Read a STAP90 deck into a Domain (stage: LOADED).

    Parameters:
    -----------
    source : str, Path or Iterable[str]
        Path of the input file, or the deck's lines

    config : AssemblyConfig, optional
        Passed on to the Domain

    Raises:
    -------
    ModelError
        Malformed, truncated or inconsistent input
    FileNotFoundError
        If the input file does not exist
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        logger.info("Reading %s", path)
        with open(path, encoding="utf8") as f:
            lines = f.read().splitlines()
    else:
        lines = list(source)

    if not lines:
        raise ModelError("Empty input: missing heading line")

    title = lines[0].strip()
    tokens = _Tokens(lines[1:])

    numnp, numeg, nlcase, modex = tokens.ints(4, "control line")
    if modex not in (0, 1):
        raise ModelError(f"MODEX must be 0 (data check) or 1 (execution), got {modex}")

    nodes = read_nodes(tokens, numnp)
    load_cases = read_load_cases(tokens, nlcase, numnp)
    groups = [read_element_group(tokens, g, nodes) for g in range(1, numeg + 1)]

    logger.info(
        "Read %r: %d nodes, %d element groups, %d load cases",
        title, numnp, numeg, nlcase
    )
    return Domain(nodes, groups, load_cases, title=title, modex=modex, config=config)
