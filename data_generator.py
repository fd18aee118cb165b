import os
import re
import random
from typing import List, Optional

from tsp_core import CostMatrix, FormatError, LoadError, SizeError

SUPPORTED_WEIGHT_TYPE = "EXPLICIT"
SUPPORTED_WEIGHT_FORMAT = "LOWER_DIAG_ROW"

_HEADER_RE = re.compile(r"^\s*([A-Za-z_]+)\s*:\s*(.*?)\s*$")


def load_tsp_file(path) -> CostMatrix:
    """
    Load an explicit TSPLIB instance into a CostMatrix.

    Only EDGE_WEIGHT_TYPE: EXPLICIT with EDGE_WEIGHT_FORMAT: LOWER_DIAG_ROW
    is supported. Raises FileNotFoundError for a missing path and a
    LoadError subclass for anything the file declares that we can't read.
    """

    if not os.path.exists(path):
        raise FileNotFoundError(f"TSP file not found: {path}")
    if not os.path.isfile(path):
        raise LoadError(f"TSP path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise FormatError(f"TSP file is not valid UTF-8 text: {path}") from e

    return parse_tsp(text)


def parse_tsp(text: str) -> CostMatrix:
    """Parse the text of an explicit LOWER_DIAG_ROW instance."""
    size = None
    weight_type = None
    weight_format = None
    weights: List[str] = []
    in_section = False

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("EOF") or upper.startswith("DISPLAY_DATA_SECTION"):
            break

        if upper.startswith("EDGE_WEIGHT_SECTION"):
            in_section = True
            continue

        if in_section:
            weights.extend(line.split())
            continue

        match = _HEADER_RE.match(line)
        if not match:
            continue

        key, value = match.group(1).upper(), match.group(2)
        if key == "DIMENSION":
            try:
                size = int(value)
            except ValueError:
                raise SizeError(f"Invalid DIMENSION: {value!r}")
            if size <= 0:
                raise SizeError(f"DIMENSION must be positive, got {size}")
        elif key == "EDGE_WEIGHT_TYPE":
            weight_type = value.upper()
            if weight_type != SUPPORTED_WEIGHT_TYPE:
                raise FormatError(f"Invalid EDGE_WEIGHT_TYPE: {value}")
        elif key == "EDGE_WEIGHT_FORMAT":
            weight_format = value.upper()
            if weight_format != SUPPORTED_WEIGHT_FORMAT:
                raise FormatError(f"Invalid EDGE_WEIGHT_FORMAT: {value}")

    if size is None:
        raise SizeError("Missing DIMENSION")
    if weight_type is None:
        raise FormatError("Missing EDGE_WEIGHT_TYPE")
    if weight_format is None:
        raise FormatError("Missing EDGE_WEIGHT_FORMAT")
    if not in_section:
        raise FormatError("Missing EDGE_WEIGHT_SECTION")

    expected = size * (size + 1) // 2
    if len(weights) != expected:
        raise FormatError(
            f"Expected {expected} edge weights for DIMENSION {size}, found {len(weights)}"
        )

    matrix = [[0] * size for _ in range(size)]
    it = iter(weights)
    for i in range(size):
        for j in range(i + 1):
            token = next(it)
            try:
                value = int(token)
            except ValueError:
                raise FormatError(f"Invalid edge weight: {token!r}")
            if value < 0:
                raise FormatError(f"Negative edge weight: {value}")
            matrix[i][j] = value
            matrix[j][i] = value

    return CostMatrix(matrix)


def format_tsp(matrix, name: str = "instance", comment: Optional[str] = None) -> str:
    """Render a symmetric matrix as an explicit LOWER_DIAG_ROW instance."""
    n = len(matrix)
    lines = [f"NAME: {name}", "TYPE: TSP"]
    if comment:
        lines.append(f"COMMENT: {comment}")
    lines += [
        f"DIMENSION: {n}",
        f"EDGE_WEIGHT_TYPE: {SUPPORTED_WEIGHT_TYPE}",
        f"EDGE_WEIGHT_FORMAT: {SUPPORTED_WEIGHT_FORMAT}",
        "EDGE_WEIGHT_SECTION",
    ]
    for i in range(n):
        lines.append(" ".join(str(int(matrix[i][j])) for j in range(i + 1)))
    lines.append("EOF")
    return "\n".join(lines) + "\n"


def write_tsp_file(path, matrix, name: str = None):
    if isinstance(matrix, CostMatrix):
        matrix = matrix.as_array()
    name = name or os.path.splitext(os.path.basename(str(path)))[0]
    with open(path, "w") as f:
        f.write(format_tsp(matrix, name=name))


def generate_random_matrix(n: int, max_cost: int = 100, rng: random.Random = None) -> CostMatrix:
    """Random symmetric integer matrix with a zero diagonal."""
    if n <= 0:
        raise SizeError(f"Number of cities must be positive, got {n}")
    rng = rng or random.Random()

    matrix = [[0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i):
            value = rng.randint(1, max_cost)
            matrix[i][j] = value
            matrix[j][i] = value
    return CostMatrix(matrix)
