"""
Saving and Loading Networks

A saved network is a record with exactly four fields:

    {
      "layers": [2, 4, 1],
      "learning_rate": 0.5,
      "weights": [{"rows": 4, "cols": 2, "data": [[...], ...]}, ...],
      "biases":  [{"rows": 4, "cols": 1, "data": [[...], ...]}, ...]
    }

JSON is the default encoding. Python writes floats with the shortest repr
that parses back to the same double, so weights round-trip bit for bit.
Paths ending in ".npz" are written with numpy.savez instead, which stores
the raw float64 arrays.

The activation function is not part of the record; pass it to the loader.

Functions:
    record_to_dict / record_from_dict: Record <-> plain JSON-ready dict
    dumps_record / loads_record: Record <-> JSON text
    save_record / load_record: Record <-> file
    save_network / load_network: Network <-> file
"""

import json
import logging
import os
import zipfile
from typing import Any, Dict, Optional, Union

import numpy as np

from mlp.activations import Activation
from mlp.errors import (
    CorruptRecordError,
    InvalidTopologyError,
    PersistenceIOError,
    ShapeMismatchError,
)
from mlp.matrix import Matrix
from mlp.network import Network, NetworkRecord

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

RECORD_FIELDS = ("layers", "learning_rate", "weights", "biases")


def _is_npz(path: PathLike) -> bool:
    return os.fspath(path).lower().endswith(".npz")


# -----------------------------------------------------------------------------
# Dict / JSON encoding
# -----------------------------------------------------------------------------


def _matrix_to_dict(matrix: Matrix) -> Dict[str, Any]:
    return {"rows": matrix.rows, "cols": matrix.cols, "data": matrix.to_list()}


def _matrix_from_dict(value: Any, field: str) -> Matrix:
    if not isinstance(value, dict) or set(value) != {"rows", "cols", "data"}:
        raise CorruptRecordError(f"{field} must be an object with rows, cols and data")

    data = value["data"]
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise CorruptRecordError(f"{field}.data must be a list of rows")

    for row in data:
        for cell in row:
            if isinstance(cell, bool) or not isinstance(cell, (int, float)):
                raise CorruptRecordError(f"{field}.data contains non-numeric {cell!r}")

    try:
        matrix = Matrix.from_rows(data)
    except (ShapeMismatchError, OverflowError) as error:
        raise CorruptRecordError(f"{field}: {error}") from error

    for key in ("rows", "cols"):
        if isinstance(value[key], bool) or not isinstance(value[key], int):
            raise CorruptRecordError(f"{field}.{key} must be an integer")

    if matrix.shape != (value["rows"], value["cols"]):
        raise CorruptRecordError(
            f"{field} declares {value['rows']}x{value['cols']} "
            f"but holds {matrix.rows}x{matrix.cols}"
        )
    return matrix


def record_to_dict(record: NetworkRecord) -> Dict[str, Any]:
    """Convert a record into plain lists, dicts and floats."""
    return {
        "layers": [int(size) for size in record.layers],
        "learning_rate": float(record.learning_rate),
        "weights": [_matrix_to_dict(w) for w in record.weights],
        "biases": [_matrix_to_dict(b) for b in record.biases],
    }


def record_from_dict(data: Any) -> NetworkRecord:
    """
    Parse and validate a record produced by record_to_dict.

    Raises:
        CorruptRecordError: If a field is missing, has the wrong type, or a
            matrix shape does not agree with the layer sizes
    """
    if not isinstance(data, dict):
        raise CorruptRecordError(f"Record must be an object, got {type(data).__name__}")

    missing = [field for field in RECORD_FIELDS if field not in data]
    if missing:
        raise CorruptRecordError(f"Record is missing fields: {', '.join(missing)}")

    layers = data["layers"]
    learning_rate = data["learning_rate"]
    if not isinstance(layers, list):
        raise CorruptRecordError("layers must be a list")
    if isinstance(learning_rate, bool) or not isinstance(learning_rate, (int, float)):
        raise CorruptRecordError("learning_rate must be a number")

    try:
        learning_rate = float(learning_rate)
    except OverflowError as error:
        raise CorruptRecordError(f"learning_rate is out of range: {error}") from error

    for field in ("weights", "biases"):
        if not isinstance(data[field], list):
            raise CorruptRecordError(f"{field} must be a list")

    record = NetworkRecord(
        layers=layers,
        learning_rate=learning_rate,
        weights=[
            _matrix_from_dict(w, f"weights[{i}]") for i, w in enumerate(data["weights"])
        ],
        biases=[
            _matrix_from_dict(b, f"biases[{i}]") for i, b in enumerate(data["biases"])
        ],
    )
    validate_record(record)
    return record


def validate_record(record: NetworkRecord) -> None:
    """
    Check that a record describes a network that can actually be built.

    Raises:
        CorruptRecordError: On any topology or shape problem
    """
    try:
        Network.from_record(record)
    except (InvalidTopologyError, ShapeMismatchError) as error:
        raise CorruptRecordError(f"Record does not describe a valid network: {error}") from error


def dumps_record(record: NetworkRecord) -> str:
    """Encode a record as JSON text."""
    return json.dumps(record_to_dict(record))


def loads_record(text: str) -> NetworkRecord:
    """
    Decode JSON text into a validated record.

    Raises:
        CorruptRecordError: If the text is not JSON or not a valid record
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as error:
        raise CorruptRecordError(f"Record is not valid JSON: {error}") from error
    return record_from_dict(data)


# -----------------------------------------------------------------------------
# NPZ encoding
# -----------------------------------------------------------------------------


def _save_npz(record: NetworkRecord, path: PathLike) -> None:
    arrays = {
        "layers": np.array(record.layers, dtype=np.int64),
        "learning_rate": np.array([record.learning_rate], dtype=np.float64),
    }
    for i, (weight, bias) in enumerate(zip(record.weights, record.biases)):
        arrays[f"weight_{i}"] = weight.to_numpy()
        arrays[f"bias_{i}"] = bias.to_numpy()

    # np.savez appends ".npz" to names without it; write through a handle
    with open(path, "wb") as handle:
        np.savez(handle, **arrays)


def _load_npz(path: PathLike) -> NetworkRecord:
    try:
        with np.load(path, allow_pickle=False) as data:
            if not np.issubdtype(data["layers"].dtype, np.integer):
                raise CorruptRecordError(
                    f"layers must be integers, got {data['layers'].dtype}"
                )
            layers = [int(size) for size in data["layers"]]
            learning_rate = float(data["learning_rate"][0])
            count = len(layers) - 1
            weights = [Matrix(data[f"weight_{i}"]) for i in range(count)]
            biases = [Matrix(data[f"bias_{i}"]) for i in range(count)]
    except (KeyError, ValueError, TypeError, IndexError, zipfile.BadZipFile) as error:
        raise CorruptRecordError(
            f"{os.fspath(path)} is not a valid network archive: {error}"
        ) from error

    record = NetworkRecord(layers, learning_rate, weights, biases)
    validate_record(record)
    return record


# -----------------------------------------------------------------------------
# Files
# -----------------------------------------------------------------------------


def save_record(record: NetworkRecord, path: PathLike) -> None:
    """
    Write a record to disk (JSON, or NPZ for ".npz" paths).

    Raises:
        PersistenceIOError: If the file cannot be written
    """
    try:
        if _is_npz(path):
            _save_npz(record, path)
        else:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(record_to_dict(record), f)
    except OSError as error:
        raise PersistenceIOError(f"Cannot write {os.fspath(path)}: {error}") from error

    logger.info("Saved network %s to %s", record.layers, os.fspath(path))


def load_record(path: PathLike) -> NetworkRecord:
    """
    Read a record from disk.

    Raises:
        PersistenceIOError: If the file cannot be read
        CorruptRecordError: If its contents are not a valid record
    """
    try:
        if _is_npz(path):
            record = _load_npz(path)
        else:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
            record = loads_record(text)
    except UnicodeDecodeError as error:
        raise CorruptRecordError(f"{os.fspath(path)} is not UTF-8 text: {error}") from error
    except OSError as error:
        raise PersistenceIOError(f"Cannot read {os.fspath(path)}: {error}") from error

    logger.info("Loaded network %s from %s", record.layers, os.fspath(path))
    return record


def save_network(network: Network, path: PathLike) -> None:
    """Write a network's layers, learning rate, weights and biases to disk."""
    save_record(network.to_record(), path)


def load_network(path: PathLike, activation: Optional[Activation] = None) -> Network:
    """
    Rebuild a network saved with save_network.

    Args:
        path: File written by save_network
        activation: Activation to use. Defaults to Sigmoid.

    Returns:
        Network with the saved parameters and an empty activation cache
    """
    return Network.from_record(load_record(path), activation)
