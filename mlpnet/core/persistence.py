"""Binary snapshot format for trained networks.

Layout of format version 1, all numbers big-endian::

    u8       version (1)
    i32 ...  layer sizes n0 .. nk
    i32      0 (terminator)
    u8       activation code
    u8       cost code
    f64 ...  weights, layers 1..k, (layer, neuron, source neuron) order
    f64 ...  biases, layers 1..k, (layer, neuron) order
"""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import List

import numpy as np

from .activations import ACTIVATIONS
from .costs import COSTS
from .errors import ConfigurationError, PersistenceError
from .network import Network, check_pairing, validate_topology

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

_BYTE = struct.Struct(">B")
_INT = struct.Struct(">i")
_FLOAT = np.dtype(">f8")


def encode_network(network: Network) -> bytes:
    """Serialise ``network`` into the version 1 byte layout."""

    parts: List[bytes] = [_BYTE.pack(FORMAT_VERSION)]
    parts.extend(_INT.pack(size) for size in network.layer_sizes)
    parts.append(_INT.pack(0))
    parts.append(_BYTE.pack(network.activation.code))
    parts.append(_BYTE.pack(network.cost.code))
    for w in network.weights[1:]:
        parts.append(np.ascontiguousarray(w, dtype=_FLOAT).tobytes())
    for b in network.biases[1:]:
        parts.append(np.ascontiguousarray(b, dtype=_FLOAT).tobytes())
    return b"".join(parts)


def decode_network(payload: bytes) -> Network:
    """Rebuild a :class:`Network` from bytes produced by :func:`encode_network`."""

    if not payload:
        raise PersistenceError("Network data is empty")
    (version,) = _BYTE.unpack_from(payload, 0)
    if version != FORMAT_VERSION:
        raise PersistenceError(f"Unsupported network format version: {version}")

    offset = _BYTE.size
    sizes: List[int] = []
    while True:
        if offset + _INT.size > len(payload):
            raise PersistenceError("Truncated network data: missing layer terminator")
        (count,) = _INT.unpack_from(payload, offset)
        offset += _INT.size
        if count == 0:
            break
        sizes.append(count)
    try:
        sizes = list(validate_topology(sizes))
    except ConfigurationError as exc:
        raise PersistenceError(f"Invalid topology in network data: {exc}") from exc

    if offset + 2 * _BYTE.size > len(payload):
        raise PersistenceError("Truncated network data: missing function codes")
    (activation_code,) = _BYTE.unpack_from(payload, offset)
    (cost_code,) = _BYTE.unpack_from(payload, offset + _BYTE.size)
    offset += 2 * _BYTE.size
    try:
        activation = ACTIVATIONS.by_code(activation_code)
        cost = COSTS.by_code(cost_code)
        check_pairing(activation, cost)
    except (KeyError, ConfigurationError) as exc:
        raise PersistenceError(f"Unsupported functions in network data: {exc}") from exc

    weight_counts = [n_out * n_in for n_in, n_out in zip(sizes[:-1], sizes[1:])]
    bias_counts = sizes[1:]
    expected = offset + _FLOAT.itemsize * (sum(weight_counts) + sum(bias_counts))
    if len(payload) != expected:
        raise PersistenceError(
            f"Network data has {len(payload)} bytes, expected {expected} for layers {sizes}"
        )

    weights = []
    for (n_in, n_out), count in zip(zip(sizes[:-1], sizes[1:]), weight_counts):
        flat = np.frombuffer(payload, dtype=_FLOAT, count=count, offset=offset)
        weights.append(flat.astype(np.float64).reshape(n_out, n_in))
        offset += count * _FLOAT.itemsize
    biases = []
    for count in bias_counts:
        flat = np.frombuffer(payload, dtype=_FLOAT, count=count, offset=offset)
        biases.append(flat.astype(np.float64))
        offset += count * _FLOAT.itemsize

    return Network.from_parameters(sizes, weights, biases, activation=activation, cost=cost)


def save_network(network: Network, path: "str | Path") -> Path:
    """Write ``network`` to ``path``, overwriting any existing file."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        handle.write(encode_network(network))
    logger.debug("Saved network %s to %s", list(network.layer_sizes), path)
    return path


def load_network(path: "str | Path") -> Network:
    """Read a network written by :func:`save_network`.

    Raises :class:`PersistenceError` for unsupported or corrupt files and
    :class:`OSError` when the file cannot be read at all.
    """

    path = Path(path)
    with path.open("rb") as handle:
        payload = handle.read()
    try:
        network = decode_network(payload)
    except PersistenceError as exc:
        raise PersistenceError(f"{path}: {exc}") from exc
    logger.debug("Loaded network %s from %s", list(network.layer_sizes), path)
    return network


__all__ = [
    "FORMAT_VERSION",
    "encode_network",
    "decode_network",
    "save_network",
    "load_network",
]
