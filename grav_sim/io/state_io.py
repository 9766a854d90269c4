"""State I/O for saving and loading simulation snapshots.

Two encodings share one versioned layout: a header (format version,
integrator, dt, G, softening, step count, simulation time, body count)
followed by the ordered body list (name, mass, position, velocity).

- ``json``: human-readable. Floats are written with ``repr`` precision, so
  a round trip is exact.
- ``npz``: NumPy zip container holding float64 arrays plus the header as a
  JSON string. Also exact (no down-casting).

Decoding sniffs the encoding from the leading bytes, so files can be loaded
regardless of their suffix.
"""

import io
import json
import logging
import math
import os
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from grav_sim.errors import (
    CorruptSnapshot,
    FormatVersionUnsupported,
    InvalidConfiguration,
    StorageIOFailure,
)
from grav_sim.physics.state import IntegratorKind, SimulationState

logger = logging.getLogger(__name__)

FORMAT_NAME = "grav-sim-snapshot"
FORMAT_VERSION = 1
SUPPORTED_VERSIONS = (1,)

FORMATS = ("json", "npz")
_SUFFIX_FORMATS = {".json": "json", ".npz": "npz"}
_ZIP_MAGIC = b"PK\x03\x04"


def _header(state: SimulationState) -> Dict[str, Any]:
    return {
        "integrator": state.integrator.value,
        "dt": float(state.dt),
        "G": float(state.G),
        "softening": float(state.softening),
        "step_count": int(state.step_count),
        "time": float(state.time),
        "body_count": int(state.n_bodies),
    }


def encode_state(state: SimulationState, fmt: str = "json") -> bytes:
    """Serialize a state to bytes.

    Args:
        state: State to encode
        fmt: ``"json"`` or ``"npz"``

    Returns:
        Encoded snapshot
    """
    if fmt == "json":
        document = {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "header": _header(state),
            "bodies": [
                {
                    "name": state.names[i],
                    "mass": float(state.masses[i]),
                    "position": state.positions[i].tolist(),
                    "velocity": state.velocities[i].tolist(),
                }
                for i in range(state.n_bodies)
            ],
        }
        return (json.dumps(document, indent=2, allow_nan=False) + "\n").encode("utf-8")

    if fmt == "npz":
        meta = {"format": FORMAT_NAME, "version": FORMAT_VERSION, "header": _header(state)}
        buffer = io.BytesIO()
        np.savez_compressed(
            buffer,
            meta=np.array(json.dumps(meta)),
            names=np.array(state.names, dtype=str),
            masses=np.asarray(state.masses, dtype=np.float64),
            positions=np.asarray(state.positions, dtype=np.float64),
            velocities=np.asarray(state.velocities, dtype=np.float64),
        )
        return buffer.getvalue()

    raise ValueError(f"Unsupported snapshot format: {fmt}. Use one of {FORMATS}")


def _check_version(document: Any):
    if not isinstance(document, dict):
        raise CorruptSnapshot("top level is not a mapping")
    if document.get("format") != FORMAT_NAME:
        raise CorruptSnapshot(f"missing or wrong format marker: {document.get('format')!r}")
    version = document.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise CorruptSnapshot(f"version must be an integer, got {version!r}")
    if version not in SUPPORTED_VERSIONS:
        raise FormatVersionUnsupported(version)


def _real(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CorruptSnapshot(f"{what} is not a number: {value!r}")
    try:
        value = float(value)
    except OverflowError as e:
        raise CorruptSnapshot(f"{what} is out of range") from e
    if not math.isfinite(value):
        raise CorruptSnapshot(f"{what} is not finite")
    return value


def _vector(value: Any, what: str):
    if not isinstance(value, list) or len(value) != 3:
        raise CorruptSnapshot(f"{what} is not a 3-vector")
    return [_real(c, what) for c in value]


def _parse_header(header: Any) -> Dict[str, Any]:
    if not isinstance(header, dict):
        raise CorruptSnapshot("header is not a mapping")
    try:
        step_count = header["step_count"]
        body_count = header["body_count"]
        if isinstance(step_count, bool) or not isinstance(step_count, int) or step_count < 0:
            raise CorruptSnapshot(f"invalid step_count: {step_count!r}")
        if isinstance(body_count, bool) or not isinstance(body_count, int) or body_count < 0:
            raise CorruptSnapshot(f"invalid body_count: {body_count!r}")
        try:
            integrator = IntegratorKind.parse(header["integrator"])
        except InvalidConfiguration as e:
            raise CorruptSnapshot(str(e)) from e
        softening = _real(header["softening"], "softening")
        if softening < 0.0:
            raise CorruptSnapshot(f"softening must be non-negative, got {softening}")
        return {
            "integrator": integrator,
            "dt": _real(header["dt"], "dt"),
            "G": _real(header["G"], "G"),
            "softening": softening,
            "time": _real(header["time"], "time"),
            "step_count": step_count,
            "body_count": body_count,
        }
    except KeyError as e:
        raise CorruptSnapshot(f"header field missing: {e.args[0]}") from e


def _finish(params: Dict[str, Any], positions, velocities, masses, names) -> SimulationState:
    body_count = params.pop("body_count")
    if len(names) != body_count:
        raise CorruptSnapshot(f"header declares {body_count} bodies, found {len(names)}")
    state = SimulationState(positions, velocities, masses, names, **params)
    try:
        state.validate()
    except InvalidConfiguration as e:
        raise CorruptSnapshot(f"decoded state is invalid: {e}") from e
    return state


def _decode_json(data: bytes) -> SimulationState:
    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise CorruptSnapshot(f"unreadable JSON: {e}") from e
    _check_version(document)
    params = _parse_header(document.get("header"))

    bodies = document.get("bodies")
    if not isinstance(bodies, list):
        raise CorruptSnapshot("bodies is not a list")
    names, masses, positions, velocities = [], [], [], []
    for i, body in enumerate(bodies):
        if not isinstance(body, dict):
            raise CorruptSnapshot(f"bodies[{i}] is not a mapping")
        try:
            name = body["name"]
            if not isinstance(name, str):
                raise CorruptSnapshot(f"bodies[{i}].name is not a string")
            names.append(name)
            masses.append(_real(body["mass"], f"bodies[{i}].mass"))
            positions.append(_vector(body["position"], f"bodies[{i}].position"))
            velocities.append(_vector(body["velocity"], f"bodies[{i}].velocity"))
        except KeyError as e:
            raise CorruptSnapshot(f"bodies[{i}] field missing: {e.args[0]}") from e
    return _finish(params, positions, velocities, masses, names)


def _decode_npz(data: bytes) -> SimulationState:
    try:
        with np.load(io.BytesIO(data), allow_pickle=False) as archive:
            meta = json.loads(str(archive["meta"]))
            names = [str(name) for name in archive["names"].reshape(-1)]
            masses = np.array(archive["masses"], dtype=np.float64)
            positions = np.array(archive["positions"], dtype=np.float64)
            velocities = np.array(archive["velocities"], dtype=np.float64)
    except (zipfile.BadZipFile, zlib.error, KeyError, ValueError, OSError, EOFError) as e:
        raise CorruptSnapshot(f"unreadable NPZ archive: {e}") from e
    _check_version(meta)
    params = _parse_header(meta.get("header"))
    n = len(names)
    if masses.shape != (n,) or positions.shape != (n, 3) or velocities.shape != (n, 3):
        raise CorruptSnapshot("array shapes disagree with the body list")
    if not (np.all(np.isfinite(masses)) and np.all(np.isfinite(positions)) and np.all(np.isfinite(velocities))):
        raise CorruptSnapshot("non-finite values in body arrays")
    return _finish(params, positions, velocities, masses, names)


def decode_state(data: bytes) -> SimulationState:
    """Parse an encoded snapshot back into a state.

    Raises:
        FormatVersionUnsupported: the snapshot's version is not readable
        CorruptSnapshot: the stream is truncated or structurally invalid;
            no partially-populated state is ever returned
    """
    if data.startswith(_ZIP_MAGIC):
        return _decode_npz(data)
    if data.lstrip()[:1] == b"{":
        return _decode_json(data)
    raise CorruptSnapshot("unrecognized encoding")


def format_for_path(path: Union[str, Path], fmt: Optional[str] = None) -> str:
    if fmt is not None:
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported snapshot format: {fmt}. Use one of {FORMATS}")
        return fmt
    suffix = Path(path).suffix.lower()
    if suffix not in _SUFFIX_FORMATS:
        raise ValueError(f"Unsupported file format: {suffix}. Use .json or .npz")
    return _SUFFIX_FORMATS[suffix]


def save_state(state: SimulationState, output_path: Union[str, Path], fmt: Optional[str] = None) -> Path:
    """Save a snapshot to file.

    The file is written to a temporary sibling and moved into place, so an
    interrupted save never leaves a truncated snapshot behind.

    Args:
        state: State to save (typically a frozen copy from the controller)
        output_path: Output file path (.json or .npz)
        fmt: Encoding override; inferred from the suffix when omitted

    Returns:
        The path written

    Raises:
        StorageIOFailure: the file could not be written
    """
    output_path = Path(output_path)
    data = encode_state(state, format_for_path(output_path, fmt))
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", dir=output_path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, output_path)
        tmp_name = None
    except OSError as e:
        raise StorageIOFailure(output_path, f"cannot write snapshot: {e}") from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.remove(tmp_name)
    logger.info("Saved snapshot at step %d to %s", state.step_count, output_path)
    return output_path


def load_state(input_path: Union[str, Path]) -> SimulationState:
    """Load a snapshot from file.

    Raises:
        StorageIOFailure: the file could not be read
        FormatVersionUnsupported: unknown format version
        CorruptSnapshot: truncated or invalid content
    """
    input_path = Path(input_path)
    try:
        data = input_path.read_bytes()
    except OSError as e:
        raise StorageIOFailure(input_path, f"cannot read snapshot: {e}") from e
    state = decode_state(data)
    logger.info("Loaded snapshot from %s: %d bodies at step %d", input_path, state.n_bodies, state.step_count)
    return state
