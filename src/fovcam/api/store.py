from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator

import numpy as np

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "fovcam.params.v0"


class ParameterStoreError(ValueError):
    pass


class MissingParameterError(ParameterStoreError):
    pass


def _to_vector(key: str, value: Any) -> np.ndarray:
    v = np.asarray(value, dtype=np.float64).reshape(-1)
    if not np.all(np.isfinite(v)):
        raise ParameterStoreError(f"{key}: non-finite values")
    return v


class ParameterStore:
    """
    Named float vectors ("<camera>.Parameters" -> [fx_n, fy_n, cx_n, cy_n, w]).

    `get` registers a key on first read (with the caller's default unless the key
    is required), so whatever a camera reads is also what `save` writes back.
    """

    def __init__(self, values: dict[str, Any] | None = None, path: Path | None = None) -> None:
        self._values: dict[str, np.ndarray] = {}
        self.path = Path(path) if path is not None else None
        for k, v in (values or {}).items():
            self._values[str(k)] = _to_vector(str(k), v)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values))

    def keys(self) -> list[str]:
        return sorted(self._values)

    def get(self, key: str, default: Any = None, *, required: bool = False) -> np.ndarray:
        if key in self._values:
            return self._values[key].copy()
        if required:
            raise MissingParameterError(f"required parameter {key!r} is not defined")
        if default is None:
            raise MissingParameterError(f"parameter {key!r} is not defined and has no default")
        logger.debug("parameter %s not found, registering default", key)
        self._values[key] = _to_vector(key, default)
        return self._values[key].copy()

    def set(self, key: str, value: Any) -> None:
        self._values[key] = _to_vector(key, value)
        logger.debug("parameter %s set to %s", key, self._values[key].tolist())

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "values": {k: self._values[k].tolist() for k in sorted(self._values)},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> "ParameterStore":
        if not isinstance(data, dict):
            raise ParameterStoreError("parameter file must hold a JSON object")
        if str(data.get("schema_version")) != SCHEMA_VERSION:
            raise ParameterStoreError(f"schema_version must be {SCHEMA_VERSION}")
        values = data.get("values", {})
        if not isinstance(values, dict):
            raise ParameterStoreError("values must be a mapping of name -> list of floats")
        try:
            return cls(values, path=path)
        except ParameterStoreError:
            raise
        except (TypeError, ValueError) as e:
            raise ParameterStoreError(f"malformed parameter vector: {e}") from e

    @classmethod
    def load(cls, path: Path) -> "ParameterStore":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Missing {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ParameterStoreError(f"{path} is not valid JSON: {e}") from e
        store = cls.from_dict(data, path=path)
        logger.info("loaded %d parameter vector(s) from %s", len(store.keys()), path)
        return store

    def save(self, path: Path | None = None) -> Path:
        path = Path(path) if path is not None else self.path
        if path is None:
            raise ParameterStoreError("no path given and store was not loaded from a file")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        self.path = path
        return path
