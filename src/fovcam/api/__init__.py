from fovcam.api.camera import FovCamera
from fovcam.api.store import MissingParameterError, ParameterStore, ParameterStoreError

__all__ = [
    "FovCamera",
    "ParameterStore",
    "ParameterStoreError",
    "MissingParameterError",
]
