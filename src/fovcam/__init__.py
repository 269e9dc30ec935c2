from fovcam import params
from fovcam.api import FovCamera, MissingParameterError, ParameterStore, ParameterStoreError
from fovcam.core.projection import ProjectionResult
from fovcam.params import DEFAULT_PARAMS, IntrinsicParams, ParamsValidationError

__all__ = [
    "params",
    "FovCamera",
    "ParameterStore",
    "ParameterStoreError",
    "MissingParameterError",
    "ProjectionResult",
    "IntrinsicParams",
    "DEFAULT_PARAMS",
    "ParamsValidationError",
]
