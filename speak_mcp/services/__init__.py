from .dispatch_service import DispatchService, describe_failure
from .resolver import BackendResolver, auto_candidates, resolve

__all__ = [
    "BackendResolver",
    "DispatchService",
    "auto_candidates",
    "describe_failure",
    "resolve",
]
