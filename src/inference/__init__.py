"""
Inference layer: backend strategies and the adapter that owns the model.
"""

from .backend import InferenceBackend
from .adapter import DetectorAdapter, ModelHandle, create_backend_from_config

__all__ = [
    "InferenceBackend",
    "DetectorAdapter",
    "ModelHandle",
    "create_backend_from_config",
]
