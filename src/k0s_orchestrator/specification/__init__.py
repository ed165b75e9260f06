"""Cluster specification: request models, internal models and the translator."""

from .models import ClusterSpecification, HostRole, HostSpec, SSHConnection, UploadFile
from .options import PipelineOptions
from .request import ClusterRequest, HostRequest, SSHRequest, UploadFileRequest
from .translator import SpecificationTranslator, translate_request
from .version import RuntimeVersion, is_valid_version, parse_version

__all__ = [
    # Internal models
    "ClusterSpecification",
    "HostRole",
    "HostSpec",
    "SSHConnection",
    "UploadFile",
    "PipelineOptions",
    # Request models
    "ClusterRequest",
    "HostRequest",
    "SSHRequest",
    "UploadFileRequest",
    # Translation
    "SpecificationTranslator",
    "translate_request",
    # Versions
    "RuntimeVersion",
    "is_valid_version",
    "parse_version",
]
