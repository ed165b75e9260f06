"""Caller-facing cluster request models.

These models mirror the declarative document a caller submits (over REST or
as a YAML file on the command line). They are deliberately permissive: role
names, the configuration document and the version string are checked by the
translator so that every rejection is reported the same way.
"""

from typing import Any

from pydantic import BaseModel, Field


class SSHRequest(BaseModel):
    """SSH connection block of a host descriptor."""

    address: str = Field(min_length=1)
    user: str | None = None
    port: int = Field(default=22, ge=1, le=65535)
    key_path: str | None = None


class UploadFileRequest(BaseModel):
    """File upload entry of a host descriptor."""

    name: str | None = None
    src: str = Field(min_length=1)
    dst: str = Field(min_length=1)
    perm: str | None = None


class HostRequest(BaseModel):
    """Host descriptor as submitted by the caller."""

    role: str
    ssh: SSHRequest
    no_taints: bool = False
    upload_binary: bool = False
    hostname: str | None = None
    private_interface: str | None = None
    private_address: str | None = None
    os: str | None = None
    install_flags: list[str] | None = None
    environment: dict[str, str] | None = None
    files: list[UploadFileRequest] | None = None


class ClusterRequest(BaseModel):
    """Declarative cluster request.

    ``config`` may be YAML text or an already-parsed mapping. Omitting it lets
    the default-version-resolution step generate a default configuration.
    """

    name: str
    version: str
    dynamic_config: bool = False
    config: str | dict[str, Any] | None = None
    hosts: list[HostRequest] = Field(default_factory=list)
    concurrency: int = Field(default=0, ge=0)
    no_wait: bool = False
    no_drain: bool = False
    skip_downgrade_check: bool = False
