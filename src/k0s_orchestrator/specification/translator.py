"""Translation of caller requests into cluster specifications.

The translator is the boundary adapter between the caller-facing request and
the internal ``ClusterSpecification``. It runs at the top of every lifecycle
verb and rejects malformed input before any step touches a host:

- the host list is empty
- a host role is not one of the supported roles
- the configuration document is not a YAML mapping
- the version is not a semantic version
- no host is able to run the control plane
- two hosts share the same SSH endpoint

All problems found in one request are reported together in a single
``SpecificationValidationError``.
"""

from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from k0s_orchestrator.exceptions import SpecificationValidationError
from k0s_orchestrator.specification.models import ClusterSpecification, HostRole, HostSpec, SSHConnection, UploadFile
from k0s_orchestrator.specification.options import PipelineOptions
from k0s_orchestrator.specification.request import ClusterRequest, HostRequest
from k0s_orchestrator.specification.version import is_valid_version, parse_version

VALID_ROLES = tuple(role.value for role in HostRole)


def _format_validation_error(exc: ValidationError) -> list[str]:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        errors.append(f"{location}: {error['msg']}" if location else error["msg"])
    return errors


class SpecificationTranslator:
    """Converts caller requests into validated cluster specifications."""

    def parse_request(self, data: ClusterRequest | dict[str, Any]) -> ClusterRequest:
        """Coerce raw request data into a ``ClusterRequest``.

        Raises:
            SpecificationValidationError: If the data does not match the request schema
        """
        if isinstance(data, ClusterRequest):
            return data
        try:
            return ClusterRequest.model_validate(data)
        except ValidationError as e:
            raise SpecificationValidationError(_format_validation_error(e)) from None

    def translate(self, data: ClusterRequest | dict[str, Any]) -> ClusterSpecification:
        """Validate a request and build the internal specification.

        Args:
            data: Request model or raw mapping (e.g. loaded from YAML)

        Returns:
            ClusterSpecification ready for a pipeline run

        Raises:
            SpecificationValidationError: If the request is rejected
        """
        request = self.parse_request(data)
        errors: list[str] = []

        if not request.name.strip():
            errors.append("name: must not be empty")

        if not is_valid_version(request.version):
            errors.append(f"version: '{request.version}' is not a valid semantic version")

        embedded_config = self._parse_config(request.config, errors)

        if not request.hosts:
            errors.append("hosts: at least one host is required")

        hosts: list[HostSpec] = []
        for index, host in enumerate(request.hosts):
            translated = self._translate_host(index, host, errors)
            if translated is not None:
                hosts.append(translated)

        if hosts and len(hosts) == len(request.hosts) and not any(host.is_controller for host in hosts):
            errors.append("hosts: at least one host with a controller, controller+worker or single role is required")

        seen: dict[str, int] = {}
        for index, host in enumerate(hosts):
            if host.label in seen:
                errors.append(f"hosts[{index}]: duplicate ssh address {host.label} (also used by hosts[{seen[host.label]}])")
            else:
                seen[host.label] = index

        if errors:
            logger.debug(f"Rejected cluster request '{request.name}': {errors}")
            raise SpecificationValidationError(errors)

        specification = ClusterSpecification(
            name=request.name.strip(),
            runtime_version=str(parse_version(request.version)),
            dynamic_config=request.dynamic_config,
            embedded_config=embedded_config,
            hosts=hosts,
        )
        logger.debug(
            f"Translated cluster request '{specification.name}': {len(hosts)} hosts, "
            f"version {specification.runtime_version}, leader {specification.leader}"
        )
        return specification

    def options(self, data: ClusterRequest | dict[str, Any]) -> PipelineOptions:
        """Extract the pipeline options carried by a request."""
        request = self.parse_request(data)
        return PipelineOptions(
            concurrency=request.concurrency,
            no_wait=request.no_wait,
            no_drain=request.no_drain,
            skip_downgrade_check=request.skip_downgrade_check,
        )

    def _parse_config(self, config: str | dict[str, Any] | None, errors: list[str]) -> dict[str, Any] | None:
        if config is None:
            return None
        if isinstance(config, dict):
            return config
        if not config.strip():
            return None

        try:
            parsed = yaml.safe_load(config)
        except yaml.YAMLError as e:
            errors.append(f"config: not a valid YAML document: {e}")
            return None

        if parsed is None:
            return None
        if not isinstance(parsed, dict):
            errors.append(f"config: expected a mapping, got {type(parsed).__name__}")
            return None
        return parsed

    def _translate_host(self, index: int, host: HostRequest, errors: list[str]) -> HostSpec | None:
        if host.role not in VALID_ROLES:
            errors.append(f"hosts[{index}].role: invalid role '{host.role}', must be one of: {', '.join(VALID_ROLES)}")
            return None

        connection = SSHConnection(
            address=host.ssh.address,
            user=host.ssh.user or "root",
            port=host.ssh.port,
            key_path=host.ssh.key_path,
        )
        files = [
            UploadFile(name=entry.name or entry.src, source=entry.src, destination=entry.dst, permissions=entry.perm)
            for entry in host.files or []
        ]
        return HostSpec(
            role=HostRole(host.role),
            connection=connection,
            no_taints=host.no_taints,
            upload_binary=host.upload_binary,
            hostname=host.hostname,
            private_interface=host.private_interface,
            private_address=host.private_address,
            os=host.os,
            install_flags=list(host.install_flags or []),
            environment=dict(host.environment or {}),
            files=files,
        )


def translate_request(data: ClusterRequest | dict[str, Any]) -> tuple[ClusterSpecification, PipelineOptions]:
    """Translate a request into its specification and options in one call."""
    translator = SpecificationTranslator()
    return translator.translate(data), translator.options(data)
