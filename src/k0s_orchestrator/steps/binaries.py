"""Steps that stage runtime binaries and extra files on the hosts."""

from k0s_orchestrator.constants import (
    ARM32_ARCHITECTURES,
    STEP_DOWNLOAD_BINARIES,
    STEP_DOWNLOAD_ON_HOSTS,
    STEP_INSTALL_BINARIES,
    STEP_PREPARE_ARM,
    STEP_UPLOAD_BINARIES,
    STEP_UPLOAD_FILES,
)
from k0s_orchestrator.pipeline.base import HostFanOutStep, Step
from k0s_orchestrator.pipeline.context import RunContext
from k0s_orchestrator.pipeline.models import StepResult
from k0s_orchestrator.specification.models import HostSpec


def _uploading_hosts(ctx: RunContext) -> list[HostSpec]:
    return [host for host in ctx.hosts if host.upload_binary and ctx.needs_binary(host)]


class DownloadBinaries(Step):
    """Download the runtime binary locally, once per architecture.

    Only hosts that receive the binary by upload need a local copy.
    """

    def __init__(self):
        super().__init__(STEP_DOWNLOAD_BINARIES, "Download runtime binaries locally")

    def _execute(self, ctx: RunContext) -> StepResult:
        architectures = sorted({ctx.facts_for(host).arch or "amd64" for host in _uploading_hosts(ctx)})
        if not architectures:
            return self.success("No binaries to download")

        for arch in architectures:
            if arch not in ctx.binaries:
                ctx.binaries[arch] = ctx.backend.download_binary(ctx.target_version, arch)
        return self.success(f"Binaries ready for {', '.join(architectures)}", {"binaries": dict(ctx.binaries)})


class UploadBinaries(HostFanOutStep):
    """Push the locally downloaded binary to hosts that want it uploaded."""

    idle_message = "No hosts need an uploaded binary"

    def __init__(self):
        super().__init__(STEP_UPLOAD_BINARIES, "Upload runtime binaries to hosts")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return _uploading_hosts(ctx)

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        path = ctx.binaries[ctx.facts_for(host).arch or "amd64"]
        ctx.backend.upload_binary(host, path)
        return f"uploaded {path}"


class DownloadBinariesOnHosts(HostFanOutStep):
    """Have hosts fetch the runtime binary themselves."""

    idle_message = "No hosts need to download a binary"

    def __init__(self):
        super().__init__(STEP_DOWNLOAD_ON_HOSTS, "Download runtime binaries on hosts")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.hosts if not host.upload_binary and ctx.needs_binary(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        arch = ctx.facts_for(host).arch or "amd64"
        ctx.backend.download_binary_on_host(host, ctx.target_version, arch)
        return f"downloaded {ctx.target_version} ({arch})"


class UploadFiles(HostFanOutStep):
    """Copy the declared extra files to their hosts."""

    idle_message = "No files to upload"

    def __init__(self):
        super().__init__(STEP_UPLOAD_FILES, "Upload declared files")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.hosts if host.files]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        for upload in host.files:
            ctx.backend.upload_file(host, upload)
        return f"{len(host.files)} files uploaded"


class InstallBinaries(HostFanOutStep):
    """Move the staged binary into place on hosts not at the target version."""

    idle_message = "All hosts already run the target version"

    def __init__(self):
        super().__init__(STEP_INSTALL_BINARIES, "Install runtime binaries")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.hosts if ctx.needs_binary(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.install_binary(host, ctx.target_version)
        return f"installed {ctx.target_version}"


class PrepareArm(HostFanOutStep):
    """Apply the extra settings 32-bit ARM controllers need."""

    idle_message = "No 32-bit ARM controllers"

    def __init__(self):
        super().__init__(STEP_PREPARE_ARM, "Prepare 32-bit ARM controllers")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [
            host
            for host in ctx.controllers()
            if ctx.needs_binary(host) and ctx.facts_for(host).arch in ARM32_ARCHITECTURES
        ]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.prepare_arm(host)
        return "arm prepared"
