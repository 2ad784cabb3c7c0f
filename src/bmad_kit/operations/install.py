"""Installer orchestration: compile agents, regenerate manifests, set up targets.

Order of one run:
1. Detect the previous installation (modules, integration targets)
2. Compile every agent definition of the selected modules
3. Regenerate manifests, strictly after all compiles settled
4. Merge module help catalogs
5. Hand each target its deduplicated artifact set

Agent compile failures are collected and reported; they never stop sibling
agents. Manifest write failures abort the run.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from bmad_kit.compiler.builder import CompileOptions, CompileResult, compile_definition
from bmad_kit.context import BmadContext
from bmad_kit.errors import BmadKitError
from bmad_kit.integrations.ide.abc import IdeSetupOptions, IdeSetupResult
from bmad_kit.io.definition import AGENT_SUFFIX, definition_stem
from bmad_kit.io.installation import get_config_dir
from bmad_kit.models.component import DiscoveredComponent
from bmad_kit.models.installation import InstallationManifest
from bmad_kit.models.manifest import ManifestStats
from bmad_kit.operations.dedup import filter_task_artifacts
from bmad_kit.operations.help_catalog import MergedHelpCatalog, write_help_catalog
from bmad_kit.operations.manifest import ManifestOptions, generate_manifests
from bmad_kit.services.discovery import ComponentDiscovery
from bmad_kit.version import __version__

logger = logging.getLogger(__name__)

CORE_MODULE = "core"
OVERLAY_SUFFIX = ".customize.yaml"


@dataclass(frozen=True)
class InstallRequest:
    """What the caller asks for.

    Modules and ides only apply to a fresh install; an existing installation
    manifest takes precedence so the user is not asked again.
    """

    modules: list[str] | None = None
    ides: list[str] | None = None
    include_metadata: bool = True


@dataclass(frozen=True)
class AgentJob:
    """One agent compile: definition, optional overlay and destination."""

    module: str
    name: str
    definition_path: Path
    overlay_path: Path | None
    output_path: Path


@dataclass(frozen=True)
class AgentFailure:
    module: str
    name: str
    definition_path: Path
    reason: str


@dataclass(frozen=True)
class TargetFailure:
    target: str
    reason: str


@dataclass(frozen=True)
class InstallResult:
    """Outcome of one installer run."""

    installation: InstallationManifest
    fresh_install: bool
    compiled: list[CompileResult]
    failed: list[AgentFailure]
    manifest_stats: ManifestStats
    help_catalog: MergedHelpCatalog
    ide_results: list[IdeSetupResult] = field(default_factory=list)
    ide_failures: list[TargetFailure] = field(default_factory=list)

    @property
    def agent_count(self) -> int:
        return len(self.compiled)

    @property
    def task_count(self) -> int:
        return self.manifest_stats.count("task")

    @property
    def success(self) -> bool:
        return not self.failed and not self.ide_failures


def _failure_for(job: AgentJob, reason: str) -> AgentFailure:
    return AgentFailure(
        module=job.module, name=job.name, definition_path=job.definition_path, reason=reason
    )


def _ordered_modules(modules: list[str]) -> list[str]:
    """Core first, then the rest in selection order, without duplicates."""
    ordered = [CORE_MODULE] if CORE_MODULE in modules else []
    for module in modules:
        if module not in ordered:
            ordered.append(module)
    return ordered


class Installer:
    """Drives one install or rebuild against a BmadContext."""

    def __init__(self, ctx: BmadContext) -> None:
        self._ctx = ctx

    def detect_installation(self) -> InstallationManifest | None:
        """Return the previous installation, as loaded at startup."""
        return self._ctx.installation

    def resolve_selection(self, request: InstallRequest) -> tuple[list[str], list[str], bool]:
        """Return (modules, ides, fresh_install) for this run."""
        previous = self.detect_installation()
        if previous is not None:
            logger.debug(
                "Detected installation: modules=%s ides=%s", previous.modules, previous.ides
            )
            return _ordered_modules(list(previous.modules)), list(previous.ides), False

        modules = request.modules if request.modules else [CORE_MODULE]
        return _ordered_modules(modules), list(request.ides or []), True

    def find_agent_jobs(self, modules: list[str]) -> list[AgentJob]:
        """List `<source_root>/<module>/agents/*.agent.yaml` for each module."""
        source_root = self._ctx.source_root
        if source_root is None:
            return []

        overlays_dir = get_config_dir(self._ctx.installed_root) / "agents"
        jobs = []
        for module in modules:
            agents_dir = source_root / module / "agents"
            if not agents_dir.is_dir():
                continue
            for definition_path in sorted(agents_dir.glob(f"*{AGENT_SUFFIX}")):
                name = definition_stem(definition_path)
                overlay_path = overlays_dir / f"{module}-{name}{OVERLAY_SUFFIX}"
                jobs.append(
                    AgentJob(
                        module=module,
                        name=name,
                        definition_path=definition_path,
                        overlay_path=overlay_path if overlay_path.is_file() else None,
                        output_path=self._ctx.installed_root / module / "agents" / f"{name}.md",
                    )
                )
        return jobs

    def _variables_for(self, module: str) -> dict[str, str]:
        variables = self._ctx.computed_variables()
        variables["module"] = module
        variables["installed_path"] = (self._ctx.installed_root / module).as_posix()
        variables.update(self._ctx.variables)
        return variables

    def _compile_one(self, job: AgentJob, include_metadata: bool) -> CompileResult:
        options = CompileOptions(
            variables=self._variables_for(job.module),
            include_metadata=include_metadata,
            source_label=f"{job.module}/agents/{job.definition_path.name}",
        )
        return compile_definition(job.definition_path, job.overlay_path, job.output_path, options)

    def compile_agent_jobs(
        self, jobs: list[AgentJob], include_metadata: bool = True
    ) -> tuple[list[CompileResult], list[AgentFailure]]:
        """Compile jobs on a bounded pool; collect every failure.

        Returns only after every job settled. Results and failures are in job
        order regardless of completion order.
        """
        failures: dict[int, AgentFailure] = {}
        results: dict[int, CompileResult] = {}

        # Two jobs must never write the same artifact
        claimed: dict[Path, AgentJob] = {}
        runnable: list[tuple[int, AgentJob]] = []
        for index, job in enumerate(jobs):
            owner = claimed.get(job.output_path)
            if owner is not None:
                failures[index] = _failure_for(
                    job, f"output {job.output_path} already produced by {owner.definition_path}"
                )
                continue
            claimed[job.output_path] = job
            runnable.append((index, job))

        if runnable:
            workers = max(1, min(self._ctx.max_workers, len(runnable)))
            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bmad-compile")
            try:
                futures: dict[Future[CompileResult], tuple[int, AgentJob]] = {
                    executor.submit(self._compile_one, job, include_metadata): (index, job)
                    for index, job in runnable
                }
                for future in as_completed(futures):
                    index, job = futures[future]
                    try:
                        results[index] = future.result()
                    except (BmadKitError, OSError) as e:
                        logger.debug("Compile failed for %s/%s: %s", job.module, job.name, e)
                        failures[index] = _failure_for(job, str(e))
                    except Exception as e:
                        logger.warning(
                            "Unexpected error compiling %s/%s", job.module, job.name, exc_info=True
                        )
                        failures[index] = _failure_for(job, f"{type(e).__name__}: {e}")
            finally:
                # In-flight writes finish atomically; queued ones never start
                executor.shutdown(wait=True, cancel_futures=True)

        return (
            [results[i] for i in sorted(results)],
            [failures[i] for i in sorted(failures)],
        )

    def collect_target_artifacts(self, modules: list[str]) -> list[DiscoveredComponent]:
        """Artifacts a target receives: everything, minus superseded tasks."""
        components = list(ComponentDiscovery(self._ctx.installed_root, modules))
        skills = [c for c in components if c.kind == "skill"]
        tasks = filter_task_artifacts([c for c in components if c.kind == "task"], skills)
        others = [c for c in components if c.kind in ("agent", "workflow")]
        return [*skills, *tasks, *others]

    def setup_targets(
        self, ides: list[str], modules: list[str]
    ) -> tuple[list[IdeSetupResult], list[TargetFailure]]:
        results: list[IdeSetupResult] = []
        failures: list[TargetFailure] = []
        if not ides:
            return results, failures

        artifacts = self.collect_target_artifacts(modules)
        for target in ides:
            options = IdeSetupOptions(selected_modules=list(modules), artifacts=list(artifacts))
            try:
                results.append(
                    self._ctx.ide_setup.setup(
                        target, self._ctx.project_root, self._ctx.installed_root, options
                    )
                )
            except (ValueError, OSError) as e:
                failures.append(TargetFailure(target=target, reason=str(e)))
        return results, failures

    def _next_installation(self, modules: list[str], ides: list[str]) -> InstallationManifest:
        now = self._ctx.time.now().isoformat()
        previous = self.detect_installation()
        if previous is None:
            return InstallationManifest.fresh(modules, ides, __version__, now)
        return previous.with_selection(modules, ides, __version__, now)

    def compile_agents(self, request: InstallRequest | None = None) -> InstallResult:
        """Run a full install or rebuild.

        Raises:
            ManifestWriteError: If manifests cannot be written. Compiled
                agents stay on disk; no manifest of this run is published.
        """
        if request is None:
            request = InstallRequest()

        modules, ides, fresh = self.resolve_selection(request)
        logger.debug("Installing modules=%s ides=%s fresh=%s", modules, ides, fresh)

        jobs = self.find_agent_jobs(modules)
        compiled, failed = self.compile_agent_jobs(jobs, request.include_metadata)

        installation = self._next_installation(modules, ides)
        manifest_stats = generate_manifests(
            self._ctx.installed_root,
            modules,
            ides,
            ManifestOptions(installation=installation),
        )

        help_catalog = write_help_catalog(self._ctx.installed_root, modules)
        ide_results, ide_failures = self.setup_targets(ides, modules)

        return InstallResult(
            installation=installation,
            fresh_install=fresh,
            compiled=compiled,
            failed=failed,
            manifest_stats=manifest_stats,
            help_catalog=help_catalog,
            ide_results=ide_results,
            ide_failures=ide_failures,
        )

