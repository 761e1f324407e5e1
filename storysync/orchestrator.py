"""Pipeline orchestration for the init/sync/export/validate flows."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .analyzers import ComponentAnalyzer, DependencyAnalyzer, find_cycles
from .config import ConfigError, SyncConfig, default_config, load_config, write_config
from .discovery import StoryDiscovery, detect_project_structure
from .docs import ExampleGenerator
from .errors import RegistryValidationError, StorySyncError
from .logging import get_logger
from .models import ComponentAnalysis, ItemFailure, ParsedStoryFile
from .parser import StoryParser
from .probe import FileProbe
from .registry import RegistryAssembler, validate_registry
from .registry.assembler import REGISTRY_FILENAME
from .utils import kebab_case

CONFIG_FILENAME = "storysync.yml"
EXAMPLES_DIRNAME = "examples"
_VALIDATION_SAMPLE_SIZE = 5


@dataclass
class SyncStats:
    files_processed: int = 0
    components_generated: int = 0
    errors_count: int = 0
    warnings_count: int = 0
    duration: float = 0.0


@dataclass
class SyncResult:
    """Outcome of a sync or export run; errors are collected, not raised."""

    success: bool
    registry: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = field(default_factory=list)
    stats: SyncStats = field(default_factory=SyncStats)
    errors: List[Exception] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)


@dataclass
class ValidationIssue:
    severity: str
    message: str
    file: Optional[str] = None


@dataclass
class ValidationReport:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)


@dataclass
class _PipelineOutput:
    parsed: List[ParsedStoryFile]
    analyses: List[ComponentAnalysis]
    registry: Dict[str, Any]


class SyncOrchestrator:
    """Coordinates discovery, parsing, analysis and registry assembly."""

    def __init__(
        self,
        config: SyncConfig,
        *,
        probe: FileProbe | None = None,
        parser: StoryParser | None = None,
        discovery: StoryDiscovery | None = None,
        dependency_analyzer: DependencyAnalyzer | None = None,
        component_analyzer: ComponentAnalyzer | None = None,
        assembler: RegistryAssembler | None = None,
        example_generator: ExampleGenerator | None = None,
    ) -> None:
        self.config = config
        self.probe = probe or FileProbe()
        self.parser = parser or StoryParser()
        self.discovery = discovery or StoryDiscovery(config, probe=self.probe)
        self.dependency_analyzer = dependency_analyzer or DependencyAnalyzer(
            config.root, parser=self.parser, probe=self.probe
        )
        self.component_analyzer = component_analyzer or ComponentAnalyzer(
            dependency_analyzer=self.dependency_analyzer,
            probe=self.probe,
            components_path=config.input.components_path,
        )
        self.assembler = assembler or RegistryAssembler(config)
        self.example_generator = example_generator or ExampleGenerator()
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(cls, config_path: Path | None = None) -> "SyncOrchestrator":
        return cls(load_config(config_path))

    def sync(
        self,
        *,
        incremental: bool = False,
        since: datetime | None = None,
        validate: bool | None = None,
        generate_examples: bool | None = None,
    ) -> SyncResult:
        """Run the full pipeline and write the registry to the configured path."""
        started = time.perf_counter()
        result = SyncResult(success=False)
        stats = result.stats
        generation = self.config.generation
        validate = generation.validate_output if validate is None else validate
        generate_examples = generation.include_story_examples if generate_examples is None else generate_examples

        story_files = self.discovery.discover_story_files()
        if incremental and since is not None:
            story_files = self.discovery.filter_changed(story_files, since)
            self.logger.debug("%d story files changed since %s", len(story_files), since.isoformat())

        if not story_files:
            self.logger.info("No story files found or no changes detected")
            result.success = True
            stats.duration = time.perf_counter() - started
            return result

        self.logger.info("Found %d story files", len(story_files))
        try:
            output = self._run_pipeline(story_files, result)
            registry_dir = self.config.output.registry_path
            self.assembler.write_registry(output.registry, registry_dir)
            if generation.generate_individual_items:
                self.assembler.write_items(output.registry["items"], registry_dir)
            if generate_examples:
                self._write_examples(output.parsed, output.registry["items"], registry_dir)
            if validate:
                self._validate_written(registry_dir / REGISTRY_FILENAME)
        except (StorySyncError, OSError) as exc:
            self.logger.error("Sync failed: %s", exc)
            result.errors.append(exc)
            stats.errors_count += 1
            stats.duration = time.perf_counter() - started
            return result

        result.registry = output.registry
        result.items = list(output.registry["items"])
        stats.components_generated = len(result.items)
        result.success = stats.components_generated > 0
        stats.duration = time.perf_counter() - started

        self.logger.info(
            "Sync completed in %.2fs: %d files processed, %d components generated, %d errors, %d warnings",
            stats.duration,
            stats.files_processed,
            stats.components_generated,
            stats.errors_count,
            stats.warnings_count,
        )
        return result

    def export(
        self,
        *,
        format: str = "registry",
        include_examples: bool = False,
        output_path: Path | None = None,
    ) -> SyncResult:
        """Write the registry (``registry``) or per-item documents (``individual``)."""
        if format not in {"registry", "individual"}:
            raise StorySyncError(f"Unknown export format '{format}'", code="EXPORT_FAILED")

        started = time.perf_counter()
        result = SyncResult(success=False)
        output_dir = output_path or self.config.output.registry_path
        story_files = self.discovery.discover_story_files()

        try:
            output = self._run_pipeline(story_files, result)
        except StorySyncError as exc:
            raise StorySyncError(f"Export failed: {exc}", code="EXPORT_FAILED") from exc

        items = output.registry["items"]
        if format == "registry":
            path = self.assembler.write_registry(output.registry, output_dir)
            self.logger.info("Registry exported to %s", path)
        else:
            self.assembler.write_items(items, output_dir)
            self.logger.info("%d individual items exported to %s", len(items), output_dir)
        if include_examples:
            self._write_examples(output.parsed, items, output_dir)

        result.registry = output.registry
        result.items = list(items)
        result.stats.components_generated = len(items)
        result.success = True
        result.stats.duration = time.perf_counter() - started
        return result

    def validate(self) -> ValidationReport:
        """Check configured paths and sample a few story files."""
        issues: List[ValidationIssue] = []
        input_config = self.config.input

        if not input_config.storybook_path.exists():
            issues.append(ValidationIssue("error", f"Storybook path does not exist: {input_config.storybook_path}"))
        if not input_config.components_path.exists():
            issues.append(
                ValidationIssue("warning", f"Components path does not exist: {input_config.components_path}")
            )
        if input_config.tsconfig_path is not None and not input_config.tsconfig_path.exists():
            issues.append(ValidationIssue("warning", f"TypeScript config not found: {input_config.tsconfig_path}"))

        story_files = self.discovery.discover_story_files()
        if story_files:
            issues.append(ValidationIssue("info", f"Found {len(story_files)} story files"))
        else:
            issues.append(ValidationIssue("warning", "No story files found with current pattern"))
        for path in story_files[:_VALIDATION_SAMPLE_SIZE]:
            if not self.discovery.looks_like_story_file(path):
                issues.append(ValidationIssue("warning", "Story file may not be in valid story format", path))

        registry_path = self.config.output.registry_path
        try:
            registry_path.mkdir(parents=True, exist_ok=True)
        except OSError:
            issues.append(ValidationIssue("error", f"Cannot write to output directory: {registry_path}"))
        else:
            issues.append(ValidationIssue("info", f"Output directory is writable: {registry_path}"))

        return ValidationReport(valid=not any(issue.severity == "error" for issue in issues), issues=issues)

    def _run_pipeline(self, story_files: Sequence[str], result: SyncResult) -> _PipelineOutput:
        stats = result.stats
        batch = self.parser.parse_story_files(story_files)
        parsed = batch.successes
        stats.files_processed = len(parsed)
        stats.errors_count += len(batch.failures)
        result.errors.extend(batch.errors)
        self.logger.info("Parsed %d story files", len(parsed))

        graph_failures: List[ItemFailure] = []
        graph = self.dependency_analyzer.build_graph(
            [item.file_path for item in parsed],
            follow_internal=True,
            failures=graph_failures,
        )
        stats.warnings_count += len(graph_failures)
        result.errors.extend(failure.error for failure in graph_failures)
        result.cycles = find_cycles(graph)
        for cycle in result.cycles:
            self.logger.warning("Circular dependency: %s", " -> ".join([*cycle, cycle[0]]))
        stats.warnings_count += len(result.cycles)

        analyses = self.component_analyzer.analyze_components(parsed)
        for analysis in analyses:
            for issue in analysis.quality.issues:
                if issue.severity == "warning":
                    stats.warnings_count += 1
                elif issue.severity == "error":
                    stats.errors_count += 1

        registry = self.assembler.assemble_registry(parsed, analyses)
        self.logger.info("Generated %d registry items", len(registry["items"]))
        return _PipelineOutput(parsed=parsed, analyses=analyses, registry=registry)

    def _write_examples(
        self,
        parsed_files: Sequence[ParsedStoryFile],
        items: Sequence[Dict[str, Any]],
        output_dir: Path,
    ) -> None:
        examples_dir = output_dir / EXAMPLES_DIRNAME
        by_name = {item["name"]: item for item in items}
        written = 0
        for parsed in parsed_files:
            item = by_name.get(kebab_case(parsed.component_name)) if parsed.component_name else None
            if item is None:
                continue
            self.example_generator.write_documentation(parsed, item, examples_dir)
            written += 1
        self.logger.info("Generated examples for %d components in %s", written, examples_dir)

    def _validate_written(self, registry_file: Path) -> None:
        try:
            document = json.loads(registry_file.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise RegistryValidationError(f"Written registry is not valid JSON: {exc}", file=str(registry_file)) from exc
        validate_registry(document)
        self.logger.debug("Output validation passed for %s", registry_file)


def initialize_project(
    root: Path,
    *,
    force: bool = False,
    storybook_path: str | None = None,
    components_path: str | None = None,
    output_path: str | None = None,
) -> Path:
    """Write ``storysync.yml`` under ``root`` seeded from the detected structure."""
    root = root.expanduser().resolve()
    config_file = root / CONFIG_FILENAME
    if config_file.exists() and not force:
        raise ConfigError("Configuration file already exists. Use --force to overwrite.")

    detected = detect_project_structure(root)
    config = default_config(root)
    storybook = storybook_path or detected["storybookPath"]
    components = components_path or detected["componentsPath"]
    tsconfig = detected["tsconfigPath"]
    if storybook:
        config.input.storybook_path = root / storybook
    if components:
        config.input.components_path = root / components
    if tsconfig:
        config.input.tsconfig_path = root / tsconfig
    if output_path:
        config.output.registry_path = root / output_path

    write_config(config_file, config)
    get_logger("orchestrator").info("Configuration created at %s", config_file)
    return config_file


__all__ = [
    "SyncOrchestrator",
    "SyncResult",
    "SyncStats",
    "ValidationIssue",
    "ValidationReport",
    "initialize_project",
]
