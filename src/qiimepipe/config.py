"""Configuration management for qiime-pipe.

Options are resolved once at startup (defaults <- YAML config file <- CLI) into
an immutable :class:`PipelineOptions`. Anything learned while the run
progresses goes into :class:`qiimepipe.core.pipeline_types.RunState` instead.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from qiimepipe.constants import (
    DEFAULT_BARCODE_SIZE,
    DEFAULT_CHIMERA_DB,
    DEFAULT_CPUS,
    JOURNAL_SUFFIX,
)
from qiimepipe.exceptions import ConfigurationError

WORKFLOW_SFF = "sff"
WORKFLOW_ILLUMINA = "illumina"
WORKFLOW_MERGE = "merge"
WORKFLOWS = (WORKFLOW_SFF, WORKFLOW_ILLUMINA, WORKFLOW_MERGE)

_PATH_FIELDS = {"dir_out", "file_sff", "file_map", "chimera_db", "parameter_file"}
_PATH_LIST_FIELDS = {"input_dirs", "mapping_files", "fasta_files"}


@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime configuration."""

    log_level: str = "WARNING"
    log_file: Optional[Path] = None
    # Enable tqdm progress over the step list
    enable_progress: bool = True


@dataclass(frozen=True)
class PipelineOptions:
    """Immutable run configuration."""

    workflow: str = WORKFLOW_SFF
    dir_out: Optional[Path] = None

    # Inputs (which ones are required depends on the workflow)
    file_sff: Optional[Path] = None
    file_map: Optional[Path] = None
    input_dirs: Tuple[Path, ...] = ()
    mapping_files: Tuple[Path, ...] = ()
    fasta_files: Tuple[Path, ...] = ()

    # Feature flags
    denoise: bool = False
    chimera: bool = False
    force: bool = False

    chimera_db: Path = Path(DEFAULT_CHIMERA_DB)
    barcode_size: int = DEFAULT_BARCODE_SIZE
    # Forwarded to tools with their own parallelism
    cpus: int = DEFAULT_CPUS
    # Mapping file column used for taxa summaries and 3D plots
    category: Optional[str] = None
    email: Optional[str] = None
    parameter_file: Optional[Path] = None

    # Original command line, recorded as the journal header
    invocation: str = ""

    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @property
    def journal_path(self) -> Path:
        return Path(str(self.dir_out) + JOURNAL_SUFFIX)

    @property
    def label(self) -> str:
        """Short name of the run used in notification subjects."""
        if self.file_sff is not None:
            return Path(self.file_sff).name
        if self.dir_out is not None:
            return Path(self.dir_out).name
        return self.workflow

    def validate(self) -> None:
        """Validate configuration before any step runs."""
        if self.workflow not in WORKFLOWS:
            raise ConfigurationError(
                f"Unknown workflow {self.workflow!r}; choose one of {', '.join(WORKFLOWS)}"
            )
        if not self.dir_out:
            raise ConfigurationError("Output directory is required")
        if self.cpus < 1:
            raise ConfigurationError("CPUs must be >= 1")
        if self.barcode_size < 1:
            raise ConfigurationError("Barcode size must be >= 1")
        if self.parameter_file is not None and not Path(self.parameter_file).is_file():
            raise ConfigurationError(f"No such parameter file: {self.parameter_file}")

        if self.workflow == WORKFLOW_SFF:
            _require_file(self.file_sff, "SFF file")
            _require_file(self.file_map, "Mapping file")
        elif self.workflow == WORKFLOW_ILLUMINA:
            _require_file(self.file_map, "Mapping file")
            if not self.input_dirs:
                raise ConfigurationError("No input directories specified")
            for directory in self.input_dirs:
                if not Path(directory).is_dir():
                    raise ConfigurationError(f"No such input directory: {directory}")
        else:
            if not self.mapping_files:
                raise ConfigurationError("Mapping files are required")
            if not self.fasta_files:
                raise ConfigurationError("FASTA files are required")
            if len(self.mapping_files) == 1:
                raise ConfigurationError("Only 1 mapping file specified")
            if len(self.fasta_files) == 1:
                raise ConfigurationError("Only 1 fasta file specified")
            if len(self.mapping_files) != len(self.fasta_files):
                raise ConfigurationError("Number of mapping and fasta files don't match")
            for path in (*self.mapping_files, *self.fasta_files):
                _require_file(path, "Input file")

        if self.chimera and self.workflow != WORKFLOW_MERGE:
            _require_file(self.chimera_db, "Chimera database")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""

        def path_to_str(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: path_to_str(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [path_to_str(item) for item in obj]
            return obj

        return path_to_str(asdict(self))


def _require_file(path: Optional[Path], what: str) -> None:
    if path is None:
        raise ConfigurationError(f"{what} is required")
    if not Path(path).is_file():
        raise ConfigurationError(f"No such file: {path}")


def _as_paths(value: Any) -> Tuple[Path, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, Path)):
        value = [item for item in str(value).split(",") if item]
    return tuple(Path(item) for item in value)


def load_config(path: Path) -> Dict[str, Any]:
    """Load option defaults from a YAML file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(PipelineOptions)} - {"invocation", "workflow"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError("Unsupported config option(s): " + ", ".join(unknown))
    return data


def _build_runtime(data: Optional[Dict[str, Any]]) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    if not isinstance(data, dict):
        raise ConfigurationError("'runtime' must be a mapping")
    known = {f.name for f in fields(RuntimeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError("Unsupported runtime option(s): " + ", ".join(unknown))
    values = dict(data)
    if values.get("log_file"):
        values["log_file"] = Path(values["log_file"])
    return RuntimeConfig(**values)


def build_options(
    workflow: str,
    config_path: Optional[Path] = None,
    invocation: str = "",
    runtime_overrides: Optional[Dict[str, Any]] = None,
    **cli_values: Any,
) -> PipelineOptions:
    """Resolve options with priority CLI > config file > defaults, then validate.

    CLI values of ``None`` (option not given) and ``False`` for flags leave
    lower-priority values in place.
    """
    values: Dict[str, Any] = {}
    runtime_data: Dict[str, Any] = {}

    if config_path is not None:
        data = load_config(config_path)
        runtime_section = data.pop("runtime", None) or {}
        if not isinstance(runtime_section, dict):
            raise ConfigurationError("'runtime' must be a mapping")
        runtime_data.update(runtime_section)
        values.update(data)

    for key, value in cli_values.items():
        if value is None or value is False or value == ():
            continue
        values[key] = value

    for key, value in (runtime_overrides or {}).items():
        if value is not None:
            runtime_data[key] = value

    for key in list(values):
        if key in _PATH_FIELDS and values[key] is not None:
            values[key] = Path(values[key])
        elif key in _PATH_LIST_FIELDS:
            values[key] = _as_paths(values[key])

    known = {f.name for f in fields(PipelineOptions)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError("Unsupported option(s): " + ", ".join(unknown))

    opts = PipelineOptions(
        workflow=workflow,
        invocation=invocation,
        runtime=_build_runtime(runtime_data),
        **values,
    )
    opts.validate()
    return opts
