"""Unified constants for qiime-pipe.

Values shared between the journal, the workflows and the CLI live here so the
journal format and the on-disk layout are defined in one place.
"""

# ================== Journal ==================
# The journal sits next to the output directory: "<dir_out>" + JOURNAL_SUFFIX
JOURNAL_SUFFIX: str = ".log"

# Marks the header line holding the original invocation
JOURNAL_COMMENT: str = "#"

JOURNAL_SEPARATOR: str = "\t"

JOURNAL_TIME_FORMAT: str = "%Y-%m-%d %H:%M:%S %z"


# ================== Checkpoints ==================
CHECKPOINT_SUBDIR: str = "checkpoints"

# Suffix of the secondary working directory used while resuming
RESUMED_SUFFIX: str = "_resumed"

ROTATION_TIME_FORMAT: str = "%Y%m%d%H%M%S"


# ================== Workflow defaults ==================
DEFAULT_CHIMERA_DB: str = "gold.fa"
DEFAULT_BARCODE_SIZE: int = 10
DEFAULT_CPUS: int = 1

# Fraction of the smallest library used as jackknife depth
JACKKNIFE_FRACTION: float = 0.75

ALPHA_METRICS: str = "shannon,PD_whole_tree,chao1,observed_species"

# Exit status reported when the shell cannot be spawned at all
SPAWN_FAILURE_STATUS: int = 127
