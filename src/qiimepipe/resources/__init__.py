"""Resource files and configuration templates."""


def get_default_config() -> str:
    """Return default configuration YAML content."""
    return """# qiime-pipe Configuration File
#
# Values here are defaults; command line options take precedence.

# Output directory; the journal is written next to it as <dir_out>.log
dir_out: ~

# Inputs (which ones are used depends on the workflow)
file_sff: ~
file_map: ~
input_dirs: []      # illumina: read directories
mapping_files: []   # merge: mapping files of processed datasets
fasta_files: []     # merge: FASTA files, same order as mapping_files

# Feature flags
denoise: false
chimera: false

# Reference database for chimera checking
chimera_db: "gold.fa"
barcode_size: 10
cpus: 1

# Mapping file column for taxa summaries and 3D plots
category: ~

# Operator address notified on failure and completion
email: ~

# Extra tool options, one "tool:option value" per line
parameter_file: ~

# Runtime settings
runtime:
  log_level: "WARNING"
  log_file: ~
  enable_progress: true
"""
