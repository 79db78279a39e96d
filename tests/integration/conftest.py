"""Pytest configuration for integration tests."""

import os
from pathlib import Path

import pytest

# Tools every workflow calls; the stubs accept any arguments and succeed
STUB_TOOLS = [
    "print_qiime_config.py",
    "check_id_map.py",
    "process_sff.py",
    "split_libraries.py",
    "make_otu_heatmap_html.py",
    "make_otu_network.py",
    "summarize_taxa_through_plots.py",
    "alpha_rarefaction.py",
    "beta_diversity_through_plots.py",
    "jackknifed_beta_diversity.py",
    "make_bootstrapped_tree.py",
    "make_3d_plots.py",
    "inflate_denoiser_output.py",
    "sffinfo",
]

# Writes the OTU table summary the workflow parses for the rarefaction depth
PER_LIBRARY_STATS = """#!/bin/sh
echo "Num samples: 3"
echo ""
echo "Seqs/sample summary:"
echo " Min: 42"
echo " Max: 97"
"""

# Creates its output directory; the statistics step writes into it
PICK_OTUS = """#!/bin/sh
while [ $# -gt 0 ]; do
    case "$1" in
        -o) out="$2"; shift ;;
    esac
    shift
done
mkdir -p "$out"
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: end-to-end tests running real shell commands"
    )


def write_tool(bin_dir: Path, name: str, body: str) -> Path:
    path = bin_dir / name
    path.write_text(body)
    path.chmod(0o755)
    return path


@pytest.fixture
def tool_bin(tmp_path, monkeypatch):
    """Directory of stub QIIME tools placed first on PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    for name in STUB_TOOLS:
        write_tool(bin_dir, name, "#!/bin/sh\nexit 0\n")
    write_tool(bin_dir, "per_library_stats.py", PER_LIBRARY_STATS)
    write_tool(bin_dir, "pick_otus_through_otu_table.py", PICK_OTUS)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return bin_dir


@pytest.fixture
def add_tool(tool_bin):
    def _add(name: str, body: str) -> Path:
        return write_tool(tool_bin, name, body)

    return _add
