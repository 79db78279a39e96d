"""Auxiliary qiime-pipe subcommands."""
