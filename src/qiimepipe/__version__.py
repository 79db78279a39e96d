"""Version information for qiime-pipe."""

__version__ = "0.4.0"
__author__ = "Martin Asser Hansen"
__license__ = "GPL-2.0"
__description__ = "Resumable driver for QIIME amplicon workflows (454 and Illumina)"
