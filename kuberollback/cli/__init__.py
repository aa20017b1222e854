"""kuberollback command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kuberollback`` script).
"""

from kuberollback.cli.main import cli

__all__ = ["cli"]
