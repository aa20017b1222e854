"""Entry point for `python -m kuberollback`.

Usage:
    python -m kuberollback history deployment/my-app
    python -m kuberollback undo daemonset/node-agent --to-revision 3
"""

from __future__ import annotations

from kuberollback.cli import cli

cli()
