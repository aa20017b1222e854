"""Cluster backend port and adapters.

Submodules:
    base        -- ClusterBackend / EventStream abstract port.
    convert     -- Serialised API object -> model conversions.
    kubernetes  -- kubernetes-asyncio implementation (imported lazily by the CLI).
"""

from kuberollback.backend.base import ClusterBackend, EventStream

__all__ = ["ClusterBackend", "EventStream"]
