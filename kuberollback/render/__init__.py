"""Text rendering: pod template descriptions and tab-aligned tables."""

from kuberollback.render.pod_template import describe_pod_template
from kuberollback.render.tabwriter import align, tabbed_string

__all__ = ["align", "describe_pod_template", "tabbed_string"]
