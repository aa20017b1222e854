"""Strategic merge patch engine used to reconstruct historical objects."""

from kuberollback.patch.strategic import merge_objects, strategic_merge_patch, strip_directives

__all__ = ["merge_objects", "strategic_merge_patch", "strip_directives"]
