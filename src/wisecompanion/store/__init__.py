"""Activity store primitives."""

from .activity_store import ActivityStore
from .loader import ArtifactLoader, RetryPolicy, parse_artifact

__all__ = ["ActivityStore", "ArtifactLoader", "RetryPolicy", "parse_artifact"]
