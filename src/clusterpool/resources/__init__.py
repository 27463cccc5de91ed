"""API resources for clusterpool."""

from clusterpool.resources.clusters import Clusters, label_filter

__all__ = ["Clusters", "label_filter"]
