"""Expanded features and the thread-safe output feature list."""

from .feature_list import (
    ExpandedFeature,
    FeatureListRow,
    FeatureList,
)

__all__ = [
    'ExpandedFeature',
    'FeatureListRow',
    'FeatureList',
]
