"""Record transforms: typed payload -> canonical record -> flat record."""

from kubewatch.transform.flatten import ROOT_PREFIX, flatten, format_number
from kubewatch.transform.normalizer import EventNormalizer

__all__ = ["ROOT_PREFIX", "EventNormalizer", "flatten", "format_number"]
