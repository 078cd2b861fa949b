"""Sample types and small in-memory datasets."""

from .samples import VectorSample, samples_from_arrays
from .synthetic import blob_samples, make_blobs

__all__ = ["VectorSample", "samples_from_arrays", "blob_samples", "make_blobs"]
