from .dataset import Dataset, read_observations, write_observations
from .validation import validate_dataset

__all__ = ["Dataset", "read_observations", "write_observations", "validate_dataset"]
