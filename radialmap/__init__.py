"""
radialmap: explorable radial knowledge maps.

Main interface: MapSession
"""

__version__ = "0.1.0"

from .core import MapSession, load_dataset, load_sample_dataset

__all__ = ["MapSession", "load_dataset", "load_sample_dataset"]
