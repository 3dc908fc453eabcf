"""
FastPack Scanner - packing client for the FastPack shipments backend.
"""

__version__ = "1.0.0"
