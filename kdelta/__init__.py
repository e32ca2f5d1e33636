"""
per-window read evidence extraction and clustering for heterogeneous (mosaic or multi-allelic) signal
"""
__version__ = '0.3.1'
