"""dttools: convert environmental-monitoring workbooks (ion chromatography,
VOC/NMHC) from the provisional lab export format into the reporting format.
"""

__version__ = "0.3.0"
