__all__ = ["REPORT_HEADER", "__version__"]

__version__ = "0.1.0"

# Column order of the monthly runs table
REPORT_HEADER = [
    "date",
    "distance",
    "duration",
    "distance_km",
]
