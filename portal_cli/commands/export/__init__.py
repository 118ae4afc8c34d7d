# Export commands module

from .results import export_results

__all__ = [
    "export_results",
]
