from .drift_meter import DriftMeter, DriftThresholds, GraphDiff, analyze

__all__ = ["DriftMeter", "DriftThresholds", "GraphDiff", "analyze"]
