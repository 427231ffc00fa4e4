"""
Meteo IoT analysis core.

Anomaly scoring, alert derivation, forecasting and sensor diagnostics over
per-node sliding windows of weather-station readings.
"""

__version__ = "1.0.0"
