from meteo.services.utilities.reading_simulator import NODE_PROFILES, NodeProfile, ReadingSimulator

__all__ = ["NODE_PROFILES", "NodeProfile", "ReadingSimulator"]
