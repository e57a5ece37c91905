"""Device models and control logic for a pump and TEC driver board."""

__version__ = "1.0.0"