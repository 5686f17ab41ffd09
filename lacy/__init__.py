"""LacyLights Raspberry Pi release distribution and installer."""

__version__ = "0.1.0"
