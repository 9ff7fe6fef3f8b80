"""Building blocks for a voice assistant device: settings, IoT things, firmware updates and display state."""

__version__ = "0.1.0"