"""LiveWord relay: browser audio -> streaming STT -> broadcast translation and speech."""

__version__ = "1.0.0"
