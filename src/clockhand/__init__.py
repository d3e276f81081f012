"""clockhand - reminds you to run a Harvest timer while you work."""

__version__ = "0.1.0"
