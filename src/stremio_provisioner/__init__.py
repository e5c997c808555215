"""stremio-provisioner: one-shot setup of a Stremio streaming server host."""

__version__ = "1.0.0"
