"""FluxLab: FLUX image generation client and chat command adapters."""

__version__ = "0.1.0"
