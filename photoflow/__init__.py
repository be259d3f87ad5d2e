"""Photo library toolkit: asset models, metadata readers, sidecars, option types and helpers."""

__version__ = "0.1.0"