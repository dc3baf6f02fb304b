"""refbook: assemble a navigable HTML book from reference pages."""

__version__ = "0.1.0"
