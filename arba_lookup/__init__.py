"""Cadastral parcel lookup against the ARBA CartoArba portal."""

__version__ = "0.1.0"
