"""Provider Registry — private distribution server for Terraform providers."""

__version__ = "0.1.0"
