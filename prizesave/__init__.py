"""Prize-linked savings pool: custodial accounting and periodic draw engine."""

__version__ = "0.1.0"
