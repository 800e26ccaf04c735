"""Document import and reconciliation for a wedding photography studio."""

__version__ = "0.1.0"
