"""Internal resolver components. Public API is in ``declscope.resolve``."""
