"""
Integration tests: the engine against the SQLAlchemy store and under
concurrent callers.
"""
