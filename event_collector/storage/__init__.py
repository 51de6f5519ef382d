"""
Event Store

SQLAlchemy-backed persistence for accepted events.
"""
