"""TaskTrack Database — SQLAlchemy base, session management and models."""
