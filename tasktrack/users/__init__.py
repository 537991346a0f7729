"""TaskTrack Users — signup/login constraint sets and the user store."""
