"""TaskTrack Engine — Config, errors, logging, security, notifications."""
