"""TaskTrack Admin — dashboard aggregation and the admin console service."""
