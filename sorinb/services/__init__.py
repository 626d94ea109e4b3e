"""Domain operations used by the routes and CLI scripts."""
