"""Administrative command-line scripts."""
