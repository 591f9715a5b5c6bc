"""Vehicle references attached to jobs and their display resolution."""
