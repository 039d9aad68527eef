"""gitwhere command line interface."""
