"""mi subcommands."""
