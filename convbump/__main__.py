from convbump.cli import cli

cli()
