from cdl.cli import cli

cli()
