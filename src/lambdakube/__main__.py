from lambdakube.cli import cli

cli()
