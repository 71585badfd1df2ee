"""Allow ``python -m covpush``."""

from covpush.cli import cli

if __name__ == "__main__":
    cli()
