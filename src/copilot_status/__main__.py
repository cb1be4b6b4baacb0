"""Entry point for `python -m copilot_status`."""

import sys


def main():
    from copilot_status.cli import cli
    sys.exit(cli())


if __name__ == "__main__":
    main()
