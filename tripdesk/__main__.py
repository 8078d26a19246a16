"""Module entrypoint for `python -m tripdesk`."""

from tripdesk.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
