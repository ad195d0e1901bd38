"""Module entrypoint for `python -m spath`."""

from spath import cli


if __name__ == "__main__":
    cli.main()
