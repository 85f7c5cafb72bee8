"""Entry point for `python -m freetimebot`."""

from freetimebot.cli import main

if __name__ == "__main__":
    main()
