"""Run the command line interface via ``python -m pgroles``."""

from pgroles.cli.__main__ import main

if __name__ == "__main__":
    main()
