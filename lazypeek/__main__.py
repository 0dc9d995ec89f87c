"""Module entrypoint for ``python -m lazypeek``.

Argument parsing and output happen in ``lazypeek.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
