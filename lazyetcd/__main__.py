"""Module entrypoint for ``python -m lazyetcd``.

All argument parsing and runtime setup happen in ``lazyetcd.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
