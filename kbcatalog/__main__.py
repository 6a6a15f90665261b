"""Allow ``python -m kbcatalog``."""

from kbcatalog.cli import main

if __name__ == "__main__":
    main()
