"""Entry point for ``python -m nodecanvas``."""

from nodecanvas.cli import main

if __name__ == "__main__":
    main()
