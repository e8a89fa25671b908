"""Allow ``python -m ipctl``."""

from .cli import main

main()
