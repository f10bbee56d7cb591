"""Allow ``python -m metrics_engine``."""

from metrics_engine.main import main

main()
