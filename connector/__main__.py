"""Allow ``python -m connector``."""

from connector.main import main

main()
