"""Allow running as ``python -m mcp_unity_cli``."""

from .cli import main

if __name__ == "__main__":
    main()
