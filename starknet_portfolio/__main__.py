"""Allow ``python -m starknet_portfolio``."""
from .cli import main

if __name__ == "__main__":
    main()
