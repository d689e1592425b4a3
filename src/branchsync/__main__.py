"""Allow ``python -m branchsync``."""

from branchsync.interface.cli import main

if __name__ == "__main__":
    main()
