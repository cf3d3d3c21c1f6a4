"""Entry point for running rpc-bench as a module."""

import sys

from rpc_bench.runner import main

if __name__ == "__main__":
    sys.exit(main())
