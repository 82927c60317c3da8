"""log-assert: assert that lager JSON logs contain an ordered sequence of entries."""

import sys

from logassert.cli import main

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
    except BrokenPipeError:
        sys.exit(0)
