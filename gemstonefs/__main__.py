"""
Module implementing the command-line interface and invoking the bridge logic.

gemstonefs runs as a bridge between an editor host and one or more GemStone sessions.
Each session lives in a session gateway process that owns the login. The bridge talks to
the gateways over RPC, mounts each session as a virtual file system with its own URI
scheme, and serves the file system calls of the editor host until it is stopped.
"""

import os
import signal
import sys
from typing import List, NoReturn, Optional

from gemstonefs.config import Config
import gemstonefs.constants as constants
from gemstonefs.logger import log, set_debug
import gemstonefs.operations as operations
from .args import Arguments


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Run the bridge with the given arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    # Parse command-line arguments.
    args = Arguments.parse(arguments)

    set_debug(args.debug)

    config = Config.load(os.path.expanduser(args.config))

    ops = operations.BridgeOperations(args, config)

    try:
        exit_code = ops.run()
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except Exception as e:
        log.error(f"failed to run bridge: {e}")
        exit_code = constants.GEMSTONEFS_ERROR_CODE

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
