"""Module that implements the logic of the bridge process."""

import contextlib
import signal
import threading
from typing import Any, Callable

from gemstonefs.args import Arguments
from gemstonefs.config import Config
import gemstonefs.filesystem as filesystem
from gemstonefs.filesystem.errors import ALL_ERRORS
from gemstonefs.logger import log
import gemstonefs.rpc as rpc
from gemstonefs.session import SessionRegistry
from gemstonefs.workspace import JsonWorkspace
from .events import BridgeEvents


def _start_disposable_thread(target: Callable[..., None], *args: Any) -> None:
    """Start a daemon thread that is never joined, since it blocks on a socket."""
    t = threading.Thread(target=target, args=args, daemon=True)
    t.start()


class BridgeOperations:
    """
    Class that encapsulates the lifetime of the bridge.

    The bridge cleans up the workspace after an earlier process that didn't exit
    properly, mounts the sessions of the gateways on the command-line, and then serves
    the editor host until it is asked to shut down. All sessions are logged out and
    removed from the workspace on the way out, no matter how the bridge exits.
    """

    def __init__(self, args: Arguments, config: Config):
        """Initialize the bridge based on command-line arguments and config."""
        self._args = args
        self._config = config

    def run(self) -> int:
        """Run the bridge until it is shut down and return the exit code."""
        with contextlib.ExitStack() as stack:
            return self._run(stack)

        # https://github.com/python/mypy/issues/7726
        assert False, "unreachable"

    def _run(self, stack: contextlib.ExitStack) -> int:
        events = BridgeEvents()

        workspace = JsonWorkspace(self._args.workspace or self._config.workspace.path)
        synchronizer = filesystem.MountSynchronizer(workspace)

        stale = synchronizer.remove_stale()
        if stale:
            log.info(f"removed {stale} stale folders from the workspace")

        registry = SessionRegistry(self._args.gateway_token, self._args.timeout)

        service = filesystem.BridgeService(
            registry, synchronizer, self._config.limits
        )
        stack.callback(service.logout_all)

        for endpoint in self._args.gateways:
            scheme = service.login(endpoint)
            log.info(f"mounted session of {endpoint} as {scheme}")

        _start_disposable_thread(self._run_bridge_service, events, service)

        self._install_shutdown_handler(events)

        # SIGINT ends up as KeyboardInterrupt in main() instead
        signum = events.wait_for_shutdown()
        log.info(f"received signal {signum}, shutting down")

        return 0

    def _run_bridge_service(
        self, events: BridgeEvents, service: filesystem.BridgeService
    ) -> None:
        """Serve the file system RPC service to the editor host."""
        try:
            server = rpc.Server(
                service, self._args.token, self._args.workers, exceptions=ALL_ERRORS
            )
            server.serve(self._args.listen)

            events.service_failed("bridge service unexpectedly stopped")
        except Exception as e:
            events.service_failed(f"bridge service failed: {e}", e)

    @staticmethod
    def _install_shutdown_handler(events: BridgeEvents) -> None:
        def handler(signum: int, _frame: Any) -> None:
            events.shutdown(signum)

        signal.signal(signal.SIGTERM, handler)
