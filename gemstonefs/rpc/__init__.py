"""
RPC client and server for Python classes based on ZeroMQ and MessagePack.

gemstonefs sits between two processes that it talks to with the same mechanism:

* The session gateway, a process that holds a logged in GemStone session and exposes
  calls like execute(), perform() and commit().
* The editor host, which calls the bridge's file system service with stat(),
  read_directory(), read_file() and write_file().

Both conversations are plain method calls on a Python class, so the transport only needs
to map a method name and positional arguments to a return value or an exception:

* Calls are serialized with MessagePack.
    * Dataclasses used in the service's type annotations are (de)serialized
    automatically.
* Exceptions travel back to the caller and are recreated faithfully.
    * Builtin exceptions like FileNotFoundError are recreated by name.
    * Additional exception types can be registered on both ends, which is how the file
    system errors (EntryNotFound, RemoteCompileFailed, ...) reach the editor host.
* The server distributes calls over a pool of worker threads and the client keeps one
socket per calling thread, since REQUEST/REPLY sockets must be used in lockstep.
* An optional shared token guards the service. It is not encryption; endpoints are meant
to be local or tunnelled.
"""

from abc import ABC
import builtins
from dataclasses import is_dataclass
from enum import auto, Enum
import logging
import threading
import time
import typing
from typing import Any, Callable, Dict, Iterable, List, NoReturn, Optional, Tuple

import msgpack
import zmq

from gemstonefs.logger import log, summarize


class Encoding:
    """Serialization of call arguments and results with MessagePack."""

    def __init__(self, *dataclasses: type, exceptions: Iterable[type] = ()):
        """
        Initialize a (de)serializer for the given dataclass and exception types.

        Exception types that aren't builtins must be registered to be recreated with
        their original type, otherwise they come back as a generic Exception.
        """
        self._dataclasses: Dict[str, type] = {}
        self._exceptions: Dict[str, type] = {}

        for dataclass in dataclasses:
            self.register_dataclasses(dataclass)

        for exception in exceptions:
            self.register_exception(exception)

    def register_dataclasses(self, seed_type: type) -> None:
        """Register the dataclass types used anywhere within the specified type."""
        for dataclass in self._discover_dataclasses(seed_type):
            self._dataclasses[dataclass.__qualname__] = dataclass

    def register_exception(self, exc_type: type) -> None:
        """Register a non-builtin exception type to be recreated on deserialization."""
        self._exceptions[exc_type.__qualname__] = exc_type

    def pack(self, obj: Any) -> bytes:
        """Serialize an object using MessagePack."""
        return msgpack.packb(obj, default=self.serialize_obj)

    def unpack(self, data: bytes) -> Any:
        """Deserialize an object using MessagePack."""
        return msgpack.unpackb(data, object_hook=self.deserialize_obj)

    def serialize_obj(self, obj: Any) -> Any:
        """Turn a dataclass or exception into a serializable representation."""
        if isinstance(obj, BaseException):
            return {
                "__exception__": {"name": obj.__class__.__qualname__, "args": obj.args}
            }
        elif obj.__class__.__qualname__ in self._dataclasses:
            return {
                "__data__": {"type": obj.__class__.__qualname__, "data": obj.__dict__}
            }
        else:
            raise ValueError(f"unserializable object {obj}")

    def deserialize_obj(self, obj: Any) -> Any:
        """Reconstruct a dataclass or exception from a serialized representation."""
        if isinstance(obj, dict) and "__exception__" in obj:
            return self._deserialize_exception(obj)
        elif isinstance(obj, dict) and "__data__" in obj:
            return self._deserialize_dataclass(obj)
        else:
            return obj

    def _deserialize_exception(self, obj: Dict) -> BaseException:
        """
        Reconstruct an exception from its serialized representation.

        Registered exception types take precedence over builtins with the same name.
        Anything else becomes a generic Exception with the original arguments.
        """
        name = obj["__exception__"]["name"]
        args = obj["__exception__"]["args"]

        exc_type = self._exceptions.get(name) or getattr(builtins, name, None)

        if isinstance(exc_type, type) and issubclass(exc_type, BaseException):
            return exc_type(*args)
        else:
            return Exception(*args)

    def _deserialize_dataclass(self, obj: Dict) -> Any:
        """Reconstruct a previously registered dataclass from its representation."""
        type_name = obj["__data__"]["type"]
        type_data = obj["__data__"]["data"]

        if type_name not in self._dataclasses:
            raise TypeError(f"unknown dataclass '{type_name}'")

        try:
            return self._dataclasses[type_name](**type_data)
        except Exception as e:
            raise TypeError(f"failed to deserialize {type_name}: {e}")

    @staticmethod
    def _discover_dataclasses(*seed_types: type) -> List[type]:
        """
        Find all dataclass types used with the specified types.

        This includes the types themselves, their members, nested dataclasses and the
        arguments of generic containers like List[T] and Optional[T].
        """
        candidates = set(seed_types)
        explored = set()
        dataclasses = set()

        while candidates:
            candidate = candidates.pop()

            if candidate in explored:
                continue
            explored.add(candidate)

            if is_dataclass(candidate):
                dataclasses.add(candidate)

                for subtype in typing.get_type_hints(candidate).values():
                    candidates.add(subtype)
            else:
                for subtype in typing.get_args(candidate):
                    candidates.add(subtype)

        return list(dataclasses)


class ReturnType(Enum):
    """Type of result for an RPC call."""

    NORMAL = auto()
    EXCEPTION = auto()
    TOKEN_ERROR = auto()


class InvalidTokenError(RuntimeError):
    """Exception raised when an RPC call is made with a wrong authentication token."""


class Base(ABC):
    """Shared logic between RPC client and server implementation."""

    def __init__(self, service_type: type, exceptions: Iterable[type] = ()):
        """Initialize (de)serialization for the service class and exception types."""
        self._encoding = Encoding(
            *self._discover_function_types(service_type), exceptions=exceptions
        )

    @staticmethod
    def _discover_function_types(service_type: type) -> List[type]:
        """Discover all types used as parameters or return values in the service."""
        function_types: List[type] = []

        for name in dir(service_type):
            member = getattr(service_type, name)

            if callable(member) and not name.startswith("__"):
                function_types += typing.get_type_hints(member).values()

        return function_types


class Server(Base):
    """
    RPC server that exposes the methods of a class instance.

    Example:
    ```
    class Gateway:
        def execute(self, code: str) -> int:
            ...

    server = rpc.Server(Gateway())
    server.serve("tcp://127.0.0.1:40401")
    ```
    """

    def __init__(
        self,
        service: Any,
        token: Optional[str] = None,
        worker_count: int = 1,
        exceptions: Iterable[type] = (),
    ):
        """
        Instantiate an RPC server for the given service class instance.

        If a token is specified then clients need to be initialized with the same token
        for their calls to be accepted. Calls are handled by worker_count threads.
        """
        super().__init__(service.__class__, exceptions)

        self.context = zmq.Context()

        self.service = service
        self.token = token
        self.worker_count = worker_count

    def serve(self, endpoint: str) -> NoReturn:
        """
        Start handling calls from clients on the specified endpoint.

        The endpoint uses the zmq_bind format, for example "tcp://127.0.0.1:40400".
        """
        socket = self.context.socket(zmq.ROUTER)
        socket.bind(endpoint)

        workers_socket = self.context.socket(zmq.DEALER)
        workers_socket.bind(f"inproc://{id(self)}")

        for _ in range(self.worker_count):
            t = threading.Thread(target=self._run_worker, daemon=True)
            t.start()

        zmq.proxy(socket, workers_socket)

        assert False, "unreachable"

    def _run_worker(self) -> NoReturn:
        """Request/response loop of a single worker thread."""
        socket = self.context.socket(zmq.REP)
        socket.connect(f"inproc://{id(self)}")

        while True:
            token, function, *args = self._encoding.unpack(socket.recv())

            if token != self.token:
                socket.send(self._encoding.pack((ReturnType.TOKEN_ERROR.value, None)))
                continue

            try:
                if function is None:
                    ret = None
                else:
                    ret = getattr(self.service, function)(*args)

                socket.send(self._encoding.pack((ReturnType.NORMAL.value, ret)))
            except Exception as e:
                socket.send(self._encoding.pack((ReturnType.EXCEPTION.value, e)))


class Client(Base):
    """
    RPC client that invokes methods of a service exposed by an RPC server.

    A single client can be shared by multiple threads.

    Example:
    ```
    gateway = rpc.Client(Gateway, "tcp://127.0.0.1:40401")
    oop = gateway.execute("3 + 4")
    ```
    """

    def __init__(
        self,
        service_type: type,
        endpoint: str,
        token: Optional[str] = None,
        timeout_ms: int = -1,
        exceptions: Iterable[type] = (),
    ) -> None:
        """
        Instantiate an RPC client for the service type at the given endpoint.

        The endpoint uses the zmq_connect format, for example "tcp://127.0.0.1:40400".
        """
        super().__init__(service_type, exceptions)

        self.endpoint = endpoint
        self.token = token
        self.timeout_ms = timeout_ms

        self.context = zmq.Context()

        self._socket_pool: Dict[threading.Thread, zmq.Socket] = {}
        self._socket_pool_lock = threading.Lock()

    def _socket(self) -> zmq.Socket:
        """Return the socket of the current thread, connecting it on first use."""
        t = threading.current_thread()

        with self._socket_pool_lock:
            if t not in self._socket_pool:
                sock = self.context.socket(zmq.REQ)

                sock.setsockopt(zmq.RCVTIMEO, self.timeout_ms)
                sock.setsockopt(zmq.SNDTIMEO, self.timeout_ms)

                sock.connect(self.endpoint)

                self._socket_pool[t] = sock

            return self._socket_pool[t]

    def ping(self) -> None:
        """Check if the service is available within the client timeout."""
        self.__getattr__(None)()

    def close(self) -> None:
        """Close the client sockets and their ZeroMQ context."""
        with self._socket_pool_lock:
            for sock in self._socket_pool.values():
                sock.close(linger=0)

            self._socket_pool.clear()

        self.context.destroy(linger=0)

    @property
    def socket_count(self) -> int:
        """Return the number of sockets for this client."""
        with self._socket_pool_lock:
            return len(self._socket_pool)

    @staticmethod
    def _summarize_args(args: tuple) -> Tuple[str, ...]:
        """Summarize a tuple of function arguments."""
        return tuple([summarize(arg) for arg in args])

    def __getattr__(self, name: Optional[str]) -> Callable[..., Any]:
        """Retrieve a wrapper to call the specified remote function."""

        def fn(*args: Any) -> Any:
            """
            Call the remote function with the given arguments.

            Returns its return value or raises the exception that it raised. The token
            is sent with every call since ZeroMQ connections are stateless.
            """
            sock = self._socket()

            t_call = time.time()

            try:
                sock.send(self._encoding.pack((self.token, name, *args)))
                typ, *ret = self._encoding.unpack(sock.recv())
            except zmq.ZMQError:
                raise IOError("rpc call timed out")

            if log.isEnabledFor(logging.DEBUG):
                t_millis = round((time.time() - t_call) * 1000)
                log.debug(f"rpc::{name}{self._summarize_args(args)} - {t_millis} ms")

            if typ == ReturnType.NORMAL.value:
                return ret[0] if len(ret) == 1 else ret
            elif typ == ReturnType.EXCEPTION.value:
                raise ret[0]
            elif typ == ReturnType.TOKEN_ERROR.value:
                raise InvalidTokenError("token mismatch between client and server")
            else:
                raise ValueError(f"unexpected return type {typ}")

        return fn
