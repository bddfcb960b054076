"""
Point-to-point message transport between ranked participants.

Each participant owns one mailbox per peer. A send drops exactly one whole
message into the destination's mailbox for the sender; a receive blocks on
the mailbox of the named source. Messages from one source arrive in the order
they were sent.
"""

import queue
import logging
from concurrent import futures
from typing import Dict, List, Optional, Sequence

import grpc

from wordcount.common.errors import ConfigurationError, TransportError
from wordcount.common.records import RecordType

logger = logging.getLogger(__name__)

MAILBOX_SERVICE = 'wordcount.Mailbox'
DELIVER_METHOD = f'/{MAILBOX_SERVICE}/Deliver'
SOURCE_METADATA_KEY = 'x-wordcount-source'
MAX_MESSAGE_BYTES = 100 * 1024 * 1024


class _Aborted:
    def __init__(self, reason: str):
        self.reason = reason


class Mailboxes:
    """Per-source FIFO queues of raw messages for one participant"""

    def __init__(self, peer_count: int):
        self._queues = [queue.Queue() for _ in range(peer_count)]

    def put(self, source: int, payload: bytes):
        self._queue(source).put(payload)

    def get(self, source: int, timeout: Optional[float] = None) -> bytes:
        try:
            payload = self._queue(source).get(timeout=timeout)
        except queue.Empty:
            raise TransportError(f"No message from rank {source} within {timeout}s")
        if isinstance(payload, _Aborted):
            raise TransportError(f"Run aborted: {payload.reason}")
        return payload

    def abort(self, reason: str):
        """Wake every blocked receiver with a TransportError"""
        for q in self._queues:
            q.put(_Aborted(reason))

    def _queue(self, source: int) -> queue.Queue:
        if not 0 <= source < len(self._queues):
            raise TransportError(f"Unknown rank {source}")
        return self._queues[source]


class Transport:
    """Record-level send/receive on top of a byte-level delivery mechanism"""

    def __init__(self, self_id: int, peer_count: int, receive_timeout: Optional[float] = None):
        self.self_id = self_id
        self.peer_count = peer_count
        self.receive_timeout = receive_timeout
        self.mailboxes = Mailboxes(peer_count)

    def send(self, dest: int, items: Sequence, record_type: RecordType):
        """Send items to dest as a single message"""
        payload = record_type.encode(items)
        logger.debug(f"Rank {self.self_id} -> {dest}: {len(items)} {record_type.name} records "
                     f"({len(payload)} bytes)")
        self.send_bytes(dest, payload)

    def receive(self, source: int, record_type: RecordType) -> List:
        """Block until a message from source arrives and decode it"""
        payload = self.mailboxes.get(source, timeout=self.receive_timeout)
        items = record_type.decode(payload)
        logger.debug(f"Rank {self.self_id} <- {source}: {len(items)} {record_type.name} records")
        return items

    def send_bytes(self, dest: int, payload: bytes):
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class LocalNetwork:
    """In-process network: every participant is a thread sharing this object"""

    def __init__(self, peer_count: int, receive_timeout: Optional[float] = None):
        self.peer_count = peer_count
        self.endpoints = [LocalTransport(self, rank, receive_timeout) for rank in range(peer_count)]

    def transport(self, rank: int) -> 'LocalTransport':
        return self.endpoints[rank]

    def abort(self, reason: str):
        for endpoint in self.endpoints:
            endpoint.mailboxes.abort(reason)


class LocalTransport(Transport):
    """Transport endpoint whose sends go straight into peer mailboxes"""

    def __init__(self, network: LocalNetwork, self_id: int, receive_timeout: Optional[float] = None):
        super().__init__(self_id, network.peer_count, receive_timeout)
        self.network = network

    def send_bytes(self, dest: int, payload: bytes):
        if not 0 <= dest < self.peer_count:
            raise TransportError(f"Unknown rank {dest}")
        self.network.endpoints[dest].mailboxes.put(self.self_id, payload)


class GrpcTransport(Transport):
    """
    Transport over gRPC, one server per participant

    Messages are raw bytes on a generic unary method, so no generated stubs
    are needed. The sender's rank rides along as call metadata.
    """

    def __init__(self, self_id: int, peers: Sequence[str], bind_host: str = '[::]',
                 send_timeout: Optional[float] = None, receive_timeout: Optional[float] = None,
                 max_workers: int = 4):
        super().__init__(self_id, len(peers), receive_timeout)
        self.peers = list(peers)
        self.send_timeout = send_timeout
        self._channels: Dict[int, grpc.Channel] = {}

        options = [
            ('grpc.max_send_message_length', MAX_MESSAGE_BYTES),
            ('grpc.max_receive_message_length', MAX_MESSAGE_BYTES),
        ]
        self.server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers), options=options)
        handler = grpc.method_handlers_generic_handler(MAILBOX_SERVICE, {
            'Deliver': grpc.unary_unary_rpc_method_handler(self._deliver),
        })
        self.server.add_generic_rpc_handlers((handler,))
        self._options = options

        if not 0 <= self_id < len(self.peers):
            raise ConfigurationError(f"Rank {self_id} has no entry in peers {self.peers}")
        port = self.peers[self_id].rsplit(':', 1)[1]
        addr = f'{bind_host}:{port}'
        try:
            bound = self.server.add_insecure_port(addr)
        except RuntimeError as e:
            raise TransportError(f"Could not bind {addr}: {e}") from e
        if bound == 0:
            raise TransportError(f"Could not bind {addr}")
        self.server.start()
        logger.info(f"Rank {self_id} mailbox listening on {addr}")

    def _deliver(self, request: bytes, context: grpc.ServicerContext) -> bytes:
        metadata = dict(context.invocation_metadata())
        try:
            source = int(metadata[SOURCE_METADATA_KEY])
            self.mailboxes.put(source, request)
        except (KeyError, ValueError, TransportError) as e:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, f"Bad source rank: {e}")
        return b''

    def _channel(self, dest: int) -> grpc.Channel:
        if dest not in self._channels:
            self._channels[dest] = grpc.insecure_channel(self.peers[dest], options=self._options)
        return self._channels[dest]

    def send_bytes(self, dest: int, payload: bytes):
        if not 0 <= dest < self.peer_count:
            raise TransportError(f"Unknown rank {dest}")
        deliver = self._channel(dest).unary_unary(DELIVER_METHOD)
        try:
            # wait_for_ready lets peers come up in any order
            deliver(payload,
                    timeout=self.send_timeout,
                    metadata=((SOURCE_METADATA_KEY, str(self.self_id)),),
                    wait_for_ready=True)
        except grpc.RpcError as e:
            raise TransportError(
                f"Send from rank {self.self_id} to rank {dest} ({self.peers[dest]}) failed: "
                f"{e.code()} {e.details()}"
            ) from e

    def close(self):
        for channel in self._channels.values():
            channel.close()
        self._channels.clear()
        self.server.stop(grace=1).wait()
        logger.info(f"Rank {self.self_id} mailbox stopped")
