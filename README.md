# runar_node

The networking core of a node: it finds peers, keeps track of them and holds
the state of their connections.

## What is in it

- **Discovery** (`runar_node.discovery`). `NodeDiscovery` is the abstract
  interface (`init`, `start_announcing`, `stop_announcing`,
  `set_discovery_listener`, `shutdown`). `DiscoveryOptions` holds its settings;
  durations are in seconds. `PeerInfo` and `NodeInfo` describe peers and nodes.
  Listeners are async callables that receive a `PeerInfo`.
  - `MulticastDiscovery` (`runar_node.multicast_discovery`) announces and
    listens on a UDP multicast group. The default group is `239.255.42.98`
    and the default port is `45678`. A group may also be given as `"IP:PORT"`.
    A node that hears a peer for the first time answers it directly with its
    own announcement. Create an instance with
    `await MulticastDiscovery.create(local_node, options)`. The helpers
    `parse_multicast_address`, `encode_message` and `decode_message` handle the
    `Announce` and `Goodbye` messages.
  - `MemoryDiscovery` (`runar_node.memory_discovery`) and `MockNodeDiscovery`
    (`runar_node.mock_discovery`) keep nodes in memory and never touch the
    network. They are meant for development and tests.
- **Peer bookkeeping.**
  - `PeerRegistry` (`runar_node.peer_registry`) keeps a thread-safe record of
    each peer and its `PeerStatus`. Lookups return copies. Operations on an
    unknown peer raise `PeerNotFoundError`. `cleanup_stale_peers()` removes
    peers that have not been seen within `PeerRegistryOptions.peer_ttl`.
  - `ConnectionPool`, `PeerState` and `StreamPool` hold one state per peer. The
    connection can be any object with an async `open_uni()` and a
    `close(code, reason)`. Idle send streams are reused, up to a limit.
- **Wire format.** `NetworkMessage` and `NetworkMessagePayloadItem`
  (`runar_node.transport`) provide `to_bytes()` and `from_bytes()`. They build
  on the length-prefixed little-endian encoding in `runar_node.wire` (the
  `encode_*` functions and `Decoder`). Malformed input raises `ValueError`.
- **Transport types** (`runar_node.transport`):
  - `PeerId` and `NetworkMessageType`.
  - `TransportOptions`, whose default bind address uses a free port picked by
    `pick_free_port(start, stop)`.
  - The `NetworkError` hierarchy: `NetworkConnectionError`, `MessageError`,
    `DiscoveryError`, `TransportError` and `ConfigurationError`.
- **Transport interface.** `NetworkTransport` (`runar_node.transport_api`) is
  the abstract interface that a transport implements.
- **Configuration.**
  - `NetworkConfig` (`runar_node.network_config`) has `with_*` methods. Each
    returns an updated copy. `NetworkConfig.with_quic(...)` builds a preset,
    and `default_multicast()` and `default_static(addresses)` build discovery
    provider settings.
  - `LoggingConfig` (`runar_node.logging_config`) sets a default level and a
    level for each component, and then `apply()`s them to the `logging` module.
- **Certificates** (`runar_node.certs`):
  - `generate_self_signed_cert()` returns a self-signed `localhost` certificate
    and its private key, both as DER bytes.
  - `generate_test_certificates()` returns a one-element chain and a key.

## What it does not do

- The package has no concrete transport. `NetworkTransport` is only an
  interface, and no QUIC or other connection code is included.
- `NetworkConfig.quic_options` is stored as given.
- There is no command-line tool and no running node. You assemble the pieces
  yourself.

## Install

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Quick look

Encode a message and decode it again:

```python
from runar_node.transport import NetworkMessage, NetworkMessagePayloadItem, PeerId

message = NetworkMessage(
    source=PeerId("source-node"),
    destination=PeerId("dest-node"),
    message_type="Request",
    payloads=[NetworkMessagePayloadItem("test/path", b"\x01\x02", "correlation-123")],
)
data = message.to_bytes()
assert NetworkMessage.from_bytes(data).payloads[0].path == "test/path"
```

Track peers in a registry:

```python
from runar_node.discovery import PeerInfo
from runar_node.peer_registry import PeerRegistry, PeerStatus
from runar_node.transport import PeerId

registry = PeerRegistry()
registry.add_peer(PeerInfo("node-1", ("127.0.0.1:8000",)))
registry.update_peer_status(PeerId("node-1"), PeerStatus.CONNECTED)
print(registry.find_peers_by_status(PeerStatus.CONNECTED))
```

Discovery in memory, with an async listener:

```python
import asyncio
from runar_node.discovery import DiscoveryOptions, NodeInfo
from runar_node.memory_discovery import MemoryDiscovery
from runar_node.transport import PeerId

async def main():
    discovery = MemoryDiscovery()
    await discovery.init(DiscoveryOptions())

    async def on_peer(peer_info):
        print("discovered", peer_info)

    await discovery.set_discovery_listener(on_peer)
    discovery.set_local_node(
        NodeInfo(PeerId("node-1"), ["net1"], ["127.0.0.1:8000"], [], 0)
    )
    await discovery.start_announcing()
    await discovery.shutdown()

asyncio.run(main())
```

Set log levels:

```python
from runar_node.logging_config import Component, LoggingConfig, LogLevel

(
    LoggingConfig()
    .with_default_level(LogLevel.WARN)
    .with_component_level(Component.NETWORK, LogLevel.DEBUG)
    .apply()
)
```