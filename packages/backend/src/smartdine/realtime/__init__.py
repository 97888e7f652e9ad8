"""Real-time notifications — in-process channel registry + WebSocket delivery.

Learn: Events flow in one direction:
1. Services → Notifier (typed emit helpers) → ChannelRegistry.publish
2. ChannelRegistry → each joined connection's outbox → WebSocket frame

Connections join addresses ("user:<id>", "admin") by sending join
messages; the registry only routes. Delivery is best-effort: nobody
listening means the event is dropped, and the client reloads its
notification inbox over REST after reconnecting.
"""
