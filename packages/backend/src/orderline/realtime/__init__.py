"""Real-time kitchen relay — WebSocket fan-out by role.

Learn: Events flow through two channels:
1. Hub → role partitions (in-process WebSocket delivery to waiters/chefs)
2. Hub → Redis PUBLISH (mirror for consumers outside this process)

Modules, leaf first: registry → snapshot → router → broadcaster → hub → websocket.
"""
