"""Realtime board rooms.

Authenticates Socket.IO connections, admits them to per-board rooms after
checking live board membership, and relays board mutations to every
connection in the room. Board channels of a managed pub/sub provider are
authorized by the same gate through ``api.views.ChannelAuthView``.
"""
