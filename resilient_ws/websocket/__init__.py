"""
This package contains the reconnecting client and its building blocks:
the transport contract, the event registry, the reconnect policy and timers.
"""
