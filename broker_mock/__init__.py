"""Mock service broker (Open Service Broker style /v2 API).

Keeps service instances, bindings and simulated asynchronous operations in
memory. See ``broker_mock.broker.BrokerService`` for the lifecycle rules and
``broker_mock.server`` for the HTTP surface.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
