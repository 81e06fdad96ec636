"""
Cloudflare Workers tail event forwarder for Coralogix.

Normalizes console logs, exceptions and fetch requests from tail events
into Coralogix log records and delivers them to the Singles API.
"""

__version__ = "0.1.0"
