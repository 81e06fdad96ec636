"""
Fetch tail event to CDN log record conversion.

Converts the request/response pair of a Cloudflare Workers tail event
into the nested Fastly-style record that downstream CDN dashboards
expect (request, response, helix, client, cdn sections).

Field Mapping:
    Tail Event Field                 -> CDN Record Field
    event.request.method             -> request.method
    request.headers.host / URL host  -> request.host
    URL path                         -> request.url
    URL query (without '?')          -> request.qs
    cf.httpProtocol                  -> request.protocol
    event.response.status            -> response.status (string)
    cf.asOrganization                -> client.name, cdn...asn.organization
    cf.asn                           -> client.number, cdn...asn.number (string)
    cf.city / cf.country             -> client.city_name / client.country_name
    cf.ip / cf-connecting-ip header  -> client.ip, cdn.originating_ip
    cf.latitude / cf.longitude       -> cdn...location_geopoint.lat / lon
    request.url (unparsed)           -> cdn.url
    wallTime                         -> cdn.time_elapsed_msec
    cf.colo / cf.regionCode          -> cdn.datacenter / cdn.region_code
    cf-cache-status response header  -> cdn.cache_status

Values that are not observable from tail data (body sizes, restarts,
cache TTL) are fixed at 0.
"""

import copy
import logging
import math
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import urlsplit

from ..config.constants import CDN_BACKEND, CDN_RECORD_VERSION, HELIX_METADATA
from ..exceptions import InvalidUrlError, NoRequestDataError
from ..utils.http_utils import fold_headers

logger = logging.getLogger(__name__)


def _as_mapping(value: Any) -> Mapping:
    """Return value if it is a mapping, else an empty dict."""
    return value if isinstance(value, Mapping) else {}


def _parse_coordinate(value: Any) -> Optional[float]:
    """
    Parse a latitude/longitude value.

    Returns:
        Float coordinate, or None if the value is absent or not a number.
        0.0 is a valid coordinate and is kept.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(parsed):
        return None
    return parsed


def _parse_url(url: Any):
    """
    Parse an absolute URL.

    Raises:
        InvalidUrlError: If url is not a string with scheme and host
    """
    if not isinstance(url, str) or not url:
        raise InvalidUrlError(url)
    try:
        parsed = urlsplit(url)
        # Accessing .port validates it ("https://a:port/" raises)
        _ = parsed.port
    except ValueError as e:
        raise InvalidUrlError(url) from e
    if not parsed.scheme or not parsed.netloc:
        raise InvalidUrlError(url)
    return parsed


def convert_fetch_event(tail_event: Mapping[str, Any]) -> dict[str, Any]:
    """
    Convert a tail event's fetch request/response into a CDN log record.

    Args:
        tail_event: Owning tail event with an `event` sub-object holding
                    `request`, `response` and optionally `wallTime`

    Returns:
        Nested CDN record dictionary. Absent values are None.

    Raises:
        NoRequestDataError: If the tail event has no fetch request
        InvalidUrlError: If request.url is not an absolute URL
    """
    fetch_event = _as_mapping(tail_event.get("event"))
    request = fetch_event.get("request")
    if not isinstance(request, Mapping) or not request:
        raise NoRequestDataError()

    url = request.get("url")
    parsed_url = _parse_url(url)

    response = _as_mapping(fetch_event.get("response"))
    cf = _as_mapping(request.get("cf"))

    request_headers = fold_headers(_as_mapping(request.get("headers")))
    response_headers = fold_headers(_as_mapping(response.get("headers")))

    client_ip = cf.get("ip") or request_headers.get("cf_connecting_ip")

    status = response.get("status")
    asn = cf.get("asn")

    wall_time = tail_event.get("wallTime")
    if wall_time is None:
        wall_time = fetch_event.get("wallTime")

    return {
        "request": {
            "method": request.get("method"),
            "host": request_headers.get("host") or parsed_url.hostname,
            "url": parsed_url.path or "/",
            "qs": parsed_url.query,
            "protocol": cf.get("httpProtocol"),
            "backend": CDN_BACKEND,
            "restarts": 0,
            "body_size": 0,
            "headers": request_headers,
        },
        "response": {
            "status": str(status) if status is not None else None,
            "body_size": 0,
            "headers": response_headers,
        },
        "helix": copy.deepcopy(HELIX_METADATA),
        "client": {
            "name": cf.get("asOrganization"),
            "number": asn,
            "city_name": cf.get("city"),
            "country_name": cf.get("country"),
            "ip": client_ip,
        },
        "cdn": {
            "originating_ip_geoip": {
                "ip": client_ip,
                "ip_ipaddr": client_ip,
                "location_geopoint": {
                    "lat": _parse_coordinate(cf.get("latitude")),
                    "lon": _parse_coordinate(cf.get("longitude")),
                },
                "continent_name": cf.get("continent"),
                "country_name": cf.get("country"),
                "city_name": cf.get("city"),
                "postal_code": cf.get("postalCode"),
                "is_local": False,
                "asn": {
                    "number": str(asn) if asn is not None else None,
                    "organization": cf.get("asOrganization"),
                },
            },
            "version": CDN_RECORD_VERSION,
            "url": url,
            "originating_ip": client_ip,
            "time_elapsed_msec": wall_time,
            "is_edge": True,
            "datacenter": cf.get("colo"),
            "region_code": cf.get("regionCode"),
            # Looked up after folding: 'cf-cache-status' -> 'cf_cache_status'
            "cache_status": response_headers.get("cf_cache_status"),
            "cache_ttl": 0,
        },
    }


def drop_absent(value: Any) -> Any:
    """
    Recursively remove None values from nested dictionaries.

    Absent fields are omitted from the wire payload rather than sent as
    JSON null. Lists are traversed; empty dictionaries are kept.
    """
    if isinstance(value, Mapping):
        return {k: drop_absent(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [drop_absent(v) for v in value]
    return value
