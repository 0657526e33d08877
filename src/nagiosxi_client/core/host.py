"""
Host objects (config/host).

`Host` maps every Nagios XI host directive to its wire name explicitly in
`to_params()`. `HostAPI` exposes the create/get/update/delete verbs on top of
NagiosClient.

Usage:
    hosts = HostAPI(client)
    hosts.create(Host(host_name="web01", address="10.0.0.1", contacts=["nagiosadmin"]))
    web01 = hosts.get("web01")
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .errors import HostNotFoundError, NotFoundError, ResponseFormatError
from .nagios_client import NagiosClient, Resource
from .params import FormParams

HOST = Resource("config", "host")

# attribute name -> wire name, where they differ
_WIRE_NAMES = {
    "templates": "use",
    "two_d_coords": "2d_coords",
    "three_d_coords": "3d_coords",
}
_LIST_FIELDS = ("contacts", "templates", "contact_groups", "flap_detection_options")


@dataclass
class Host:
    """A Nagios host definition.

    `host_name`, `address`, `max_check_attempts`, `check_period`,
    `notification_interval`, `notification_period` and `contacts` are
    required by Nagios; they are not validated locally.
    """
    host_name: str = ""
    address: str = ""
    display_name: str = ""
    max_check_attempts: str = ""
    check_period: str = ""
    notification_interval: str = ""
    notification_period: str = ""
    contacts: Optional[List[str]] = None
    alias: str = ""
    templates: Optional[List[str]] = None
    check_command: str = ""
    contact_groups: Optional[List[str]] = None
    notes: str = ""
    notes_url: str = ""
    action_url: str = ""
    initial_state: str = ""
    retry_interval: str = ""
    passive_checks_enabled: str = ""
    active_checks_enabled: str = ""
    obsess_over_host: str = ""
    event_handler: str = ""
    event_handler_enabled: str = ""
    flap_detection_enabled: str = ""
    flap_detection_options: Optional[List[str]] = None
    low_flap_threshold: str = ""
    high_flap_threshold: str = ""
    process_perf_data: str = ""
    retain_status_information: str = ""
    retain_nonstatus_information: str = ""
    check_freshness: str = ""
    freshness_threshold: str = ""
    first_notification_delay: str = ""
    notification_options: str = ""
    notifications_enabled: str = ""
    stalking_options: str = ""
    icon_image: str = ""
    icon_image_alt: str = ""
    vrml_image: str = ""
    statusmap_image: str = ""
    two_d_coords: str = ""
    three_d_coords: str = ""
    register: str = ""
    free_variables: Optional[Dict[str, str]] = field(default=None)

    def to_params(self) -> FormParams:
        p = FormParams()
        p.add_str("host_name", self.host_name)
        p.add_str("address", self.address)
        p.add_str("display_name", self.display_name)
        p.add_str("max_check_attempts", self.max_check_attempts)
        p.add_str("check_period", self.check_period)
        p.add_str("notification_interval", self.notification_interval)
        p.add_str("notification_period", self.notification_period)
        p.add_list("contacts", self.contacts)
        p.add_str("alias", self.alias)
        p.add_list("use", self.templates)
        p.add_str("check_command", self.check_command)
        p.add_list("contact_groups", self.contact_groups)
        p.add_str("notes", self.notes)
        p.add_str("notes_url", self.notes_url)
        p.add_str("action_url", self.action_url)
        p.add_str("initial_state", self.initial_state)
        p.add_str("retry_interval", self.retry_interval)
        p.add_str("passive_checks_enabled", self.passive_checks_enabled)
        p.add_str("active_checks_enabled", self.active_checks_enabled)
        p.add_str("obsess_over_host", self.obsess_over_host)
        p.add_str("event_handler", self.event_handler)
        p.add_str("event_handler_enabled", self.event_handler_enabled)
        p.add_str("flap_detection_enabled", self.flap_detection_enabled)
        p.add_list("flap_detection_options", self.flap_detection_options)
        p.add_str("low_flap_threshold", self.low_flap_threshold)
        p.add_str("high_flap_threshold", self.high_flap_threshold)
        p.add_str("process_perf_data", self.process_perf_data)
        p.add_str("retain_status_information", self.retain_status_information)
        p.add_str("retain_nonstatus_information", self.retain_nonstatus_information)
        p.add_str("check_freshness", self.check_freshness)
        p.add_str("freshness_threshold", self.freshness_threshold)
        p.add_str("first_notification_delay", self.first_notification_delay)
        p.add_str("notification_options", self.notification_options)
        p.add_str("notifications_enabled", self.notifications_enabled)
        p.add_str("stalking_options", self.stalking_options)
        p.add_str("icon_image", self.icon_image)
        p.add_str("icon_image_alt", self.icon_image_alt)
        p.add_str("vrml_image", self.vrml_image)
        p.add_str("statusmap_image", self.statusmap_image)
        p.add_str("2d_coords", self.two_d_coords)
        p.add_str("3d_coords", self.three_d_coords)
        p.add_str("register", self.register)
        p.add_map(self.free_variables)
        return p

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Host":
        """Build a Host from an object returned by the API.

        Unknown keys are ignored; list directives accept a JSON array or a
        comma-joined string.
        """
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "free_variables":
                continue
            wire = _WIRE_NAMES.get(f.name, f.name)
            if wire not in data or data[wire] is None:
                continue
            raw = data[wire]
            if f.name in _LIST_FIELDS:
                kwargs[f.name] = _to_list(raw)
            else:
                kwargs[f.name] = str(raw)
        return cls(**kwargs)


def _to_list(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(x) for x in raw]
    text = str(raw)
    return [x.strip() for x in text.split(",") if x.strip()] if text else []


def extract_free_variables(record: Any) -> Optional[Dict[str, str]]:
    """
    Best effort: collect custom variables (keys starting with "_") from an
    API object. Returns None when the object has none or is not a mapping.
    """
    if not isinstance(record, dict):
        return None
    found = {k: v for k, v in record.items() if isinstance(k, str) and k.startswith("_") and isinstance(v, str)}
    return found or None


class HostAPI:
    """Create/read/update/delete Nagios hosts."""

    def __init__(self, client: NagiosClient, resource: Resource = HOST) -> None:
        self.client = client
        self.resource = resource

    def create(self, host: Host) -> bytes:
        return self.client.create_object(self.resource, host.to_params())

    def get(self, name: str) -> Host:
        """Fetch a host by exact name.

        Raises:
            HostNotFoundError: the server returned an empty list.
        """
        items = self.client.list_objects(self.resource, FormParams([("host_name", name)]))
        if not items:
            raise HostNotFoundError(name)
        first = items[0]
        if not isinstance(first, dict):
            raise ResponseFormatError(f"unexpected host entry: {type(first).__name__}")
        host = Host.from_dict(first)
        host.free_variables = extract_free_variables(first)
        return host

    def exists(self, name: str) -> bool:
        try:
            self.get(name)
        except NotFoundError:
            return False
        return True

    def update(self, host: Host, current_name: str) -> bytes:
        """Update the host currently named `current_name` with the fields of `host`.

        `host.host_name` may differ from `current_name` (rename).
        """
        return self.client.update_object(self.resource, [current_name], host.to_params())

    def delete(self, name: str) -> bytes:
        return self.client.delete_object(self.resource, [name], FormParams([("host_name", name)]))
