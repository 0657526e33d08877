import pytest

from nagiosxi_client.core.host import Host
from nagiosxi_client.core.params import FormParams, bool_flag


def test_non_empty_string_is_encoded_and_empty_is_skipped():
    p = FormParams()
    p.add_str("host_name", "host1")
    p.add_str("alias", "")
    p.add_str("notes", None)
    assert p.get("host_name") == "host1"
    assert "alias" not in p and "notes" not in p
    assert len(p) == 1


def test_list_joined_with_commas_in_order():
    p = FormParams()
    p.add_list("contacts", ["b", "a", "c"])
    assert p.get_all("contacts") == ["b,a,c"]


def test_empty_list_still_produces_entry_but_none_does_not():
    p = FormParams()
    p.add_list("contacts", [])
    p.add_list("use", None)
    assert p.items() == [("contacts", "")]


def test_int_always_included_even_zero():
    p = FormParams()
    p.add_int("retry_interval", 0)
    p.add_int("max_check_attempts", 5)
    assert p.items() == [("retry_interval", "0"), ("max_check_attempts", "5")]


def test_map_entries_become_fields():
    p = FormParams()
    p.add_map({"_SITE": "paris", "_RACK": "r12"})
    assert p.get("_SITE") == "paris" and p.get("_RACK") == "r12"


def test_map_rejects_non_string_values():
    with pytest.raises(TypeError):
        FormParams().add_map({"_PORT": 8080})


def test_encode_uses_percent_twenty_for_spaces():
    p = FormParams([("notes", "core switch"), ("contacts", "a,b")])
    assert p.encode() == "notes=core%20switch&contacts=a%2Cb"


def test_bool_flag():
    assert bool_flag(True) == "1"
    assert bool_flag(False) == "0"


def test_host_to_params_wire_names():
    host = Host(
        host_name="host1",
        address="127.0.0.1",
        templates=["generic-host"],
        two_d_coords="1,2",
        free_variables={"_OS": "linux"},
    )
    p = host.to_params()
    assert p.items() == [
        ("host_name", "host1"),
        ("address", "127.0.0.1"),
        ("use", "generic-host"),
        ("2d_coords", "1,2"),
        ("_OS", "linux"),
    ]


def test_host_encoding_is_deterministic():
    host = Host(
        host_name="host1",
        address="127.0.0.1",
        contacts=["nagiosadmin", "ops"],
        contact_groups=["admins"],
        free_variables={"_A": "1", "_B": "2"},
    )
    assert host.to_params() == host.to_params()
    assert host.to_params().encode() == host.to_params().encode()


def test_host_from_dict_accepts_comma_strings_and_arrays():
    host = Host.from_dict({
        "host_name": "host1",
        "address": "127.0.0.1",
        "use": "generic-host, linux-host",
        "contacts": ["nagiosadmin"],
        "max_check_attempts": 5,
        "unknown": "ignored",
    })
    assert host.templates == ["generic-host", "linux-host"]
    assert host.contacts == ["nagiosadmin"]
    assert host.max_check_attempts == "5"
    assert host.free_variables is None
