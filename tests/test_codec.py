import json

import pytest

from dockhand.engine import codec
from dockhand.engine.exceptions import DecodeError
from dockhand.models.enums import ContainerState
from dockhand.models.requests import (
    ContainerCreateRequest,
    HostConfig,
    NetworkCreateRequest,
    PortBinding,
)
from dockhand.models.resources import Container, SystemInfo, VolumeListResponse


def test_decode_ignores_unknown_fields(system_info_doc):
    info = codec.decode(json.dumps(system_info_doc), SystemInfo)
    assert info.name == "docker-desktop"
    assert info.ncpu == 8
    assert info.swarm.local_node_state == "inactive"
    assert not hasattr(info, "SomethingNew")


def test_decode_missing_optional_fields_are_none(system_info_doc):
    info = codec.decode(json.dumps(system_info_doc), SystemInfo)
    assert info.kernel_version is None
    assert info.registry_config is None


def test_decode_missing_required_field_names_it(system_info_doc):
    del system_info_doc["ServerVersion"]
    with pytest.raises(DecodeError) as exc_info:
        codec.decode(json.dumps(system_info_doc), SystemInfo)
    assert exc_info.value.field == "ServerVersion"


def test_decode_type_mismatch_reports_json_path(container_doc):
    container_doc["Ports"].append({"PrivatePort": "eighty", "Type": "tcp"})
    with pytest.raises(DecodeError) as exc_info:
        codec.decode(json.dumps([container_doc]), list[Container])
    assert exc_info.value.field == "[0].Ports[1].PrivatePort"
    assert "eighty" in exc_info.value.raw


def test_decode_invalid_json():
    with pytest.raises(DecodeError) as exc_info:
        codec.decode(b"<html>502</html>", SystemInfo)
    assert "SystemInfo" in exc_info.value.expected_type


def test_container_state_unknown_value_decodes(container_doc):
    container_doc["State"] = "hibernating"
    container = codec.decode(json.dumps(container_doc), Container)
    assert container.state is ContainerState.UNKNOWN
    assert container.display_name == "web"
    assert container.short_id == "4fa6e0f0c678"


def test_volume_list_null_volumes():
    response = codec.decode(b'{"Volumes": null, "Warnings": null}', VolumeListResponse)
    assert response.volumes is None


def test_encode_uses_wire_names_and_omits_none():
    request = ContainerCreateRequest(
        image="nginx",
        host_config=HostConfig(port_bindings={"80/tcp": [PortBinding(host_port="8080")]}),
        name="web",
    )
    document = json.loads(codec.encode(request))
    assert document == {
        "Image": "nginx",
        "HostConfig": {"PortBindings": {"80/tcp": [{"HostPort": "8080"}]}},
    }


def test_encode_network_defaults():
    document = json.loads(codec.encode(NetworkCreateRequest(name="backend")))
    assert document == {"Name": "backend", "Driver": "bridge"}


def test_format_location():
    assert codec.format_location(()) == "<root>"
    assert codec.format_location(("Swarm", "LocalNodeState")) == "Swarm.LocalNodeState"
    assert codec.format_location((2, "Names", 0)) == "[2].Names[0]"
