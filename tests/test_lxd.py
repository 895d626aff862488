import pytest
import yaml

from ubuntu_automation.core.errors import ValidationError
from ubuntu_automation.provisioners.lxd import LxdOptions, LxdProvisioner


def test_defaults_from_settings(settings):
    options = LxdOptions().validate(settings)
    assert options.https_address == "192.168.0.230:9999"
    assert options.bridge_address == "10.0.0.1/24"


@pytest.mark.parametrize("https, bridge", [
    ("192.168.0.230", "10.0.0.1/24"),
    ("192.168.0.230:0", "10.0.0.1/24"),
    ("192.168.0.230:8443", "10.0.0.1"),
    ("192.168.0.230:8443", "10.0.0.1/33"),
    ("192.168.0.230:8443", "10.0.0.256/24"),
])
def test_invalid_addresses(settings, https, bridge):
    with pytest.raises(ValidationError):
        LxdOptions(https_address=https, bridge_address=bridge).validate(settings)


def test_install_sequence(host, runner):
    LxdProvisioner(host, check_root=False).install(
        LxdOptions(https_address="10.1.1.1:8443", bridge_address="10.50.0.1/24")
    )

    preseed = yaml.safe_load(runner.inputs[runner.index("lxd", "init", "--preseed")])
    assert preseed["config"]["core.https_address"] == "10.1.1.1:8443"
    assert runner.called("lxc", "network", "set", "lxdbr0", "ipv4.address", "10.50.0.1/24")
    assert runner.index("snap", "install", "lxd") < runner.index("lxd", "init")
    assert runner.calls[-1][:5] == ["lxc", "profile", "device", "add", "default"]
