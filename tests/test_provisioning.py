import pytest

from conftest import runtime

from bezelgen import provisioning
from bezelgen.errors import ProvisioningError
from bezelgen.registry import PendingDevice


def test_resolve_reuses_installed_instance(fake_sim):
    fake_sim.devices = [{"name": "iPhone 13 Pro", "udid": "EXISTING", "state": "Booted"}]
    fake_sim.runtimes = [runtime("com.apple.CoreSimulator.SimRuntime.iOS-17-0", "17.0", "iPhone 13 Pro")]

    handle = provisioning.resolve("iPhone 13 Pro", fake_sim, identifier="iPhone14,2")

    assert handle == provisioning.InstanceHandle("EXISTING", "iPhone 13 Pro", "Booted", "iPhone14,2")
    assert "create" not in fake_sim.ops()


def test_resolve_creates_with_first_listed_supporting_runtime(fake_sim):
    fake_sim.runtimes = [
        runtime("com.apple.CoreSimulator.SimRuntime.iOS-17-2", "17.2", "iPhone 15"),
        runtime("com.apple.CoreSimulator.SimRuntime.iOS-16-4", "16.4", "iPhone 13 Pro", "iPhone 15"),
    ]

    handle = provisioning.resolve("iPhone 15", fake_sim)

    assert handle.udid == "UDID-1"
    assert handle.state == "Shutdown"
    assert ("create", "iPhone 15", "com.apple.CoreSimulator.SimDeviceType.iPhone-15",
            "com.apple.CoreSimulator.SimRuntime.iOS-17-2") in fake_sim.calls


def test_resolve_returns_none_without_supporting_runtime(fake_sim):
    fake_sim.runtimes = [runtime("com.apple.CoreSimulator.SimRuntime.iOS-17-0", "17.0", "iPhone 15")]
    assert provisioning.resolve("iPad Imaginary", fake_sim) is None
    assert provisioning.resolve("", fake_sim) is None


def test_resolve_raises_when_creation_fails(fake_sim):
    fake_sim.runtimes = [runtime("com.apple.CoreSimulator.SimRuntime.iOS-17-0", "17.0", "iPhone 15")]
    fake_sim.fail_on["create"] = {"iPhone 15"}
    with pytest.raises(ProvisioningError):
        provisioning.resolve("iPhone 15", fake_sim)


def test_resolve_all_splits_resolved_and_unresolved(fake_sim):
    fake_sim.runtimes = [runtime("com.apple.CoreSimulator.SimRuntime.iOS-17-0", "17.0", "iPhone 15", "iPad Air")]
    fake_sim.fail_on["create"] = {"iPad Air"}
    devices = [
        PendingDevice("iPhone15,4", "iPhone 15"),
        PendingDevice("iPad13,16", "iPad Air"),
        PendingDevice("iPadXX,1", "iPad Imaginary"),
    ]

    handles, unresolved = provisioning.resolve_all(devices, fake_sim)

    assert [h.identifier for h in handles] == ["iPhone15,4"]
    assert [d.identifier for d in unresolved] == ["iPad13,16", "iPadXX,1"]
