import json
import os

import pytest

from bezelgen.errors import SimctlError


class FakeSim:
    """In-memory stand-in for bezelgen.simctl.

    `bezels` maps device name -> value the probe writes on launch. A name
    missing from `bezels` launches but never writes output.
    """

    def __init__(self, root, devices=None, runtimes=None, bezels=None):
        self.root = root
        self.devices = list(devices or [])
        self.runtimes = list(runtimes or [])
        self.bezels = dict(bezels or {})
        self.raw_output: dict[str, str] = {}
        self.fail_on: dict[str, set[str]] = {}
        self.calls: list[tuple] = []
        self._next = 1

    def _fail(self, op: str, udid: str) -> None:
        if udid in self.fail_on.get(op, set()):
            raise SimctlError(["xcrun", "simctl", op, udid], 1, f"{op} failed")

    def _device(self, udid: str) -> dict:
        for dev in self.devices:
            if dev["udid"] == udid:
                return dev
        raise SimctlError(["xcrun", "simctl", "lookup", udid], 1, "Invalid device")

    def container(self, udid: str) -> str:
        return os.path.join(str(self.root), udid, "data")

    def list_devices(self):
        self.calls.append(("list_devices",))
        return [dict(dev) for dev in self.devices]

    def list_runtimes(self):
        self.calls.append(("list_runtimes",))
        return list(self.runtimes)

    def create(self, name, device_type, runtime):
        self.calls.append(("create", name, device_type, runtime))
        if name in self.fail_on.get("create", set()):
            raise SimctlError(["xcrun", "simctl", "create", name], 1, "create failed")
        udid = f"UDID-{self._next}"
        self._next += 1
        self.devices.append({"name": name, "udid": udid, "state": "Shutdown", "runtime": runtime})
        return udid

    def boot(self, udid):
        self.calls.append(("boot", udid))
        self._fail("boot", udid)
        self._device(udid)["state"] = "Booted"

    def shutdown(self, udid):
        self.calls.append(("shutdown", udid))
        self._fail("shutdown", udid)
        self._device(udid)["state"] = "Shutdown"

    def install(self, udid, app_path):
        self.calls.append(("install", udid, app_path))
        self._fail("install", udid)

    def uninstall(self, udid, bundle_id):
        self.calls.append(("uninstall", udid, bundle_id))

    def terminate(self, udid, bundle_id):
        self.calls.append(("terminate", udid, bundle_id))

    def launch(self, udid, bundle_id):
        self.calls.append(("launch", udid, bundle_id))
        self._fail("launch", udid)
        dev = self._device(udid)
        docs = os.path.join(self.container(udid), "Documents")
        os.makedirs(docs, exist_ok=True)
        path = os.path.join(docs, "output.json")
        if udid in self.raw_output:
            with open(path, "w") as f:
                f.write(self.raw_output[udid])
        elif dev["name"] in self.bezels:
            with open(path, "w") as f:
                json.dump({"identifiers": dev.get("identifier", ""), "bezel": self.bezels[dev["name"]]}, f)

    def get_app_container(self, udid, bundle_id, container="data"):
        self.calls.append(("get_app_container", udid, bundle_id, container))
        return self.container(udid)

    def ops(self, udid=None):
        return [c[0] for c in self.calls if udid is None or (len(c) > 1 and c[1] == udid)]


def runtime(identifier, version, *names):
    return {
        "identifier": identifier,
        "version": version,
        "name": identifier.rsplit(".", 1)[-1],
        "supportedDeviceTypes": [
            {"name": name, "identifier": "com.apple.CoreSimulator.SimDeviceType." + name.replace(" ", "-")}
            for name in names
        ],
    }


@pytest.fixture
def fake_sim(tmp_path):
    return FakeSim(tmp_path / "containers")


@pytest.fixture
def write_registry(tmp_path):
    def _write(data, name="apple-device-database.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path

    return _write
