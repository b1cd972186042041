"""Build the probe app for the iOS Simulator SDK and locate the resulting .app bundle."""

import os
import subprocess
import sys

from bezelgen.errors import ProbeBuildError

BUILD_TIMEOUT = 900


def _log(msg: str) -> None:
    print(f"[xcodebuild] {msg}", file=sys.stderr)


def _run(cmd: list[str]) -> str:
    _log(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=BUILD_TIMEOUT)
    except FileNotFoundError as exc:
        raise ProbeBuildError(f"xcodebuild not available: {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise ProbeBuildError(f"{' '.join(cmd)} timed out after {exc.timeout}s") from exc
    if result.returncode != 0:
        errors = [line for line in result.stdout.splitlines() if "error" in line.lower()]
        detail = "\n".join(errors[-10:]) or result.stderr.strip()
        raise ProbeBuildError(f"{' '.join(cmd)} exited {result.returncode}: {detail}")
    return result.stdout


def setting_value(settings: str, key: str) -> str | None:
    """Value of `KEY = value` from `xcodebuild -showBuildSettings` output."""
    for line in settings.splitlines():
        name, sep, value = line.partition("=")
        if sep and name.strip() == key:
            return value.strip()
    return None


def build_probe_app(project_path: str, scheme: str) -> str:
    """Clean-build the probe project and return the path to its .app bundle."""
    if not os.path.exists(project_path):
        raise ProbeBuildError(f"probe project not found: {project_path}")

    _log(f"Building {scheme} from {project_path}")
    _run([
        "xcodebuild", "-project", project_path, "-scheme", scheme,
        "-destination", "generic/platform=iOS Simulator", "clean", "build",
    ])
    settings = _run([
        "xcodebuild", "-project", project_path, "-scheme", scheme,
        "-sdk", "iphonesimulator", "-configuration", "Debug", "-showBuildSettings",
    ])

    products_dir = setting_value(settings, "BUILT_PRODUCTS_DIR")
    product_name = setting_value(settings, "FULL_PRODUCT_NAME")
    if not products_dir or not product_name:
        raise ProbeBuildError("BUILT_PRODUCTS_DIR / FULL_PRODUCT_NAME missing from build settings")

    app_path = os.path.join(products_dir, product_name)
    _log(f"Probe app: {app_path}")
    return app_path


def locate_probe_app(app_path: str = "", project_path: str = "", scheme: str = "", builder=build_probe_app) -> str:
    """Use a prebuilt .app when given, otherwise build one."""
    if app_path:
        if not os.path.isdir(app_path):
            raise ProbeBuildError(f"prebuilt probe app not found: {app_path}")
        _log(f"Using prebuilt probe app: {app_path}")
        return app_path
    return builder(project_path, scheme)
