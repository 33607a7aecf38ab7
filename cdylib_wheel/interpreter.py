"""Python interpreter discovery.

Finds the interpreters installed on the host and asks each one, in a
subprocess, for the details needed to tag a wheel for it: implementation,
version, ABI flags, extension-module suffix and platform.
"""

import json
import logging
import os
import platform
import shutil
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .errors import DiscoveryError

logger = logging.getLogger(__name__)

MINIMUM_PYTHON_MINOR = 7
MAXIMUM_PYTHON_MINOR = 14
PROBE_TIMEOUT = 30

DEFAULT_CANDIDATES = (
    ["python3"]
    + [f"python3.{minor}" for minor in range(MINIMUM_PYTHON_MINOR, MAXIMUM_PYTHON_MINOR + 1)]
    + ["pypy3"]
)

_PROBE_SCRIPT = """\
import json, os, platform, sys, sysconfig
print(json.dumps({
    "implementation": platform.python_implementation(),
    "major": sys.version_info[0],
    "minor": sys.version_info[1],
    "abiflags": getattr(sys, "abiflags", ""),
    "ext_suffix": sysconfig.get_config_var("EXT_SUFFIX"),
    "platform": sysconfig.get_platform(),
    "executable": os.path.realpath(sys.executable),
}))
"""


class BridgeModel(Enum):
    """How the native library talks to Python."""
    CFFI = "cffi"
    BINDINGS = "bindings"


class PlatformPolicy(Enum):
    """Which platform tag a wheel claims."""
    OFF = "off"  # plain linux_<arch>, not redistributable
    MANYLINUX2014 = "manylinux2014"


@dataclass(frozen=True)
class Target:
    """Operating system and architecture the wheels are built for."""

    os: str
    arch: str

    @classmethod
    def current(cls) -> "Target":
        system = platform.system()
        machine = platform.machine().lower()
        if system == "Linux":
            return cls(os="linux", arch=machine)
        if system == "Darwin":
            return cls(os="macos", arch=machine)
        raise DiscoveryError(f"Unsupported operating system: {system or 'unknown'}")

    def platform_tag(self, policy: PlatformPolicy, sysconfig_platform: str) -> str:
        """Return the wheel platform tag for this target under ``policy``.

        On Linux the tag is derived from the architecture; on macOS from the
        interpreter's sysconfig platform (e.g. ``macosx-11.0-arm64``).
        """
        if self.os == "linux":
            if policy is PlatformPolicy.MANYLINUX2014:
                return f"manylinux2014_{self.arch}"
            return f"linux_{self.arch}"
        if policy is not PlatformPolicy.OFF:
            raise DiscoveryError(f"{policy.value} is only available for Linux targets")
        return sysconfig_platform.replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class PythonInterpreter:
    """A Python interpreter found in the environment."""

    implementation: str
    major: int
    minor: int
    abiflags: str
    ext_suffix: str
    platform: str
    executable: str
    target: Target

    def __str__(self) -> str:
        return (
            f"{self.implementation} {self.major}.{self.minor}{self.abiflags} "
            f"at {self.executable}"
        )

    def _abi_tag(self) -> str:
        if self.implementation == "CPython":
            return f"cp{self.major}{self.minor}{self.abiflags}"
        # e.g. ".pypy310-pp73-x86_64-linux-gnu.so" -> "pypy310_pp73"
        soabi = self.ext_suffix.split(".")[1]
        return "_".join(soabi.split("-")[:2])

    def get_tag(self, policy: PlatformPolicy) -> str:
        """Return the compatibility tag of a wheel built for this interpreter."""
        prefix = "cp" if self.implementation == "CPython" else "pp"
        python_tag = f"{prefix}{self.major}{self.minor}"
        platform_tag = self.target.platform_tag(policy, self.platform)
        return f"{python_tag}-{self._abi_tag()}-{platform_tag}"

    def get_library_name(self, module_name: str) -> str:
        """Return the extension filename this interpreter imports ``module_name`` from."""
        return f"{module_name}{self.ext_suffix}"


def probe_interpreter(executable: str, target: Target) -> Optional[PythonInterpreter]:
    """Run ``executable`` and describe the interpreter it starts.

    Returns:
        The interpreter, or None when ``executable`` is a pyenv shim for a
        version that is not installed

    Raises:
        DiscoveryError: If the probe fails or reports something unusable
    """
    try:
        result = subprocess.run(
            [executable, "-c", _PROBE_SCRIPT],
            capture_output=True, text=True, check=False, timeout=PROBE_TIMEOUT,
        )
    except OSError as e:
        raise DiscoveryError(f"Failed to run {executable}: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise DiscoveryError(f"Timed out while probing {executable}") from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        if stderr.startswith("pyenv:"):
            logger.debug("%s is a pyenv shim without an installed version, skipping", executable)
            return None
        raise DiscoveryError(
            f"Probing {executable} failed (rc={result.returncode}): {stderr[-300:]}"
        )

    try:
        info = json.loads(result.stdout)
        interpreter = PythonInterpreter(
            implementation=info["implementation"],
            major=int(info["major"]),
            minor=int(info["minor"]),
            abiflags=info["abiflags"] or "",
            ext_suffix=info["ext_suffix"],
            platform=info["platform"],
            executable=info["executable"] or executable,
            target=target,
        )
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise DiscoveryError(f"{executable} returned an invalid description: {e}") from e

    if not interpreter.ext_suffix:
        raise DiscoveryError(f"{executable} does not report an extension suffix")
    return interpreter


def _is_supported(interpreter: PythonInterpreter, bridge: BridgeModel) -> bool:
    if (interpreter.major, interpreter.minor) < (3, MINIMUM_PYTHON_MINOR):
        return False
    if interpreter.implementation == "CPython":
        return True
    # Compiled bindings target the CPython API only
    return interpreter.implementation == "PyPy" and bridge is BridgeModel.CFFI


def find_all(target: Target, bridge: BridgeModel,
             candidates: Optional[Sequence[str]] = None) -> List[PythonInterpreter]:
    """Find every usable interpreter on PATH, in candidate order.

    Candidates that are not installed are skipped, as are pyenv shims for
    versions that are not installed. The same interpreter reachable under
    several names (``python3`` and ``python3.11``) is only reported once.

    Args:
        target: Platform the wheels are built for
        bridge: Binding mode of the native library
        candidates: Executable names or paths to try (default: python3.7-3.14, pypy3)

    Returns:
        List of interpreters, possibly empty

    Raises:
        DiscoveryError: If an installed candidate cannot be probed
    """
    found: List[PythonInterpreter] = []
    seen = set()
    for candidate in candidates or DEFAULT_CANDIDATES:
        executable = shutil.which(candidate)
        if executable is None:
            logger.debug("%s not found, skipping", candidate)
            continue
        # Symlinks such as python3 -> python3.11 resolve to the same binary
        resolved = os.path.realpath(executable)
        if resolved in seen:
            continue

        interpreter = probe_interpreter(executable, target)
        if interpreter is None:
            continue
        if interpreter.executable in seen:
            continue
        seen.update((resolved, interpreter.executable))

        if not _is_supported(interpreter, bridge):
            logger.debug("Skipping unsupported interpreter %s", interpreter)
            continue
        found.append(interpreter)

    return found
