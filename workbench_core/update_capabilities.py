"""
Concrete update capabilities: manifest lookup over HTTP, signed package
download, and process relaunch through Qt.
"""

from __future__ import annotations

import base64
import binascii
import stat
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import load_pem_public_key
from PySide6.QtCore import QCoreApplication, QProcess

from workbench_core import logger as app_logger
from workbench_core.updater import UpdateError
from workbench_shared.manifest_schema import (
    ManifestValidationError,
    UpdateManifest,
    is_newer,
    parse_manifest,
)

_LOGGER = app_logger.get_logger()


class HttpUpdateChecker:
    """
    Fetches the updater manifest from ``endpoint``.

    ``{target}`` and ``{current_version}`` placeholders in the endpoint are
    substituted. HTTP 204 means the server has nothing newer to offer.
    """

    def __init__(
        self,
        endpoint: str,
        current_version: str,
        *,
        target: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = endpoint
        self.current_version = current_version
        self.target = target
        self._timeout = timeout
        self._client = client

    async def check(self) -> Optional[UpdateManifest]:
        url = self.endpoint.format(target=self.target, current_version=self.current_version)
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(url)
        except httpx.HTTPError as exc:
            raise UpdateError(f"Could not reach update server: {exc}") from exc

        if response.status_code == 204:
            return None
        if response.status_code >= 400:
            raise UpdateError(f"Update server returned HTTP {response.status_code}")

        try:
            manifest = parse_manifest(response.json())
        except ValueError as exc:
            raise UpdateError(f"Invalid update manifest: {exc}") from exc

        if not is_newer(manifest.version, self.current_version):
            _LOGGER.debug(
                "Manifest version {} is not newer than {}.", manifest.version, self.current_version
            )
            return None
        return manifest


class SignedPackageInstaller:
    """
    Downloads the package published for ``target`` and verifies its Ed25519
    signature before placing it into ``staging_dir``. The verified file is
    exposed as ``installed_path``; ``ProcessRelauncher`` launches it.
    """

    def __init__(
        self,
        public_key_pem: str,
        *,
        target: str,
        staging_dir: Path,
        timeout: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.target = target
        self.staging_dir = Path(staging_dir)
        self.installed_path: Optional[Path] = None
        self._public_key_pem = public_key_pem
        self._timeout = timeout
        self._client = client

    async def install(self, manifest: UpdateManifest) -> None:
        try:
            package = manifest.package_for(self.target)
        except ManifestValidationError as exc:
            raise UpdateError(str(exc)) from exc

        data = await self._download(package.url)
        self._verify(data, package.signature)

        destination = self.staging_dir / _package_name(package.url, manifest.version)
        try:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
            partial = destination.with_name(destination.name + ".part")
            partial.write_bytes(data)
            partial.replace(destination)
        except OSError as exc:
            raise UpdateError(f"Could not write update package: {exc}") from exc

        self.installed_path = destination
        _LOGGER.info("Staged update {} at {}", manifest.version, destination)

    async def _download(self, url: str) -> bytes:
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpdateError(str(exc)) from exc
        return response.content

    def _verify(self, data: bytes, signature_b64: str) -> None:
        try:
            public_key = load_pem_public_key(self._public_key_pem.encode("utf-8"))
        except ValueError as exc:
            raise UpdateError("Update public key is not a valid PEM key") from exc
        if not isinstance(public_key, Ed25519PublicKey):
            raise UpdateError("Update public key must be an Ed25519 key")

        cleaned = "".join(signature_b64.split())
        missing = len(cleaned) % 4
        if missing:
            cleaned += "=" * (4 - missing)
        try:
            signature = base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise UpdateError("Update signature is not valid base64") from exc

        try:
            public_key.verify(signature, data)
        except InvalidSignature as exc:
            raise UpdateError("Update signature verification failed") from exc


class ProcessRelauncher:
    """
    Starts a detached process and quits the current one.

    When ``staged`` yields a package path (the file a ``SignedPackageInstaller``
    just verified), that package is launched so the new version takes over:
    on Linux the staged AppImage is the new executable, on Windows and macOS
    the staged installer replaces the running build. Without a staged package
    the current interpreter is restarted with the current arguments.
    """

    def __init__(
        self,
        program: Optional[str] = None,
        arguments: Optional[Sequence[str]] = None,
        *,
        staged: Optional[Callable[[], Optional[Path]]] = None,
    ) -> None:
        self.program = program or sys.executable
        self.arguments: List[str] = list(arguments if arguments is not None else sys.argv)
        self._staged = staged

    def command(self) -> Tuple[str, List[str]]:
        package = self._staged() if self._staged is not None else None
        if package is None:
            return self.program, list(self.arguments)
        _make_executable(package)
        return str(package), list(sys.argv[1:])

    async def relaunch(self) -> None:
        program, arguments = self.command()
        started, pid = QProcess.startDetached(program, arguments)
        if not started:
            raise UpdateError(f"Could not start {program}")
        _LOGGER.info("Relaunched {} as pid {}; quitting current instance.", program, pid)
        app = QCoreApplication.instance()
        if app is not None:
            app.quit()


def _make_executable(path: Path) -> None:
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as exc:
        raise UpdateError(f"Could not prepare staged package {path}: {exc}") from exc


def _package_name(url: str, version: str) -> str:
    name = Path(urlparse(url).path).name
    return name or f"update-{version}.bin"
