"""Pytest fixtures shared by the envelope verification tests."""

import subprocess
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def sign_manifest(tmp_path: Path) -> Callable[[bytes], bytes]:
    """Sign a payload into a DER envelope with a fresh self-signed certificate."""
    signing_dir = tmp_path / "signing"
    signing_dir.mkdir()
    key = signing_dir / "key.pem"
    cert = signing_dir / "cert.pem"

    subprocess.run(
        ["openssl", "req", "-x509", "-newkey", "rsa:2048", "-nodes",
         "-keyout", str(key), "-out", str(cert), "-subj", "/CN=aasa-test", "-days", "1"],
        check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
    )

    def sign(payload: bytes) -> bytes:
        content = signing_dir / "payload.json"
        signed = signing_dir / "signed.der"
        content.write_bytes(payload)
        subprocess.run(
            ["openssl", "smime", "-sign", "-binary", "-nodetach",
             "-in", str(content), "-signer", str(cert), "-inkey", str(key),
             "-outform", "DER", "-out", str(signed)],
            check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
        )
        return signed.read_bytes()

    return sign
