from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import pkcs12

from invoice_service.signing.exceptions import KeyLoadError


@dataclass(frozen=True)
class SigningKey:
    private_key: RSAPrivateKey
    certificate: x509.Certificate
    chain: tuple[x509.Certificate, ...] = ()


def load_pkcs12(data: bytes, password: str) -> SigningKey:
    """Extract the RSA key and certificate from a PKCS#12 container.

    Raises:
        KeyLoadError: if the container is unreadable or lacks an RSA key
            with a certificate.
    """
    try:
        key, certificate, chain = pkcs12.load_key_and_certificates(
            data, password.encode("utf-8") if password else None
        )
    except ValueError as exc:
        raise KeyLoadError(f"Cannot read PKCS#12 keystore: {exc}") from exc
    if not isinstance(key, RSAPrivateKey):
        raise KeyLoadError("Keystore does not hold an RSA private key")
    if certificate is None:
        raise KeyLoadError("Keystore does not hold a certificate")
    return SigningKey(private_key=key, certificate=certificate, chain=tuple(chain))


def load_pkcs12_file(path: Path, password: str) -> SigningKey:
    if not path.is_file():
        raise KeyLoadError(f"Keystore not found: {path}")
    return load_pkcs12(path.read_bytes(), password)
