import base64
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.serialization import pkcs7

from invoice_service.config.settings import Settings
from invoice_service.documents.codes import SERVICE_TELEMATIK_ID
from invoice_service.documents.models import Coding, Signature
from invoice_service.logging.logger import Log
from invoice_service.signing.exceptions import SigningError
from invoice_service.signing.key_loader import SigningKey, load_pkcs12_file

SIGNATURE_TYPE = Coding(
    system="urn:iso-astm:E1762-95:2013",
    code="1.2.840.10065.1.12.1.1",
    display="Author's Signature",
)
SIGNATURE_MEDIA_TYPE = "application/pkcs7-mime"


def signed_content(pdf_bytes: bytes, payload_bytes: bytes) -> bytes:
    """The byte string covered by the seal: base64(pdf) followed by base64(payload)."""
    return base64.b64encode(pdf_bytes) + base64.b64encode(payload_bytes)


class Sealer:
    """Produces detached CMS signatures (SHA-256, RSASSA-PSS) over invoice content."""

    def __init__(
        self,
        key_provider: Callable[[], SigningKey],
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._key_provider = key_provider
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._key: SigningKey | None = None

    def seal(self, pdf_bytes: bytes, payload_bytes: bytes) -> Signature:
        """Sign the enrichment inputs and describe the result as a Signature.

        Raises:
            SigningError: if the key is unavailable or signing fails.
        """
        key = self._signing_key()
        try:
            data = (
                pkcs7.PKCS7SignatureBuilder()
                .set_data(signed_content(pdf_bytes, payload_bytes))
                .add_signer(
                    key.certificate,
                    key.private_key,
                    hashes.SHA256(),
                    rsa_padding=padding.PSS(
                        mgf=padding.MGF1(hashes.SHA256()),
                        salt_length=padding.PSS.DIGEST_LENGTH,
                    ),
                )
                .sign(
                    serialization.Encoding.DER,
                    [pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary],
                )
            )
        except Exception as exc:
            raise SigningError(f"CMS signing failed: {exc}") from exc

        Log.debug(f"Produced {len(data)}-byte detached signature")
        return Signature(
            type=SIGNATURE_TYPE,
            when=self._clock(),
            who=SERVICE_TELEMATIK_ID,
            media_type=SIGNATURE_MEDIA_TYPE,
            data=data,
        )

    def _signing_key(self) -> SigningKey:
        if self._key is None:
            self._key = self._key_provider()
        return self._key


def build_sealer(settings: Settings) -> Sealer:
    """Build a Sealer that loads the configured keystore on first use."""

    def provider() -> SigningKey:
        if not settings.signing_keystore_path:
            raise SigningError("signing_keystore_path is not configured")
        return load_pkcs12_file(
            Path(settings.signing_keystore_path), settings.signing_keystore_password
        )

    return Sealer(key_provider=provider)
