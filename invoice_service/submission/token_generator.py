import secrets
from collections.abc import Callable

from invoice_service.database.repositories.base import DocumentRepository
from invoice_service.logging.logger import Log
from invoice_service.submission.exceptions import TokenGenerationError

TOKEN_BYTES = 32


class TokenGenerator:
    """Issues 256-bit hex tokens that no transformed record uses yet.

    A candidate counts as issued only once ``reserve_identifier`` succeeds,
    so two concurrent submissions cannot walk away with the same token.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        max_attempts: int = 10,
        random_source: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._doc_repo = doc_repo
        self._max_attempts = max_attempts
        self._random_source = random_source

    def generate(self) -> str:
        """Raises:
        TokenGenerationError: if the random source is unusable or every
            attempt collided.
        """
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._draw()
            if self._doc_repo.exists(candidate):
                Log.warning(f"Token collision on attempt {attempt}, drawing again")
                continue
            if not self._doc_repo.reserve_identifier(candidate):
                Log.warning(f"Token reservation lost on attempt {attempt}, drawing again")
                continue
            return candidate
        raise TokenGenerationError(
            f"No free token after {self._max_attempts} attempts"
        )

    def _draw(self) -> str:
        try:
            raw = self._random_source(TOKEN_BYTES)
        except (NotImplementedError, OSError) as exc:
            raise TokenGenerationError(f"Secure random source unavailable: {exc}") from exc
        if len(raw) != TOKEN_BYTES:
            raise TokenGenerationError(
                f"Random source returned {len(raw)} bytes, expected {TOKEN_BYTES}"
            )
        return raw.hex()
