"""
Repair Requester

Asks the model to rewrite component source that failed to build.
A repair that yields no source is a failed repair, never an empty patch.
"""
import logging
from typing import Optional

from agents.core.error_classifier import ComponentBuildError
from agents.prompts import build_repair_prompt
from agents.text_utils import extract_code
from errors import RepairError

logger = logging.getLogger(__name__)


class RepairRequester:
    """Thin wrapper around the model client's repair capability"""

    def __init__(self, model_client, model_choice: Optional[str] = None):
        self.model_client = model_client
        self.model_choice = model_choice

    async def repair(
        self,
        source: str,
        error: ComponentBuildError,
        page_id: str,
        attempt: int,
    ) -> str:
        """
        Request a patched version of ``source``

        Args:
            source: Candidate source that failed to build
            error: Classified failure of that source
            page_id: Page being built (for logging)
            attempt: Zero-based index of the failed attempt

        Returns:
            Replacement source (non-empty)

        Raises:
            RepairError: If the model fails or returns nothing usable
        """
        logger.info(
            f"[repair] page_id={page_id} attempt={attempt + 1} kind={error.kind.value} "
            f"message={error.message}"
        )

        prompt = build_repair_prompt(source, error.kind.value, error.message, error.details)

        try:
            if self.model_choice is None:
                reply = await self.model_client.repair_source(prompt)
            else:
                reply = await self.model_client.repair_source(prompt, model_choice=self.model_choice)
        except RepairError:
            raise
        except Exception as e:
            raise RepairError(f"Model repair failed: {e}") from e

        patched = extract_code(reply or "")
        if not patched.strip():
            raise RepairError("Model returned empty repaired code")

        logger.info(
            f"[repair] page_id={page_id} attempt={attempt + 1} "
            f"original_len={len(source)} patched_len={len(patched)}"
        )
        return patched


__all__ = ["RepairRequester"]
