"""IntentClassifier: one model call yielding a reply and a classification.

The model is asked to answer the user first and then emit a line
``Classification:`` followed by a JSON object. The two parts are split on
that marker; the JSON part is validated into a ``ClassificationResult``.
Parse failures never propagate: the turn degrades to the fallback
classification and the user still gets reply text.
"""

import json
import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from entities.shared.errors import ClassificationParseError
from entities.shared.protocols import CompletionService, SessionStore
from models import ClassificationResult, ClassifiedTurn
from pydantic import ValidationError

logger = logging.getLogger(__name__)

CLASSIFICATION_MARKER = "Classification:"

FALLBACK_REPLY = (
    "I'm sorry, I didn't quite catch that. Could you tell me a bit more about "
    "what you're looking for in Alabama's business community?"
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def load_bamabot_prompt() -> str:
    """Load the BamaBot persona and Alabama domain facts."""
    prompt_path = Path(__file__).parent / "bamabot_prompt.md"
    if not prompt_path.exists():
        raise FileNotFoundError(f"Prompt not found: {prompt_path}")
    return prompt_path.read_text(encoding="utf-8")


def split_completion(text: str) -> tuple[str, str | None]:
    """Split a completion into (reply, classification block).

    Uses the last occurrence of the marker so a reply that happens to
    mention the word keeps its text. The block is ``None`` when the marker
    is absent.
    """
    reply, sep, tail = text.rpartition(CLASSIFICATION_MARKER)
    if not sep:
        return text.strip(), None
    return reply.strip(), tail.strip()


def parse_classification(block: str) -> ClassificationResult:
    """Validate the JSON block that follows the marker.

    Raises:
        ClassificationParseError: The block is empty, not JSON, or not an
            object of the expected shape.
    """
    body = _FENCE_RE.sub("", block.strip())
    start = body.find("{")
    end = body.rfind("}") + 1
    if start < 0 or end <= start:
        raise ClassificationParseError("No JSON object after classification marker")
    try:
        return ClassificationResult.model_validate_json(body[start:end])
    except ValidationError as e:
        raise ClassificationParseError(str(e)) from e


class IntentClassifier:
    """Builds the classification prompt, calls the model, and parses the reply."""

    def __init__(
        self,
        completion: CompletionService,
        store: SessionStore,
        history_turns: int = 5,
        task_names: Iterable[str] = (),
        persona: str | None = None,
    ) -> None:
        self.completion = completion
        self.store = store
        self.history_turns = history_turns
        self.task_names = list(task_names)
        self.persona = persona if persona is not None else load_bamabot_prompt()

    async def classify(
        self,
        session_id: str,
        user_id: str | None,
        query_text: str,
        client_context: dict[str, Any] | None = None,
    ) -> ClassifiedTurn:
        """Classify one user turn.

        Model invocation errors propagate; parse errors are recovered.
        """
        history = await self.store.get_chat_history_for_llm(session_id, self.history_turns)
        prompt = self.build_prompt(query_text, history, client_context)

        completion = await self.completion.complete(prompt)
        turn = self.parse(completion)
        turn.prompt = prompt

        logger.info(
            "Classified turn for session %s (user_id=%s): intent=%s task=%s confidence=%.2f parsed=%s",
            session_id,
            user_id,
            turn.classification.intent,
            turn.classification.suggested_next_task,
            turn.classification.confidence_score,
            turn.parsed,
        )
        return turn

    def build_prompt(
        self,
        query_text: str,
        history: str,
        client_context: dict[str, Any] | None = None,
    ) -> str:
        """Render the single prompt sent to the model."""
        history_block = history or "(no previous messages)"
        tasks_block = "\n".join(f"- {name}" for name in self.task_names) or "- none"
        client_block = ""
        if client_context:
            client_block = f"\nClient context: {json.dumps(client_context, default=str)}\n"

        return f"""{self.persona}

Recent conversation (oldest first):
{history_block}
{client_block}
User message: {query_text}

First, write a helpful reply to the user. Then, on a new line, write
"{CLASSIFICATION_MARKER}" followed by a single JSON object with these keys:
- "intent": short snake_case label for what the user wants
- "entities": object of extracted slots (e.g. "industry", "location", "business_type",
  "query_text_for_semantic_search", "company_id", "company_name", "domain", "naics_code")
- "suggested_next_task": one of the tasks below, or "none"
- "confidence_score": number between 0 and 1

Tasks you may suggest:
{tasks_block}

Resolve references such as "it" or "they" using the recent conversation.

Example:
Huntsville has a strong aerospace cluster. Let me look for matching companies.
{CLASSIFICATION_MARKER} {{"intent": "find_businesses", "entities": {{"industry": "aerospace", "location": "Huntsville"}}, "suggested_next_task": "connector_find_and_score_businesses", "confidence_score": 0.9}}
"""

    @staticmethod
    def parse(completion: str) -> ClassifiedTurn:
        """Split and validate a completion, falling back on any parse failure."""
        reply, block = split_completion(completion or "")

        if block is None:
            logger.warning("Classification marker missing from model output")
            return ClassifiedTurn(
                text_response=reply or FALLBACK_REPLY,
                classification=ClassificationResult.fallback(),
                parsed=False,
                raw_completion=completion or "",
            )

        try:
            classification = parse_classification(block)
        except ClassificationParseError as e:
            logger.warning("Failed to parse classification block: %s", e)
            return ClassifiedTurn(
                text_response=reply or FALLBACK_REPLY,
                classification=ClassificationResult.fallback(),
                parsed=False,
                raw_completion=completion,
            )

        return ClassifiedTurn(
            text_response=reply or FALLBACK_REPLY,
            classification=classification,
            raw_completion=completion,
        )
